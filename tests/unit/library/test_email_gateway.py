import smtplib
from datetime import datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

from src.library.infrastructure.adapters.email_gateway import (
    ConsoleEmailGateway,
    EmailTemplates,
    SmtpEmailGateway,
)

TEMPLATES = EmailTemplates(
    library_name="Library System",
    currency="₱",
    fine_per_day=Decimal("10"),
    tz=ZoneInfo("Asia/Manila"),
)


def test_overdue_notice_content():
    rendered = TEMPLATES.overdue_notice("Juan", "Noli Me Tangere", "Jose Rizal", 3, Decimal("30"))
    assert rendered.subject == "Overdue Book Notice - Fine Applied - Library System"
    assert "3 days overdue" in rendered.text
    assert "₱30.00" in rendered.text
    assert "Jose Rizal" in rendered.html


def test_borrow_confirmation_uses_library_timezone():
    rendered = TEMPLATES.borrow_confirmation(
        "Juan", "El Filibusterismo", None, datetime(2025, 3, 1, 0, 0), datetime(2025, 3, 8, 0, 0)
    )
    assert rendered.subject == "Book Borrowed Successfully - Library System"
    assert "March 08, 2025 08:00 AM" in rendered.text
    assert " by " not in rendered.text.splitlines()[2]



def test_html_body_escapes_markup_in_names_and_titles():
    rendered = TEMPLATES.overdue_notice("<b>Ana</b>", "Tom & Jerry <Vol 1>", "Hanna & Barbera", 2, Decimal("20"))
    assert "<Vol 1>" not in rendered.html
    assert "<b>Ana</b>" not in rendered.html
    assert "Tom &amp; Jerry &lt;Vol 1&gt;" in rendered.html
    assert "&lt;b&gt;Ana&lt;/b&gt;" in rendered.html
    assert "Hanna &amp; Barbera" in rendered.html
    # plain-text part stays raw
    assert "\"Tom & Jerry <Vol 1>\"" in rendered.text

    confirmation = TEMPLATES.borrow_confirmation(
        "<i>Ana</i>", "A < B", None, datetime(2025, 3, 1), datetime(2025, 3, 8)
    )
    assert "&lt;i&gt;Ana&lt;/i&gt;" in confirmation.html
    assert "<strong>A &lt; B</strong>" in confirmation.html


async def test_console_gateway_reports_success():
    result = await ConsoleEmailGateway(TEMPLATES).send_overdue_notice(
        "juan@school.edu.ph", "Juan", "Noli", None, 1, Decimal("10")
    )
    assert result.success
    assert result.message_id


async def test_smtp_failure_becomes_unsuccessful_result(monkeypatch):
    gateway = SmtpEmailGateway(TEMPLATES, host="smtp.invalid", port=587, user="library@school.edu.ph", password="x")

    def _boom(msg):
        raise smtplib.SMTPServerDisconnected("connection lost")

    monkeypatch.setattr(gateway, "_send_blocking", _boom)
    result = await gateway.send_overdue_notice("juan@school.edu.ph", "Juan", "Noli", None, 1, Decimal("10"))
    assert not result.success
    assert "SMTPServerDisconnected" in result.error
