"""
Email notification adapters.

- SmtpEmailGateway: stdlib smtplib, run in a worker thread so the event loop never blocks.
- ConsoleEmailGateway: logs the rendered message instead of sending (local/dev, tests).

Both return NotificationResult and never raise for delivery problems.
"""
from __future__ import annotations

import asyncio
import html as html_lib
import smtplib
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from email.message import EmailMessage
from email.utils import formataddr, make_msgid
from typing import Optional
from zoneinfo import ZoneInfo

from src.library.domain.protocols.notification_gateway import NotificationGateway, NotificationResult
from src.shared.config import Settings
from src.shared.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    text: str
    html: str


class EmailTemplates:
    """Plain-text + HTML bodies for circulation emails."""

    def __init__(self, library_name: str, currency: str, fine_per_day: Decimal, tz: ZoneInfo):
        self.library_name = library_name
        self.currency = currency
        self.fine_per_day = fine_per_day
        self.tz = tz

    def _money(self, amount: Decimal) -> str:
        return f"{self.currency}{amount.quantize(Decimal('0.01'))}"

    def _local(self, moment: datetime) -> str:
        aware = moment if moment.tzinfo else moment.replace(tzinfo=ZoneInfo("UTC"))
        return aware.astimezone(self.tz).strftime("%B %d, %Y %I:%M %p")

    def borrow_confirmation(
        self,
        student_name: str,
        item_title: str,
        item_author: Optional[str],
        borrowed_at: datetime,
        due_date: datetime,
    ) -> RenderedEmail:
        by = f" by {item_author}" if item_author else ""
        esc = html_lib.escape
        text = (
            f"Hello {student_name},\n\n"
            f"You borrowed \"{item_title}\"{by}.\n"
            f"Borrowed: {self._local(borrowed_at)}\n"
            f"Due: {self._local(due_date)}\n\n"
            f"Please return it on or before the due date. Late returns are fined "
            f"{self._money(self.fine_per_day)} per day.\n\n"
            f"{self.library_name}\n"
        )
        html = (
            f"<p>Hello {esc(student_name)},</p>"
            f"<p>You borrowed <strong>{esc(item_title)}</strong>{esc(by)}.</p>"
            f"<p>Borrowed: {self._local(borrowed_at)}<br>Due: <strong>{self._local(due_date)}</strong></p>"
            f"<p>Late returns are fined {self._money(self.fine_per_day)} per day.</p>"
            f"<p>{esc(self.library_name)}</p>"
        )
        return RenderedEmail(subject=f"Book Borrowed Successfully - {self.library_name}", text=text, html=html)

    def overdue_notice(
        self,
        student_name: str,
        item_title: str,
        item_author: Optional[str],
        days_overdue: int,
        fine_amount: Decimal,
    ) -> RenderedEmail:
        by = f" by {item_author}" if item_author else ""
        esc = html_lib.escape
        day_word = "day" if days_overdue == 1 else "days"
        text = (
            f"Hello {student_name},\n\n"
            f"\"{item_title}\"{by} is {days_overdue} {day_word} overdue.\n"
            f"Fine amount: {self._money(fine_amount)}\n"
            f"Fine rate: {self._money(self.fine_per_day)} per day overdue\n\n"
            f"Please return the book as soon as possible and settle your fine at the library.\n\n"
            f"{self.library_name}\n"
        )
        html = (
            f"<p>Hello {esc(student_name)},</p>"
            f"<p>You have a fine for not returning <strong>{esc(item_title)}</strong>{esc(by)}.</p>"
            f"<p>Days overdue: {days_overdue}<br>"
            f"<strong>Fine amount: {self._money(fine_amount)}</strong><br>"
            f"Fine rate: {self._money(self.fine_per_day)} per day overdue</p>"
            f"<p>Please return the book as soon as possible and settle your fine at the library.</p>"
            f"<p>{esc(self.library_name)}</p>"
        )
        return RenderedEmail(subject=f"Overdue Book Notice - Fine Applied - {self.library_name}", text=text, html=html)


class _TemplatedGateway(NotificationGateway):
    def __init__(self, templates: EmailTemplates):
        self.templates = templates

    async def _deliver(self, to: str, rendered: RenderedEmail) -> NotificationResult:
        raise NotImplementedError

    async def send_overdue_notice(
        self,
        email: str,
        student_name: str,
        item_title: str,
        item_author: Optional[str],
        days_overdue: int,
        fine_amount: Decimal,
    ) -> NotificationResult:
        rendered = self.templates.overdue_notice(student_name, item_title, item_author, days_overdue, fine_amount)
        return await self._deliver(email, rendered)

    async def send_borrow_confirmation(
        self,
        email: str,
        student_name: str,
        item_title: str,
        item_author: Optional[str],
        borrowed_at: datetime,
        due_date: datetime,
    ) -> NotificationResult:
        rendered = self.templates.borrow_confirmation(student_name, item_title, item_author, borrowed_at, due_date)
        return await self._deliver(email, rendered)


class SmtpEmailGateway(_TemplatedGateway):
    def __init__(
        self,
        templates: EmailTemplates,
        *,
        host: str,
        port: int,
        user: str,
        password: Optional[str],
        use_tls: bool = True,
        from_name: str = "Library System",
        timeout: float = 30.0,
    ):
        super().__init__(templates)
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.use_tls = use_tls
        self.from_name = from_name
        self.timeout = timeout

    def _build(self, to: str, rendered: RenderedEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = formataddr((self.from_name, self.user))
        msg["To"] = to
        msg["Subject"] = rendered.subject
        msg["Message-ID"] = make_msgid()
        msg.set_content(rendered.text)
        msg.add_alternative(rendered.html, subtype="html")
        return msg

    def _send_blocking(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
            if self.use_tls:
                server.starttls()
            if self.password:
                server.login(self.user, self.password)
            server.send_message(msg)

    async def _deliver(self, to: str, rendered: RenderedEmail) -> NotificationResult:
        msg = self._build(to, rendered)
        try:
            await asyncio.to_thread(self._send_blocking, msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Email delivery failed", to=to, subject=rendered.subject, error=str(e))
            return NotificationResult(success=False, error=f"{e.__class__.__name__}: {e}")
        logger.info("Email sent", to=to, subject=rendered.subject)
        return NotificationResult(success=True, message_id=msg["Message-ID"])


class ConsoleEmailGateway(_TemplatedGateway):
    """Logs emails instead of sending them."""

    async def _deliver(self, to: str, rendered: RenderedEmail) -> NotificationResult:
        message_id = make_msgid()
        logger.info("Email (console backend)", to=to, subject=rendered.subject, body=rendered.text)
        return NotificationResult(success=True, message_id=message_id)


def build_email_gateway(settings: Settings) -> NotificationGateway:
    templates = EmailTemplates(
        library_name=settings.email_from_name,
        currency=settings.fine_currency,
        fine_per_day=settings.fine_per_day,
        tz=settings.tzinfo,
    )
    if settings.email_backend == "smtp":
        return SmtpEmailGateway(
            templates,
            host=settings.smtp_host or "",
            port=settings.smtp_port,
            user=settings.smtp_user or "",
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            from_name=settings.email_from_name,
        )
    return ConsoleEmailGateway(templates)
