import os

# Settings are read once per process; pin them before anything imports src.*
os.environ.setdefault("ENVIRONMENT", "local")
os.environ.setdefault("IS_TESTING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./library-test.db")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length")
os.environ.setdefault("EMAIL_BACKEND", "console")
os.environ.setdefault("OVERDUE_SWEEP_ENABLED", "false")
os.environ.setdefault("LIBRARY_TIMEZONE", "Asia/Manila")

from dataclasses import replace
from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Optional

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

import src.library.infrastructure.persistence.models  # noqa: F401  (registers tables on Base.metadata)
from src.library.domain.entities import Item, Student
from src.library.domain.protocols.notification_gateway import NotificationResult
from src.library.infrastructure.dependencies import build_circulation_container
from src.shared.config import get_settings
from src.shared.database import Base, make_session_factory

# 2025-03-01 08:00 in Manila
T0 = datetime(2025, 3, 1, 0, 0, 0)


class FixedClock:
    """Naive-UTC clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, moment: datetime) -> None:
        self.now = moment

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeGateway:
    """Records every send; flip `fail` to simulate a delivery outage."""

    def __init__(self):
        self.overdue: List[dict] = []
        self.confirmations: List[dict] = []
        self.fail = False

    def _result(self) -> NotificationResult:
        if self.fail:
            return NotificationResult(success=False, error="SMTPServerDisconnected: test outage")
        return NotificationResult(success=True, message_id=f"<test-{len(self.overdue) + len(self.confirmations)}@library>")

    async def send_overdue_notice(self, email, student_name, item_title, item_author, days_overdue, fine_amount):
        result = self._result()
        self.overdue.append(
            dict(email=email, student_name=student_name, item_title=item_title, days_overdue=days_overdue,
                 fine_amount=fine_amount, success=result.success)
        )
        return result

    async def send_borrow_confirmation(self, email, student_name, item_title, item_author, borrowed_at, due_date):
        result = self._result()
        self.confirmations.append(
            dict(email=email, student_name=student_name, item_title=item_title, due_date=due_date,
                 success=result.success)
        )
        return result

    def sent_overdue(self) -> List[dict]:
        return [c for c in self.overdue if c["success"]]


@pytest.fixture
def settings(tmp_path):
    get_settings.cache_clear()
    return replace(
        get_settings(),
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'library.db'}",
        loan_period_days=7,
        fine_per_day=Decimal("10"),
        overdue_sweep_enabled=False,
    )


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
async def session_factory(settings):
    engine = create_async_engine(settings.database_url, connect_args={"timeout": 30})
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield make_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def container(settings, session_factory, gateway, clock):
    return build_circulation_container(settings, session_factory, gateway=gateway, clock=clock)


@pytest.fixture
def make_student(container):
    counter = {"n": 0}

    async def _make(email: Optional[str] = "juan@school.edu.ph", **kwargs) -> Student:
        counter["n"] += 1
        fields = dict(
            student_number=f"2024-{counter['n']:04d}",
            full_name=f"Student {counter['n']}",
            email=email,
        )
        fields.update(kwargs)
        return await container.catalog.register_student(Student(**fields))

    return _make


@pytest.fixture
def make_item(container):
    counter = {"n": 0}

    async def _make(total_copies: int = 1, **kwargs) -> Item:
        counter["n"] += 1
        fields = dict(
            title=f"Book {counter['n']}",
            author="A. Author",
            accession_number=f"ACC-{counter['n']:05d}",
            total_copies=total_copies,
        )
        fields.update(kwargs)
        return await container.catalog.add_item(Item(**fields))

    return _make
