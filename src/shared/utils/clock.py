# /src/shared/utils/clock.py
"""
Time helpers. Persisted timestamps are naive UTC; calendar days are
evaluated in the library's configured timezone.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def local_date(moment: datetime, tz: ZoneInfo) -> date:
    """Calendar date of a naive-UTC instant as seen in `tz`."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(tz).date()
