"""
Fine Calculator

Pure functions. A loan that is any fraction of a day past due is charged for
the whole day: fine = ceil((reference - due) / 1 day) * rate, never negative.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Union

_ONE_DAY = timedelta(days=1)


def days_overdue(due_date: datetime, reference_time: datetime) -> int:
    """Whole days past due, rounded up. Zero on or before the due instant."""
    if reference_time <= due_date:
        return 0
    whole, remainder = divmod(reference_time - due_date, _ONE_DAY)
    return whole + (1 if remainder else 0)


def calculate_fine(
    due_date: datetime,
    reference_time: datetime,
    per_day_rate: Union[Decimal, int, str],
) -> Decimal:
    rate = Decimal(per_day_rate)
    if rate < 0:
        raise ValueError("per_day_rate must be >= 0")
    return Decimal(days_overdue(due_date, reference_time)) * rate
