from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from src.library.domain.services.fine_calculator import calculate_fine, days_overdue

DUE = datetime(2025, 1, 1, 0, 0, 0)


def test_partial_day_is_charged_as_a_whole_day():
    assert calculate_fine(DUE, datetime(2025, 1, 2, 0, 0, 1), Decimal("10")) == Decimal("20")


def test_no_fine_on_or_before_due():
    assert calculate_fine(DUE, DUE - timedelta(days=3), 10) == 0
    assert calculate_fine(DUE, DUE, 10) == 0
    assert days_overdue(DUE, DUE) == 0


def test_exact_day_boundaries():
    assert days_overdue(DUE, DUE + timedelta(microseconds=1)) == 1
    assert days_overdue(DUE, DUE + timedelta(days=1)) == 1
    assert days_overdue(DUE, DUE + timedelta(days=3)) == 3
    assert days_overdue(DUE, DUE + timedelta(days=3, hours=1)) == 4


def test_fine_never_decreases_as_time_moves_forward():
    previous = Decimal("0")
    for hours in range(0, 24 * 10, 5):
        fine = calculate_fine(DUE, DUE + timedelta(hours=hours), "10")
        assert fine >= previous
        previous = fine


def test_negative_rate_rejected():
    with pytest.raises(ValueError):
        calculate_fine(DUE, DUE + timedelta(days=1), Decimal("-1"))


def test_zero_rate_gives_zero():
    assert calculate_fine(DUE, DUE + timedelta(days=5), 0) == 0
