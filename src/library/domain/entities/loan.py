"""Loan record: one student holding one copy of one item."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from src.shared.domain.base_entity import BaseEntity
from src.library.domain.services.fine_calculator import calculate_fine, days_overdue
from src.library.domain.value_objects import LoanMethod


class Loan(BaseEntity):
    """
    Lifecycle: opened -> (fine observed N times) -> returned.

    `due_date` is fixed at creation. While open, `fine_accrued` is recomputed
    from scratch on every observation; once returned it never changes again.
    """

    def __init__(
        self,
        student_id: str,
        item_id: str,
        borrowed_at: datetime,
        due_date: datetime,
        id: Optional[str] = None,
        method: LoanMethod = LoanMethod.MANUAL,
        returned: bool = False,
        returned_at: Optional[datetime] = None,
        fine_accrued: Decimal = Decimal("0"),
        fine_paid: Decimal = Decimal("0"),
        last_notification_date: Optional[date] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        super().__init__(id, created_at, updated_at)
        self.student_id = student_id
        self.item_id = item_id
        self.borrowed_at = borrowed_at
        self.due_date = due_date
        self.method = LoanMethod(method)
        self.returned = returned
        self.returned_at = returned_at
        self.fine_accrued = Decimal(fine_accrued)
        self.fine_paid = Decimal(fine_paid)
        self.last_notification_date = last_notification_date

    @classmethod
    def open(
        cls,
        student_id: str,
        item_id: str,
        now: datetime,
        loan_period_days: int,
        method: LoanMethod = LoanMethod.MANUAL,
    ) -> "Loan":
        return cls(
            student_id=student_id,
            item_id=item_id,
            borrowed_at=now,
            due_date=now + timedelta(days=loan_period_days),
            method=method,
            created_at=now,
            updated_at=now,
        )

    def is_overdue(self, now: datetime) -> bool:
        return not self.returned and now > self.due_date

    def days_overdue(self, now: datetime) -> int:
        reference = self.returned_at if self.returned and self.returned_at else now
        return days_overdue(self.due_date, reference)

    def current_fine(self, now: datetime, per_day_rate: Decimal) -> Decimal:
        """Fine as of `now` without mutating; frozen value once returned."""
        if self.returned:
            return self.fine_accrued
        return calculate_fine(self.due_date, now, per_day_rate)

    def observe_fine(self, now: datetime, per_day_rate: Decimal) -> bool:
        """Refresh `fine_accrued`; returns True when the stored value changed."""
        if self.returned:
            return False
        fine = calculate_fine(self.due_date, now, per_day_rate)
        if fine == self.fine_accrued:
            return False
        self.fine_accrued = fine
        self.mark_updated(now)
        return True

    def close(self, now: datetime, per_day_rate: Decimal) -> None:
        """Mark returned and freeze the fine at its value for `now`."""
        self.observe_fine(now, per_day_rate)
        self.returned = True
        self.returned_at = now
        self.mark_updated(now)

    @property
    def outstanding_fine(self) -> Decimal:
        return max(Decimal("0"), self.fine_accrued - self.fine_paid)

    def settle(self, now: datetime) -> bool:
        if self.fine_accrued <= self.fine_paid:
            return False
        self.fine_paid = self.fine_accrued
        self.mark_updated(now)
        return True

    def needs_notice(self, today: date) -> bool:
        return self.last_notification_date is None or self.last_notification_date != today

    def record_notification(self, today: date, now: datetime) -> None:
        self.last_notification_date = today
        self.mark_updated(now)
