"""Outbound notification interface (email)."""

from abc import abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol


@dataclass(frozen=True)
class NotificationResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class NotificationGateway(Protocol):
    """Sends templated messages to borrowers. Implementations never raise on delivery failure."""

    @abstractmethod
    async def send_overdue_notice(
        self,
        email: str,
        student_name: str,
        item_title: str,
        item_author: Optional[str],
        days_overdue: int,
        fine_amount: Decimal,
    ) -> NotificationResult:
        ...

    @abstractmethod
    async def send_borrow_confirmation(
        self,
        email: str,
        student_name: str,
        item_title: str,
        item_author: Optional[str],
        borrowed_at: datetime,
        due_date: datetime,
    ) -> NotificationResult:
        ...
