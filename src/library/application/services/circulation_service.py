"""
Circulation Service

Desk-facing use cases. Scanned tokens go through the identity resolver,
transitions go through the loan ledger, and borrow confirmations go out
through the notification gateway without ever failing the borrow.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional

from src.library.application.services.identity_resolver import IdentityResolver, strip_noise
from src.library.application.services.loan_ledger import LoanLedger, LoanView
from src.library.domain.entities import Item, Loan, Student
from src.library.domain.exceptions import (
    InvalidIdentityTokenError,
    ItemNotFoundError,
    LoanNotFoundError,
    StudentNotFoundError,
)
from src.library.domain.protocols.notification_gateway import NotificationGateway
from src.library.domain.protocols.unit_of_work import CirculationUnitOfWork
from src.library.domain.value_objects import LoanMethod
from src.shared.logging import get_logger
from src.shared.utils.ids import is_object_id

logger = get_logger(__name__)


@dataclass(frozen=True)
class BorrowOutcome:
    loan: Loan
    student: Student
    item: Item


@dataclass(frozen=True)
class ReturnOutcome:
    loan: Loan
    fine_amount: Decimal


@dataclass(frozen=True)
class StudentProfile:
    student: Student
    active_loans: List[LoanView]
    total_outstanding_fine: Decimal


class CirculationService:
    def __init__(
        self,
        uow_factory: Callable[[], CirculationUnitOfWork],
        ledger: LoanLedger,
        gateway: NotificationGateway,
    ):
        self._uow_factory = uow_factory
        self.ledger = ledger
        self.gateway = gateway

    # ------------------------------------------------------------------ #
    # Resolution helpers
    # ------------------------------------------------------------------ #

    async def _student_from_token(self, token: Optional[str]) -> Student:
        async with self._uow_factory() as uow:
            resolved = await IdentityResolver(uow.students, uow.items).resolve_student(token)
            student = await uow.students.get_by_id(resolved.entity_id)
        if student is None:
            raise StudentNotFoundError(resolved.entity_id)
        logger.debug("Student resolved", student_id=student.id, strategy=resolved.strategy.value)
        return student

    async def _item_from_token(self, token: Optional[str]) -> Item:
        async with self._uow_factory() as uow:
            resolved = await IdentityResolver(uow.students, uow.items).resolve_item(token)
            item = await uow.items.get_by_id(resolved.entity_id)
        if item is None:
            raise ItemNotFoundError(resolved.entity_id)
        logger.debug("Item resolved", item_id=item.id, strategy=resolved.strategy.value)
        return item

    # ------------------------------------------------------------------ #
    # Use cases
    # ------------------------------------------------------------------ #

    async def borrow(self, student_token: str, item_token: str, method: LoanMethod = LoanMethod.MANUAL) -> BorrowOutcome:
        student = await self._student_from_token(student_token)
        item = await self._item_from_token(item_token)
        loan = await self.ledger.open_loan(student.id, item.id, method)
        await self._confirm_borrow(student, item, loan)
        return BorrowOutcome(loan=loan, student=student, item=item)

    async def _confirm_borrow(self, student: Student, item: Item, loan: Loan) -> None:
        if not student.has_email:
            logger.info("Borrow confirmation skipped: no email on file", loan_id=loan.id, student_id=student.id)
            return
        try:
            result = await self.gateway.send_borrow_confirmation(
                email=student.email or "",
                student_name=student.full_name,
                item_title=item.title,
                item_author=item.author,
                borrowed_at=loan.borrowed_at,
                due_date=loan.due_date,
            )
        except Exception:
            logger.exception("Borrow confirmation raised", loan_id=loan.id, student_id=student.id)
            return
        if not result.success:
            logger.warning("Borrow confirmation failed", loan_id=loan.id, student_id=student.id, error=result.error)

    async def return_item(
        self,
        *,
        loan_token: Optional[str] = None,
        student_token: Optional[str] = None,
        item_token: Optional[str] = None,
    ) -> ReturnOutcome:
        if loan_token is not None:
            loan_id = strip_noise(loan_token)
            if not loan_id:
                raise InvalidIdentityTokenError(details={"field": "loan_token"})
            if not is_object_id(loan_id):
                raise LoanNotFoundError(loan_id)
            loan = await self.ledger.close_loan(loan_id.lower())
        else:
            student = await self._student_from_token(student_token)
            item = await self._item_from_token(item_token)
            open_loan = await self.ledger.find_open_loan(student.id, item.id)
            if open_loan is None:
                raise LoanNotFoundError(student_id=student.id, item_id=item.id)
            loan = await self.ledger.close_loan(open_loan.id)
        return ReturnOutcome(loan=loan, fine_amount=loan.fine_accrued)

    async def profile(self, student_token: str) -> StudentProfile:
        student = await self._student_from_token(student_token)
        views = await self.ledger.list_active_loans(student.id)
        student.active_loan_ids = [v.loan.id for v in views]
        total = await self.ledger.outstanding_for_student(student.id)
        return StudentProfile(student=student, active_loans=views, total_outstanding_fine=total)

    async def settle_fines(self, student_token: str) -> int:
        student = await self._student_from_token(student_token)
        return await self.ledger.settle_fine(student.id)
