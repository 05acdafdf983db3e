"""
Loan Ledger

Authoritative record of who holds which copy. Every transition (open, close)
runs in one transaction that also rewrites the item's cached copy count from
a fresh recount of active loans, so the loan row and the count commit together.

Same-item transitions are serialised twice over:
- an in-process asyncio.Lock per item id (one worker process);
- a row lock on the item (SELECT ... FOR UPDATE) plus the partial unique
  index on open (student, item) pairs (several worker processes).
"""
from __future__ import annotations

import asyncio
import weakref
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional

from src.library.domain.entities import Item, Loan
from src.library.domain.exceptions import (
    AlreadyBorrowedError,
    AlreadyReturnedError,
    ItemNotFoundError,
    LoanNotFoundError,
    NoCopiesAvailableError,
    StudentNotFoundError,
)
from src.library.domain.protocols.unit_of_work import CirculationUnitOfWork
from src.library.domain.value_objects import LoanMethod
from src.shared.logging import get_logger
from src.shared.utils.clock import Clock, utcnow

logger = get_logger(__name__)


@dataclass(frozen=True)
class LoanView:
    """A loan annotated with item details and its fine as of `observed_at`."""
    loan: Loan
    item_title: Optional[str]
    item_author: Optional[str]
    days_overdue: int
    fine: Decimal
    outstanding: Decimal
    observed_at: datetime
    student_name: Optional[str] = None


@dataclass(frozen=True)
class LoanHistoryPage:
    views: List[LoanView]
    total: int
    skip: int
    limit: int


class LoanLedger:
    def __init__(
        self,
        uow_factory: Callable[[], CirculationUnitOfWork],
        *,
        loan_period_days: int,
        fine_per_day: Decimal,
        clock: Clock = utcnow,
    ):
        self._uow_factory = uow_factory
        self.loan_period_days = loan_period_days
        self.fine_per_day = Decimal(fine_per_day)
        self._clock = clock
        self._item_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    def now(self) -> datetime:
        return self._clock()

    def _lock_for(self, item_id: str) -> asyncio.Lock:
        lock = self._item_locks.get(item_id)
        if lock is None:
            lock = asyncio.Lock()
            self._item_locks[item_id] = lock
        return lock

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #

    async def open_loan(self, student_id: str, item_id: str, method: LoanMethod = LoanMethod.MANUAL) -> Loan:
        async with self._lock_for(item_id):
            async with self._uow_factory() as uow:
                student = await uow.students.get_by_id(student_id)
                if student is None:
                    raise StudentNotFoundError(student_id)

                item = await uow.items.lock_for_update(item_id)
                if item is None:
                    raise ItemNotFoundError(item_id)

                existing = await uow.loans.find_open(student_id, item_id)
                if existing is not None:
                    raise AlreadyBorrowedError(student_id, item_id, existing.id)

                active = await uow.loans.count_active_for_item(item_id)
                if active >= item.total_copies:
                    raise NoCopiesAvailableError(item_id, item.total_copies)

                now = self.now()
                loan = Loan.open(student_id, item_id, now, self.loan_period_days, method)
                await uow.loans.add(loan)

                item.reconcile(active + 1)
                await uow.items.adjust_copies(item_id, item.available_copies)
                await uow.commit()

        logger.info(
            "Loan opened",
            loan_id=loan.id,
            student_id=student_id,
            item_id=item_id,
            method=loan.method.value,
            due_date=loan.due_date.isoformat(),
            available_copies=item.available_copies,
        )
        return loan

    async def close_loan(self, loan_id: str) -> Loan:
        async with self._uow_factory() as uow:
            pending = await uow.loans.get_by_id(loan_id)
        if pending is None:
            raise LoanNotFoundError(loan_id)

        async with self._lock_for(pending.item_id):
            async with self._uow_factory() as uow:
                item = await uow.items.lock_for_update(pending.item_id)
                loan = await uow.loans.get_by_id(loan_id)
                if loan is None:
                    raise LoanNotFoundError(loan_id)
                if loan.returned:
                    raise AlreadyReturnedError(loan_id)

                loan.close(self.now(), self.fine_per_day)
                await uow.loans.update(loan)

                available = None
                if item is not None:
                    active = await uow.loans.count_active_for_item(item.id)
                    item.reconcile(active)
                    available = item.available_copies
                    await uow.items.adjust_copies(item.id, available)
                await uow.commit()

        logger.info(
            "Loan closed",
            loan_id=loan.id,
            student_id=loan.student_id,
            item_id=loan.item_id,
            fine_accrued=str(loan.fine_accrued),
            available_copies=available,
        )
        return loan

    async def settle_fine(self, student_id: str) -> int:
        """
        Mark every loan of the student whose fine exceeds what was paid as paid in full.
        Open loans are observed first so the settled amount is current; they keep
        accruing afterwards.
        """
        settled = 0
        async with self._uow_factory() as uow:
            if await uow.students.get_by_id(student_id) is None:
                raise StudentNotFoundError(student_id)

            now = self.now()
            for loan in await uow.loans.list_for_student(student_id):
                changed = loan.observe_fine(now, self.fine_per_day)
                if loan.settle(now):
                    settled += 1
                    changed = True
                if changed:
                    await uow.loans.update(loan)
            await uow.commit()

        logger.info("Fines settled", student_id=student_id, settled_count=settled)
        return settled

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #

    async def get_loan(self, loan_id: str) -> Loan:
        async with self._uow_factory() as uow:
            loan = await uow.loans.get_by_id(loan_id)
        if loan is None:
            raise LoanNotFoundError(loan_id)
        return loan

    async def find_open_loan(self, student_id: str, item_id: str) -> Optional[Loan]:
        async with self._uow_factory() as uow:
            return await uow.loans.find_open(student_id, item_id)

    async def list_active_loans(self, student_id: str) -> List[LoanView]:
        async with self._uow_factory() as uow:
            if await uow.students.get_by_id(student_id) is None:
                raise StudentNotFoundError(student_id)
            loans = await uow.loans.list_active_for_student(student_id)
            return await self._views(uow, loans)

    async def outstanding_for_student(self, student_id: str) -> Decimal:
        """Unpaid fines across all of the student's loans, open ones observed live."""
        now = self.now()
        async with self._uow_factory() as uow:
            loans = await uow.loans.list_for_student(student_id)
        total = Decimal("0")
        for loan in loans:
            total += max(Decimal("0"), loan.current_fine(now, self.fine_per_day) - loan.fine_paid)
        return total

    async def list_fine_queue(self) -> List[LoanView]:
        """Overdue, unreturned loans with live fines, oldest due date first."""
        async with self._uow_factory() as uow:
            loans = await uow.loans.list_overdue(self.now())
            return await self._views(uow, loans)

    async def count_active_loans(self) -> int:
        async with self._uow_factory() as uow:
            return await uow.loans.count_active()

    async def list_recent_activity(self, limit: int = 50) -> List[LoanView]:
        async with self._uow_factory() as uow:
            loans = await uow.loans.list_recent(limit)
            return await self._views(uow, loans)

    async def list_loan_history(self, skip: int = 0, limit: int = 50) -> LoanHistoryPage:
        """Every loan ever recorded, newest borrow first, with the borrower's name."""
        async with self._uow_factory() as uow:
            total = await uow.loans.count_all()
            loans = await uow.loans.list_history(skip, limit)
            views = await self._views(uow, loans, with_students=True)
        return LoanHistoryPage(views=views, total=total, skip=skip, limit=limit)

    async def _views(
        self, uow: CirculationUnitOfWork, loans: List[Loan], *, with_students: bool = False
    ) -> List[LoanView]:
        now = self.now()
        items: dict[str, Optional[Item]] = {}
        names: dict[str, Optional[str]] = {}
        views: List[LoanView] = []
        for loan in loans:
            if loan.item_id not in items:
                items[loan.item_id] = await uow.items.get_by_id(loan.item_id)
            item = items[loan.item_id]
            if with_students and loan.student_id not in names:
                student = await uow.students.get_by_id(loan.student_id)
                names[loan.student_id] = student.full_name if student else None
            fine = loan.current_fine(now, self.fine_per_day)
            views.append(
                LoanView(
                    loan=loan,
                    item_title=item.title if item else None,
                    item_author=item.author if item else None,
                    days_overdue=loan.days_overdue(now),
                    fine=fine,
                    outstanding=max(Decimal("0"), fine - loan.fine_paid),
                    observed_at=now,
                    student_name=names.get(loan.student_id),
                )
            )
        return views
