"""
SQLAlchemy Implementation of Loan Repository
Maps between Loan domain entity and LoanModel ORM
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.library.domain.entities import Loan
from src.library.domain.exceptions import AlreadyBorrowedError, LoanNotFoundError
from src.library.domain.protocols.repositories import LoanRepository
from src.library.domain.value_objects import LoanMethod
from src.library.infrastructure.persistence.models import LoanModel
from src.shared.logging import get_logger

logger = get_logger(__name__)


class SQLAlchemyLoanRepository(LoanRepository):
    """
    SQLAlchemy implementation of LoanRepository.

    The partial unique index on open (student_id, item_id) pairs is the last
    line against a double borrow; a violation surfaces as AlreadyBorrowedError.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: LoanModel) -> Loan:
        """Convert ORM model to domain entity."""
        return Loan(
            id=model.id,
            student_id=model.student_id,
            item_id=model.item_id,
            borrowed_at=model.borrowed_at,
            due_date=model.due_date,
            method=LoanMethod(model.method),
            returned=model.returned,
            returned_at=model.returned_at,
            fine_accrued=model.fine_accrued,
            fine_paid=model.fine_paid,
            last_notification_date=model.last_notification_date,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def _many(self, stmt) -> List[Loan]:
        result = await self.session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def get_by_id(self, loan_id: str) -> Optional[Loan]:
        result = await self.session.execute(
            select(LoanModel).where(LoanModel.id == loan_id).execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find_open(self, student_id: str, item_id: str) -> Optional[Loan]:
        result = await self.session.execute(
            select(LoanModel).where(
                LoanModel.student_id == student_id,
                LoanModel.item_id == item_id,
                LoanModel.returned.is_(False),
            )
        )
        model = result.scalars().first()
        return self._to_entity(model) if model else None

    async def count_active_for_item(self, item_id: str) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(LoanModel)
            .where(LoanModel.item_id == item_id, LoanModel.returned.is_(False))
        )
        return int(result.scalar_one())

    async def count_active(self) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(LoanModel).where(LoanModel.returned.is_(False))
        )
        return int(result.scalar_one())

    async def list_active_for_student(self, student_id: str) -> List[Loan]:
        return await self._many(
            select(LoanModel)
            .where(LoanModel.student_id == student_id, LoanModel.returned.is_(False))
            .order_by(LoanModel.due_date.asc())
        )

    async def list_for_student(self, student_id: str) -> List[Loan]:
        return await self._many(
            select(LoanModel)
            .where(LoanModel.student_id == student_id)
            .order_by(LoanModel.borrowed_at.asc())
        )

    async def list_overdue_ids(self, now: datetime) -> List[str]:
        result = await self.session.execute(
            select(LoanModel.id)
            .where(LoanModel.returned.is_(False), LoanModel.due_date < now)
            .order_by(LoanModel.due_date.asc())
        )
        return list(result.scalars().all())

    async def list_overdue(self, now: datetime) -> List[Loan]:
        return await self._many(
            select(LoanModel)
            .where(LoanModel.returned.is_(False), LoanModel.due_date < now)
            .order_by(LoanModel.due_date.asc())
        )

    async def list_recent(self, limit: int) -> List[Loan]:
        return await self._many(
            select(LoanModel).order_by(LoanModel.updated_at.desc(), LoanModel.id.desc()).limit(limit)
        )

    async def count_all(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(LoanModel))
        return int(result.scalar_one())

    async def list_history(self, skip: int, limit: int) -> List[Loan]:
        return await self._many(
            select(LoanModel)
            .order_by(LoanModel.borrowed_at.desc(), LoanModel.id.desc())
            .offset(skip)
            .limit(limit)
        )

    async def add(self, loan: Loan) -> Loan:
        model = LoanModel(
            id=loan.id,
            student_id=loan.student_id,
            item_id=loan.item_id,
            borrowed_at=loan.borrowed_at,
            due_date=loan.due_date,
            returned=loan.returned,
            returned_at=loan.returned_at,
            fine_accrued=loan.fine_accrued,
            fine_paid=loan.fine_paid,
            last_notification_date=loan.last_notification_date,
            method=loan.method.value,
            created_at=loan.created_at,
            updated_at=loan.updated_at,
        )
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning(
                "Loan insert rejected by open-pair index",
                student_id=loan.student_id,
                item_id=loan.item_id,
                error=str(e.orig),
            )
            raise AlreadyBorrowedError(loan.student_id, loan.item_id) from e
        return loan

    async def update(self, loan: Loan) -> Loan:
        model = await self.session.get(LoanModel, loan.id)
        if model is None:
            raise LoanNotFoundError(loan.id)
        # due_date and borrowed_at are immutable after creation
        model.returned = loan.returned
        model.returned_at = loan.returned_at
        model.fine_accrued = loan.fine_accrued
        model.fine_paid = loan.fine_paid
        model.last_notification_date = loan.last_notification_date
        model.updated_at = loan.updated_at
        await self.session.flush()
        return loan
