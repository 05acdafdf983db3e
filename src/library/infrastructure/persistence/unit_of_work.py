"""Circulation unit of work: student, item and loan repositories over one session."""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession

from src.library.domain.exceptions import PersistenceTimeoutError
from src.library.infrastructure.persistence.repositories import (
    SQLAlchemyItemRepository,
    SQLAlchemyLoanRepository,
    SQLAlchemyStudentRepository,
)
from src.shared.database.unit_of_work import SQLAlchemyUnitOfWork
from src.shared.logging import get_logger

logger = get_logger(__name__)

# lock waits, statement timeouts, pool exhaustion
_TIMEOUT_ERRORS = (OperationalError, PoolTimeoutError, asyncio.TimeoutError)


class SQLAlchemyCirculationUnitOfWork(SQLAlchemyUnitOfWork):
    students: SQLAlchemyStudentRepository
    items: SQLAlchemyItemRepository
    loans: SQLAlchemyLoanRepository

    def _bind_repositories(self, session: AsyncSession) -> None:
        self.students = SQLAlchemyStudentRepository(session)
        self.items = SQLAlchemyItemRepository(session)
        self.loans = SQLAlchemyLoanRepository(session)

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await super().__aexit__(exc_type, exc_val, exc_tb)
        if exc_type is not None and issubclass(exc_type, _TIMEOUT_ERRORS):
            logger.warning("Circulation transaction timed out", error=type(exc_val).__name__)
            raise PersistenceTimeoutError(details={"error": type(exc_val).__name__}) from exc_val
