"""
Circulation Unit of Work (Protocol)
One transaction spanning the student, item and loan repositories.
"""
from __future__ import annotations

from typing import Protocol

from src.library.domain.protocols.repositories import ItemRepository, LoanRepository, StudentRepository


class CirculationUnitOfWork(Protocol):
    """
    Usage:
        async with uow_factory() as uow:
            loan = await uow.loans.get_by_id(loan_id)
            ...
            await uow.commit()

    Leaving the block without commit() rolls back.
    """

    students: StudentRepository
    items: ItemRepository
    loans: LoanRepository

    async def __aenter__(self) -> CirculationUnitOfWork:
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...
