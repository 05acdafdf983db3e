"""Minimal student directory / item catalog use cases: register and fetch."""

from __future__ import annotations

from typing import Callable, Optional

from src.library.domain.entities import Item, Student
from src.library.domain.exceptions import DuplicateIdentifierError, ItemNotFoundError, StudentNotFoundError
from src.library.domain.protocols.unit_of_work import CirculationUnitOfWork
from src.shared.logging import get_logger

logger = get_logger(__name__)


class CatalogService:
    def __init__(self, uow_factory: Callable[[], CirculationUnitOfWork]):
        self._uow_factory = uow_factory

    async def register_student(self, student: Student) -> Student:
        async with self._uow_factory() as uow:
            if await uow.students.get_by_student_number(student.student_number):
                raise DuplicateIdentifierError("student_number", student.student_number)
            if student.physical_id and await self._physical_id_taken(uow, student.physical_id):
                raise DuplicateIdentifierError("physical_id", student.physical_id)
            await uow.students.add(student)
            await uow.commit()
        logger.info("Student registered", student_id=student.id, student_number=student.student_number)
        return student

    async def get_student(self, student_id: str) -> Student:
        async with self._uow_factory() as uow:
            student = await uow.students.get_by_id(student_id)
            if student is None:
                raise StudentNotFoundError(student_id)
            student.active_loan_ids = [loan.id for loan in await uow.loans.list_active_for_student(student_id)]
        return student

    async def add_item(self, item: Item) -> Item:
        async with self._uow_factory() as uow:
            if await uow.items.get_by_accession_number(item.accession_number):
                raise DuplicateIdentifierError("accession_number", item.accession_number)
            if item.physical_id and await self._physical_id_taken(uow, item.physical_id):
                raise DuplicateIdentifierError("physical_id", item.physical_id)
            await uow.items.add(item)
            await uow.commit()
        logger.info("Item catalogued", item_id=item.id, accession_number=item.accession_number)
        return item

    async def get_item(self, item_id: str) -> Item:
        async with self._uow_factory() as uow:
            item = await uow.items.get_by_id(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    @staticmethod
    async def _physical_id_taken(uow: CirculationUnitOfWork, physical_id: Optional[str]) -> bool:
        # A scanner id must identify exactly one record across both directories
        if not physical_id:
            return False
        return bool(
            await uow.students.get_by_physical_id(physical_id)
            or await uow.items.get_by_physical_id(physical_id)
        )
