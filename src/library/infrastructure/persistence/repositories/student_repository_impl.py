"""
SQLAlchemy Implementation of Student Repository
Maps between Student domain entity and StudentModel ORM
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.library.domain.entities import Student
from src.library.domain.exceptions import DuplicateIdentifierError
from src.library.domain.protocols.repositories import StudentRepository
from src.library.infrastructure.persistence.models import StudentModel
from src.shared.logging import get_logger

logger = get_logger(__name__)


class SQLAlchemyStudentRepository(StudentRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: StudentModel) -> Student:
        """Convert ORM model to domain entity."""
        return Student(
            id=model.id,
            student_number=model.student_number,
            full_name=model.full_name,
            year_level=model.year_level,
            adviser=model.adviser,
            mobile=model.mobile,
            email=model.email,
            facebook=model.facebook,
            physical_id=model.physical_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def _one(self, stmt) -> Optional[Student]:
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_id(self, student_id: str) -> Optional[Student]:
        return await self._one(select(StudentModel).where(StudentModel.id == student_id))

    async def get_by_student_number(self, student_number: str) -> Optional[Student]:
        return await self._one(select(StudentModel).where(StudentModel.student_number == student_number))

    async def get_by_physical_id(self, physical_id: str) -> Optional[Student]:
        return await self._one(select(StudentModel).where(StudentModel.physical_id == physical_id))

    async def add(self, student: Student) -> Student:
        model = StudentModel(
            id=student.id,
            student_number=student.student_number,
            full_name=student.full_name,
            year_level=student.year_level,
            adviser=student.adviser,
            mobile=student.mobile,
            email=student.email,
            facebook=student.facebook,
            physical_id=student.physical_id,
            created_at=student.created_at,
            updated_at=student.updated_at,
        )
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning("Student insert rejected", student_number=student.student_number, error=str(e.orig))
            raise DuplicateIdentifierError("student_number", student.student_number) from e
        return student
