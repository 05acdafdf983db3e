"""
SQLAlchemy ORM Model for Student
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from src.shared.database.base_model import Base


class StudentModel(Base):
    """ORM model for the students table."""

    __tablename__ = "students"

    student_number: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        unique=True,
        index=True,
    )

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    year_level: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    adviser: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    mobile: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    facebook: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Value emitted by the external card/scanner system
    physical_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
    )
