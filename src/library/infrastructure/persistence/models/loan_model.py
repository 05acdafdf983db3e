"""
SQLAlchemy ORM Model for Loan
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Numeric, String, text
from sqlalchemy.orm import Mapped, mapped_column

from src.shared.database.base_model import Base


class LoanModel(Base):
    """ORM model for the loans table."""

    __tablename__ = "loans"
    __table_args__ = (
        # At most one unreturned loan per (student, item)
        Index(
            "uq_loans_open_student_item",
            "student_id",
            "item_id",
            unique=True,
            postgresql_where=text("returned = false"),
            sqlite_where=text("returned = 0"),
        ),
        Index("ix_loans_returned_due_date", "returned", "due_date"),
    )

    student_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("students.id"),
        nullable=False,
        index=True,
    )

    item_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("items.id"),
        nullable=False,
        index=True,
    )

    borrowed_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    returned_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=False), nullable=True)
    returned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    fine_accrued: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    fine_paid: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))

    last_notification_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    method: Mapped[str] = mapped_column(String(16), nullable=False, default="manual")
