"""
SQLAlchemy ORM Model for Item
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import CheckConstraint, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from src.shared.database.base_model import Base


class ItemModel(Base):
    """ORM model for the items table (books and other borrowable inventory)."""

    __tablename__ = "items"
    __table_args__ = (
        CheckConstraint("total_copies >= 1", name="ck_items_total_copies_positive"),
        CheckConstraint(
            "available_copies >= 0 AND available_copies <= total_copies",
            name="ck_items_available_copies_bounds",
        ),
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    author: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    category: Mapped[str] = mapped_column(String(64), nullable=False, default="book")

    accession_number: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )

    physical_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
    )

    total_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Cache of total_copies - count(active loans); rewritten on each loan transition
    available_copies: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
