"""Catalogued item (book or other borrowable inventory) with copy accounting."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from src.shared.domain.base_entity import BaseEntity
from src.library.domain.value_objects import ItemStatus


class Item(BaseEntity):
    """
    A borrowable catalog entry.

    `available_copies` is a cache of `total_copies - active loans`; the ledger
    rewrites it from a fresh recount on every loan transition.
    """

    def __init__(
        self,
        title: str,
        accession_number: str,
        id: Optional[str] = None,
        author: Optional[str] = None,
        category: str = "book",
        physical_id: Optional[str] = None,
        total_copies: int = 1,
        available_copies: Optional[int] = None,
        created_at: Optional[datetime] = None,
        updated_at: Optional[datetime] = None,
    ):
        super().__init__(id, created_at, updated_at)
        if not (title or "").strip():
            raise ValueError("title must be non-empty")
        if not (accession_number or "").strip():
            raise ValueError("accession_number must be non-empty")
        if total_copies < 1:
            raise ValueError("total_copies must be >= 1")
        self.title = title.strip()
        self.author = author
        self.accession_number = accession_number.strip()
        self.category = category
        self.physical_id = physical_id
        self.total_copies = total_copies
        self.available_copies = total_copies if available_copies is None else available_copies

    @property
    def status(self) -> ItemStatus:
        return ItemStatus.AVAILABLE if self.available_copies > 0 else ItemStatus.BORROWED

    def reconcile(self, active_loans: int) -> None:
        """Recompute the cached copy count from a recount of active loans."""
        self.available_copies = max(0, min(self.total_copies, self.total_copies - active_loans))
