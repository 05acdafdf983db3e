"""
Base Entity Contract for Domain Layer
Provides object-id identity, equality, and audit fields
"""
from __future__ import annotations

from abc import ABC
from datetime import datetime

from src.shared.utils.clock import utcnow
from src.shared.utils.ids import new_object_id


class BaseEntity(ABC):
    """
    Abstract base class for all domain entities.

    Entities are defined by their identity (id), not their attributes.
    Two entities are equal if they have the same id, regardless of other attributes.

    Attributes:
        id: Unique identifier (24-char hex object id)
        created_at: Timestamp of creation (naive UTC)
        updated_at: Timestamp of last update (naive UTC)
    """

    def __init__(
        self,
        id: str | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ) -> None:
        self.id: str = id or new_object_id()
        self.created_at: datetime = created_at or utcnow()
        self.updated_at: datetime = updated_at or utcnow()

    def __eq__(self, other: object) -> bool:
        """Entities are equal if they have the same id and type."""
        if not isinstance(other, self.__class__):
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"

    def mark_updated(self, now: datetime | None = None) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = now or utcnow()
