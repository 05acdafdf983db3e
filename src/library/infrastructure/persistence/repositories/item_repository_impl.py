"""
SQLAlchemy Implementation of Item Repository
Maps between Item domain entity and ItemModel ORM
"""
from __future__ import annotations

from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.library.domain.entities import Item
from src.library.domain.exceptions import DuplicateIdentifierError
from src.library.domain.protocols.repositories import ItemRepository
from src.library.infrastructure.persistence.models import ItemModel
from src.shared.logging import get_logger
from src.shared.utils.clock import utcnow

logger = get_logger(__name__)


class SQLAlchemyItemRepository(ItemRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ItemModel) -> Item:
        """Convert ORM model to domain entity."""
        return Item(
            id=model.id,
            title=model.title,
            author=model.author,
            category=model.category,
            accession_number=model.accession_number,
            physical_id=model.physical_id,
            total_copies=model.total_copies,
            available_copies=model.available_copies,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def _one(self, stmt) -> Optional[Item]:
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_by_id(self, item_id: str) -> Optional[Item]:
        return await self._one(select(ItemModel).where(ItemModel.id == item_id))

    async def get_by_physical_id(self, physical_id: str) -> Optional[Item]:
        return await self._one(select(ItemModel).where(ItemModel.physical_id == physical_id))

    async def get_by_accession_number(self, accession_number: str) -> Optional[Item]:
        return await self._one(select(ItemModel).where(ItemModel.accession_number == accession_number))

    async def lock_for_update(self, item_id: str) -> Optional[Item]:
        # FOR UPDATE is a no-op on SQLite, where the writer lock serialises instead
        stmt = (
            select(ItemModel)
            .where(ItemModel.id == item_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return await self._one(stmt)

    async def adjust_copies(self, item_id: str, available_copies: int) -> None:
        await self.session.execute(
            update(ItemModel)
            .where(ItemModel.id == item_id)
            .values(available_copies=available_copies, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )

    async def add(self, item: Item) -> Item:
        model = ItemModel(
            id=item.id,
            title=item.title,
            author=item.author,
            category=item.category,
            accession_number=item.accession_number,
            physical_id=item.physical_id,
            total_copies=item.total_copies,
            available_copies=item.available_copies,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )
        self.session.add(model)
        try:
            await self.session.flush()
        except IntegrityError as e:
            logger.warning("Item insert rejected", accession_number=item.accession_number, error=str(e.orig))
            raise DuplicateIdentifierError("accession_number", item.accession_number) from e
        return item
