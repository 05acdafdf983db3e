"""
SQLAlchemy Implementation of Unit of Work
Manages database transactions with async SQLAlchemy sessions
"""
from __future__ import annotations

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.shared.database.engine import get_session_factory
from src.shared.logging import get_logger

logger = get_logger(__name__)


class SQLAlchemyUnitOfWork:
    """
    SQLAlchemy-based Unit of Work implementation.

    Opens its own session on enter and closes it on exit. Everything done
    through the session inside the block is atomic: commit() persists it,
    leaving the block without commit() (or with an exception) rolls it back.

    Subclasses attach repositories in `_bind_repositories`.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None
        self._committed = False

    def _bind_repositories(self, session: AsyncSession) -> None:
        """Hook for subclasses."""

    async def __aenter__(self) -> SQLAlchemyUnitOfWork:
        factory = self._session_factory or get_session_factory()
        self.session = factory()
        self._committed = False
        if not self.session.in_transaction():
            await self.session.begin()
        self._bind_repositories(self.session)
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        try:
            if exc_type is not None:
                await self.rollback()
                logger.debug("UnitOfWork rolled back due to exception", exception=exc_type.__name__)
            elif not self._committed:
                # read-only units end here
                await self.rollback()
        finally:
            if self.session is not None:
                await self.session.close()
            self.session = None

    async def commit(self) -> None:
        """
        Commit the current transaction.

        Raises:
            Exception: If commit fails
        """
        assert self.session is not None, "UnitOfWork used outside its context"
        try:
            await self.session.commit()
            self._committed = True
        except Exception as e:
            await self.rollback()
            logger.error("UnitOfWork commit failed", error=str(e))
            raise

    async def rollback(self) -> None:
        if self.session is None:
            return
        await self.session.rollback()
        self._committed = False
