from __future__ import annotations

from typing import Any, Dict, Optional
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool
import structlog

from src.shared.config import Settings, get_settings

logger = structlog.get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _engine_kwargs(database_url: str, settings: Settings) -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {
        "echo": settings.debug and not settings.is_production,
        "pool_pre_ping": True,
    }
    if database_url.startswith("sqlite"):
        # aiosqlite: one writer at a time, wait for the lock instead of failing fast
        kwargs["connect_args"] = {"timeout": 30}
        return kwargs

    if settings.is_testing:
        kwargs["poolclass"] = NullPool
    else:
        kwargs.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
            pool_timeout=30,
            pool_recycle=3600,
        )
    kwargs["connect_args"] = {
        "server_settings": {
            "application_name": f"library-circulation-{settings.environment}",
            "statement_timeout": "30000",  # 30s
        }
    }
    return kwargs


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=True,
    )


async def create_database_engine(database_url: Optional[str] = None, *, settings: Optional[Settings] = None) -> AsyncEngine:
    """
    Initialize the async engine & session factory with sane pooling defaults.
    """
    global _engine, _session_factory
    settings = settings or get_settings()
    database_url = database_url or settings.database_url

    _engine = create_async_engine(database_url, **_engine_kwargs(database_url, settings))
    _session_factory = make_session_factory(_engine)

    # Smoke test
    async with _engine.begin() as conn:
        await conn.execute(sa.text("SELECT 1"))

    logger.info("Database connection established", dialect=_engine.dialect.name)
    return _engine


async def close_database_engine() -> None:
    global _engine, _session_factory
    if _engine:
        await _engine.dispose()
        logger.info("Database engine disposed")
    _engine = None
    _session_factory = None


def get_engine() -> AsyncEngine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call create_database_engine first.")
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    if _session_factory is None:
        raise RuntimeError("Session factory not initialized. Call create_database_engine first.")
    return _session_factory
