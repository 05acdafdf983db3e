from .engine import (
    create_database_engine as init_database,
    close_database_engine as close_database,
    get_engine,
    get_session_factory,
    make_session_factory,
)
from .base_model import Base
from .sessions import get_async_session
from .unit_of_work import SQLAlchemyUnitOfWork

__all__ = [
    "Base",
    "SQLAlchemyUnitOfWork",
    "get_async_session",
    "init_database",
    "close_database",
    "get_engine",
    "get_session_factory",
    "make_session_factory",
]
