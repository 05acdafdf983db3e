import asyncio

import pytest
from sqlalchemy.exc import OperationalError

from src.library.domain.exceptions import PersistenceTimeoutError
from src.library.infrastructure.persistence.unit_of_work import SQLAlchemyCirculationUnitOfWork


async def test_lock_timeout_surfaces_as_persistence_timeout(session_factory):
    with pytest.raises(PersistenceTimeoutError) as exc_info:
        async with SQLAlchemyCirculationUnitOfWork(session_factory):
            raise OperationalError("UPDATE loans", {}, Exception("database is locked"))

    err = exc_info.value
    assert err.code == "persistence_timeout"
    assert err.status_code == 503
    assert err.details == {"error": "OperationalError"}


async def test_asyncio_timeout_is_translated(session_factory):
    with pytest.raises(PersistenceTimeoutError):
        async with SQLAlchemyCirculationUnitOfWork(session_factory):
            raise asyncio.TimeoutError()


async def test_other_errors_pass_through(session_factory):
    with pytest.raises(ValueError):
        async with SQLAlchemyCirculationUnitOfWork(session_factory) as uow:
            assert uow.session is not None
            raise ValueError("boom")
