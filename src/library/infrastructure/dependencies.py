"""Wiring for the circulation module: one container per process (app or worker)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.library.application.services import CatalogService, CirculationService, LoanLedger
from src.library.application.worker import OverdueSweep
from src.library.domain.protocols import CirculationUnitOfWork, NotificationGateway
from src.library.infrastructure.adapters.email_gateway import build_email_gateway
from src.library.infrastructure.persistence.unit_of_work import SQLAlchemyCirculationUnitOfWork
from src.shared.config import Settings
from src.shared.utils.clock import Clock, utcnow


@dataclass
class CirculationContainer:
    settings: Settings
    uow_factory: Callable[[], CirculationUnitOfWork]
    gateway: NotificationGateway
    ledger: LoanLedger
    sweep: OverdueSweep
    circulation: CirculationService
    catalog: CatalogService


def build_circulation_container(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    gateway: Optional[NotificationGateway] = None,
    clock: Clock = utcnow,
) -> CirculationContainer:
    """
    The ledger keeps per-item locks in memory, so build this once per process
    and share it between requests.
    """

    def uow_factory() -> CirculationUnitOfWork:
        return SQLAlchemyCirculationUnitOfWork(session_factory)

    gateway = gateway or build_email_gateway(settings)
    ledger = LoanLedger(
        uow_factory,
        loan_period_days=settings.loan_period_days,
        fine_per_day=settings.fine_per_day,
        clock=clock,
    )
    sweep = OverdueSweep(
        uow_factory,
        gateway,
        fine_per_day=settings.fine_per_day,
        timezone=settings.tzinfo,
        clock=clock,
    )
    return CirculationContainer(
        settings=settings,
        uow_factory=uow_factory,
        gateway=gateway,
        ledger=ledger,
        sweep=sweep,
        circulation=CirculationService(uow_factory, ledger, gateway),
        catalog=CatalogService(uow_factory),
    )
