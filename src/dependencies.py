# src/dependencies.py
from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncGenerator, List, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.library.application.services import CatalogService, CirculationService, LoanLedger
from src.library.application.worker import OverdueSweep
from src.library.infrastructure.dependencies import CirculationContainer
from src.shared.database import get_async_session
from src.shared.error_codes import ERROR_CODES
from src.shared.exceptions import UnauthorizedError


# --- DB session ---
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with get_async_session() as session:
        yield session


# --- Circulation container (built once in the app lifespan) ---
def get_container(request: Request) -> CirculationContainer:
    container = getattr(request.app.state, "circulation", None)
    if container is None:
        raise RuntimeError("Circulation container not initialised; is the app lifespan running?")
    return container


def get_circulation_service(container: CirculationContainer = Depends(get_container)) -> CirculationService:
    return container.circulation


def get_catalog_service(container: CirculationContainer = Depends(get_container)) -> CatalogService:
    return container.catalog


def get_loan_ledger(container: CirculationContainer = Depends(get_container)) -> LoanLedger:
    return container.ledger


def get_overdue_sweep(container: CirculationContainer = Depends(get_container)) -> OverdueSweep:
    return container.sweep


# --- Current staff member ---
@dataclass(frozen=True)
class CurrentStaff:
    sub: str
    roles: List[str]


async def get_current_staff(request: Request) -> CurrentStaff:
    claims = getattr(request.state, "user_claims", None)
    if not claims or not claims.get("sub"):
        data = ERROR_CODES["unauthorized"]
        raise UnauthorizedError(data["message"])
    roles = claims.get("roles") or []
    if isinstance(roles, str):
        roles = [r.strip() for r in roles.split(",") if r.strip()]
    return CurrentStaff(sub=str(claims["sub"]), roles=list(roles))


# --- JWT parsing middleware helper (used in main.py) ---
def extract_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.lower().startswith("bearer "):
        return None
    return auth.split(" ", 1)[1].strip()
