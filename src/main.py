from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from starlette.middleware.base import BaseHTTPMiddleware

from src.dependencies import extract_bearer_token
from src.library.api.routes import circulation_router, items_router, students_router
from src.library.application.worker import OverdueScheduler
from src.library.infrastructure.dependencies import build_circulation_container
from src.shared import security
from src.shared.config import Settings, get_settings
from src.shared.database import close_database, get_session_factory, init_database
from src.shared.exceptions import AuthenticationError, register_exception_handlers
from src.shared.health import router as health_router
from src.shared.http.middleware.request_id_middleware import RequestIdMiddleware
from src.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)


class JwtContextMiddleware(BaseHTTPMiddleware):
    """
    Parses Bearer JWT and attaches claims to request.state.user_claims.
    Route dependencies decide whether claims are required.
    """

    async def dispatch(self, request: Request, call_next):
        token = extract_bearer_token(request)
        request.state.user_claims = None
        if token:
            try:
                claims = security.decode_token(token)
                request.state.user_claims = {
                    "sub": claims.get("sub"),
                    "roles": claims.get("roles") or [],
                }
            except AuthenticationError as e:
                logger.info("Rejected bearer token", reason=e.message)

        return await call_next(request)


def _lifespan(settings: Settings, start_scheduler: bool):
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(settings)
        await init_database(settings.database_url, settings=settings)
        container = build_circulation_container(settings, get_session_factory())
        app.state.circulation = container

        scheduler: Optional[OverdueScheduler] = None
        if start_scheduler and settings.overdue_sweep_enabled:
            scheduler = OverdueScheduler(container.sweep, settings)
            scheduler.start()
        app.state.overdue_scheduler = scheduler

        logger.info("Application started", environment=settings.environment)
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop()
            await close_database()
            logger.info("Application stopped")

    return lifespan


def create_app(settings: Optional[Settings] = None, *, start_scheduler: bool = True) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title="Library Circulation Service API",
        version="1.0.0",
        swagger_ui_parameters={"persistAuthorization": True},
        lifespan=_lifespan(settings, start_scheduler),
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    # JWT → request.state.user_claims
    app.add_middleware(JwtContextMiddleware)
    # Outermost: X-Request-ID + log context
    app.add_middleware(RequestIdMiddleware)

    # Routers
    app.include_router(health_router)
    app.include_router(circulation_router)
    app.include_router(students_router)
    app.include_router(items_router)

    # Centralized error handling → {code, message, details?, correlation_id?}
    register_exception_handlers(app)

    # Root endpoint
    @app.get("/", tags=["Root"])
    async def root():
        """Root endpoint."""
        return {
            "message": "Library Circulation Service API",
            "docs": "/docs",
            "health": "/_health/db",
        }

    # ---- Custom OpenAPI to add Bearer auth ----
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(
            title=app.title,
            version=app.version,
            routes=app.routes,
        )
        schema.setdefault("components", {}).setdefault("securitySchemes", {})["bearerAuth"] = {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
        }
        schema["security"] = [{"bearerAuth": []}]
        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi

    return app


def get_app() -> FastAPI:
    """ASGI factory: `uvicorn src.main:get_app --factory`."""
    return create_app()
