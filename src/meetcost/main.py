"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS,
Sentry, the error taxonomy handlers, lifespan events for database
initialization, and the v1 API router.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.meetcost.api.middleware import LoggingMiddleware
from src.meetcost.api.middleware.logging import configure_structlog
from src.meetcost.api.v1.router import router as v1_router
from src.meetcost.config import get_settings
from src.meetcost.core.database import close_db, get_session, init_db
from src.meetcost.core.errors import register_exception_handlers
from src.meetcost.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.meetcost.meetings.repository import MeetingRepository


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB and Sentry on startup, close on shutdown."""
    log = structlog.get_logger(__name__)
    settings = get_settings()
    configure_structlog()
    await init_db()

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    app.state.meeting_repository = MeetingRepository(get_session)
    log.info("app.started", environment=settings.ENVIRONMENT.value)

    yield

    app.state.meeting_repository = None
    await close_db()
    log.info("app.stopped")


def _cors_origins(raw: str) -> list[str]:
    if raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Meeting Cost API",
        version="0.1.0",
        description="Log meetings, see what they cost, and find the ones worth cutting",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)

    origins = _cors_origins(settings.CORS_ALLOWED_ORIGINS)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=origins != ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(LoggingMiddleware)

    # Outermost: records metrics for all requests
    app.add_middleware(MetricsMiddleware)

    register_exception_handlers(app)
    app.include_router(v1_router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
