"""Structured request logging middleware.

Every request gets a request id, bound to structlog's context vars so
that events emitted while handling it (``meetings.created``,
``rules.evaluated``, ``errors.*``) carry it too. One
``http.request_completed`` event is written per request with method,
route path, status, duration and the caller's owner id when a valid
token was sent. The id is echoed back as ``X-Request-ID``.

Production renders JSON lines; other environments use the console
renderer.
"""

from __future__ import annotations

import logging
import time
import uuid

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from src.meetcost.config import Environment, get_settings
from src.meetcost.core.errors import AuthenticationError
from src.meetcost.core.security import owner_id_from_header

REQUEST_ID_HEADER = "X-Request-ID"

logger = structlog.get_logger(__name__)


def configure_structlog() -> None:
    """Route structlog through stdlib logging at ``LOG_LEVEL``."""
    settings = get_settings()
    logging.basicConfig(format="%(message)s", level=settings.LOG_LEVEL.upper())

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.ENVIRONMENT == Environment.production
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _owner_from_request(request: Request) -> str | None:
    """Owner id for log context; an absent or bad token is just None here."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    try:
        return owner_id_from_header(auth_header)
    except AuthenticationError:
        return None


def _level_for(status_code: int):
    if status_code >= 500:
        return logger.error
    if status_code >= 400:
        return logger.warning
    return logger.info


class LoggingMiddleware(BaseHTTPMiddleware):
    """Bind a request id, time the request and log its outcome."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        owner_id = _owner_from_request(request)
        started = time.monotonic()

        with structlog.contextvars.bound_contextvars(
            request_id=request_id, owner_id=owner_id
        ):
            status_code = 500
            try:
                response = await call_next(request)
                status_code = response.status_code
                response.headers[REQUEST_ID_HEADER] = request_id
                return response
            finally:
                _level_for(status_code)(
                    "http.request_completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=status_code,
                    duration_ms=round((time.monotonic() - started) * 1000, 2),
                )
