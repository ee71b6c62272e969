"""Application error taxonomy and FastAPI exception handlers.

Every failure that crosses the HTTP boundary is translated into one
ErrorType with a safe, user-facing message. Internal error text is only
echoed back in the development environment; it is always logged.

Validator failures are not exceptions inside the core. The transport
layer wraps a failed ValidationResult in InvalidInputError so it is
rendered consistently with everything else.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from src.meetcost.config import Environment, get_settings

logger = structlog.get_logger(__name__)


class ErrorType(str, Enum):
    VALIDATION = "validation_error"
    AUTHENTICATION = "authentication_error"
    AUTHORIZATION = "authorization_error"
    NOT_FOUND = "not_found_error"
    DATABASE = "database_error"
    UNKNOWN = "unknown_error"


DISPLAY_MESSAGES: dict[ErrorType, str] = {
    ErrorType.VALIDATION: "Invalid data",
    ErrorType.AUTHENTICATION: "You need to sign in to continue.",
    ErrorType.AUTHORIZATION: "You do not have permission to perform this action.",
    ErrorType.NOT_FOUND: "The requested resource was not found.",
    ErrorType.DATABASE: "Temporary server error. Please try again later.",
    ErrorType.UNKNOWN: "An unexpected error occurred. Please try again later.",
}


class AppError(Exception):
    """Base application error with a type, status code and safe message.

    Args:
        message: User-facing message. Defaults to the type's display message.
        context: Internal details for logs; never sent to clients.
    """

    error_type: ErrorType = ErrorType.UNKNOWN
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or DISPLAY_MESSAGES[self.error_type]
        self.context = context or {}
        super().__init__(self.message)


class InvalidInputError(AppError):
    error_type = ErrorType.VALIDATION
    status_code = 422

    def __init__(self, errors: list[str], context: dict[str, Any] | None = None) -> None:
        self.errors = list(errors)
        super().__init__(DISPLAY_MESSAGES[ErrorType.VALIDATION], context)


class AuthenticationError(AppError):
    error_type = ErrorType.AUTHENTICATION
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AppError):
    error_type = ErrorType.AUTHORIZATION
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(AppError):
    error_type = ErrorType.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class StoreError(AppError):
    error_type = ErrorType.DATABASE
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


# ── Rendering ────────────────────────────────────────────────────────────────


def _error_body(error: AppError) -> dict[str, Any]:
    body: dict[str, Any] = {
        "error": error.error_type.value,
        "message": error.message,
    }
    if isinstance(error, InvalidInputError):
        body["details"] = error.errors
    return body


def _is_development() -> bool:
    return get_settings().ENVIRONMENT == Environment.development


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    log_method = logger.warning if exc.status_code < 500 else logger.error
    log_method(
        "errors.app_error",
        error_type=exc.error_type.value,
        status_code=exc.status_code,
        path=request.url.path,
        **exc.context,
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
    return JSONResponse(
        status_code=exc.status_code, content=_error_body(exc), headers=headers
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render malformed query/path/body parameters like validator failures."""
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return await app_error_handler(request, InvalidInputError(messages))


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "errors.store_error",
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    error = StoreError()
    body = _error_body(error)
    if _is_development():
        body["debug"] = str(exc)
    return JSONResponse(status_code=error.status_code, content=body)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "errors.unhandled",
        path=request.url.path,
        error=str(exc),
        exc_info=exc,
    )
    error = AppError()
    body = _error_body(error)
    if _is_development():
        body["debug"] = str(exc)
    return JSONResponse(status_code=error.status_code, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Install the taxonomy handlers on ``app``."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
