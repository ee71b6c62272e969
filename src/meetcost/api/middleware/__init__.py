"""API middleware package."""

from src.meetcost.api.middleware.logging import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
