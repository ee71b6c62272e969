"""FastAPI dependency injection for owner identity and the meeting store.

These dependencies are used in endpoint function signatures so handlers
receive the caller's owner id and the repository explicitly instead of
reaching for ambient clients.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request

from src.meetcost.core.errors import StoreError
from src.meetcost.core.security import owner_id_from_header


async def get_current_owner(request: Request) -> str:
    """Return the opaque owner id of the authenticated caller.

    Raises:
        AuthenticationError(401): If no valid bearer token is provided.
    """
    return owner_id_from_header(request.headers.get("Authorization"))


def get_meeting_repository(request: Request) -> Any:
    """Retrieve MeetingRepository from app.state, 503 if not available."""
    repo = getattr(request.app.state, "meeting_repository", None)
    if repo is None:
        raise StoreError(context={"reason": "meeting_repository_not_initialized"})
    return repo
