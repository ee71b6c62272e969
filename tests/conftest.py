"""Shared fixtures for the meeting cost test suite.

Provides:
- InMemoryMeetingRepository: repository test double (no database)
- meeting_factory: builds Meeting schemas with a derived cost
- client_and_repo: AsyncClient over the real app with the owner overridden
- auth_headers: builds bearer headers for a real signed token
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.meetcost.core.security import create_access_token
from src.meetcost.meetings.cost import calculate_cost
from src.meetcost.meetings.models import MeetingModel
from src.meetcost.meetings.repository import (
    _model_to_meeting,
    apply_meeting_update,
    build_meeting_model,
)
from src.meetcost.meetings.schemas import Meeting, MeetingInput, MeetingUpdate

OWNER_ID = "owner-alpha"
OTHER_OWNER_ID = "owner-beta"

# Wednesday; its week runs from Monday 2026-10-12 00:00 to Monday 2026-10-19 00:00
NOW = datetime(2026, 10, 14, 12, 0, tzinfo=timezone.utc)


# ── In-Memory Test Double ────────────────────────────────────────────────────


class InMemoryMeetingRepository:
    """In-memory MeetingRepository for testing without database.

    Uses the same model builders as the real repository so derived costs,
    default currency and timestamps behave identically.
    """

    def __init__(self) -> None:
        self._models: dict[uuid.UUID, MeetingModel] = {}

    def _owned(self, owner_id: str, meeting_id: Any) -> MeetingModel | None:
        try:
            parsed = meeting_id if isinstance(meeting_id, uuid.UUID) else uuid.UUID(meeting_id)
        except (ValueError, TypeError):
            return None
        model = self._models.get(parsed)
        if model is None or model.user_id != owner_id:
            return None
        return model

    async def create_meeting(self, owner_id: str, data: MeetingInput) -> Meeting:
        model = build_meeting_model(owner_id, data)
        self._models[model.id] = model
        return _model_to_meeting(model)

    async def get_meeting(self, owner_id: str, meeting_id: Any) -> Meeting | None:
        model = self._owned(owner_id, meeting_id)
        return _model_to_meeting(model) if model is not None else None

    async def update_meeting(
        self, owner_id: str, meeting_id: Any, data: MeetingUpdate
    ) -> Meeting | None:
        model = self._owned(owner_id, meeting_id)
        if model is None:
            return None
        apply_meeting_update(model, data)
        return _model_to_meeting(model)

    async def delete_meeting(self, owner_id: str, meeting_id: Any) -> bool:
        model = self._owned(owner_id, meeting_id)
        if model is None:
            return False
        del self._models[model.id]
        return True

    async def list_meetings(
        self, owner_id: str, limit: int | None = None, offset: int = 0
    ) -> list[Meeting]:
        owned = [m for m in self._models.values() if m.user_id == owner_id]
        owned.sort(key=lambda m: m.created_at, reverse=True)
        owned = owned[offset:]
        if limit is not None:
            owned = owned[:limit]
        return [_model_to_meeting(m) for m in owned]

    def seed(self, owner_id: str, created_at: datetime | None = None, **fields: Any) -> Meeting:
        """Insert a meeting directly, optionally back-dating its creation."""
        values = {
            "title": "Weekly sync",
            "description": "Review the roadmap with @alice",
            "attendees_count": 4,
            "duration_minutes": 30,
            "average_hourly_rate": Decimal("50"),
        }
        values.update(fields)
        model = build_meeting_model(owner_id, MeetingInput(**values))
        if created_at is not None:
            model.created_at = created_at
            model.updated_at = created_at
        self._models[model.id] = model
        return _model_to_meeting(model)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def meeting_factory() -> Callable[..., Meeting]:
    """Build Meeting schemas; total_cost is derived unless given explicitly."""

    def _make(**overrides: Any) -> Meeting:
        fields: dict[str, Any] = {
            "id": uuid.uuid4(),
            "user_id": OWNER_ID,
            "title": "Weekly sync",
            "description": "Review the roadmap with @alice",
            "attendees_count": 4,
            "duration_minutes": 30,
            "average_hourly_rate": Decimal("50"),
            "currency": "EUR",
            "meeting_date": None,
            "created_at": NOW,
            "updated_at": NOW,
        }
        fields.update(overrides)
        if "total_cost" not in overrides:
            fields["total_cost"] = calculate_cost(
                fields["attendees_count"],
                fields["average_hourly_rate"],
                fields["duration_minutes"],
            )
        return Meeting(**fields)

    return _make


# ── App Fixtures ─────────────────────────────────────────────────────────────


def _bearer(owner_id: str = OWNER_ID) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(owner_id)}"}


@pytest.fixture
def auth_headers() -> Callable[..., dict[str, str]]:
    """Build an Authorization header carrying a real signed access token."""
    return _bearer


@pytest.fixture
def repo() -> InMemoryMeetingRepository:
    return InMemoryMeetingRepository()


@pytest.fixture
def app(repo):
    """Full application with the in-memory repository on app.state."""
    from src.meetcost.main import create_app

    application = create_app()
    application.state.meeting_repository = repo
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated client; pass auth_headers() per request."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def client_and_repo(app, repo):
    """Client whose caller is always OWNER_ID (owner dependency overridden)."""
    from src.meetcost.api.deps import get_current_owner

    app.dependency_overrides[get_current_owner] = lambda: OWNER_ID

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac, repo

    app.dependency_overrides.clear()
