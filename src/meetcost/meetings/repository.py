"""Meeting repository -- owner-scoped async CRUD.

Provides MeetingRepository with the session_factory callable pattern.
Every method takes owner_id as first argument and every query filters
on it, so a meeting owned by someone else behaves exactly like a
missing one.

``total_cost`` is derived here, on every create and every update that
touches a cost input, with the same ``calculate_cost`` used by the live
preview. Reads are retried on transient connection errors.
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.meetcost.config import get_settings
from src.meetcost.core.monitoring import meetings_written_total
from src.meetcost.meetings.cost import calculate_cost
from src.meetcost.meetings.models import MeetingModel
from src.meetcost.meetings.schemas import Meeting, MeetingInput, MeetingUpdate

logger = structlog.get_logger(__name__)

COST_INPUT_FIELDS = frozenset(
    {"attendees_count", "duration_minutes", "average_hourly_rate"}
)

_read_retry = retry(
    retry=retry_if_exception_type(OperationalError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, max=2),
    reraise=True,
)


# ── Serialization Helpers ───────────────────────────────────────────────────


def _model_to_meeting(model: MeetingModel) -> Meeting:
    """Convert MeetingModel to Meeting schema."""
    return Meeting(
        id=model.id,
        user_id=model.user_id,
        title=model.title,
        description=model.description,
        attendees_count=model.attendees_count,
        duration_minutes=model.duration_minutes,
        average_hourly_rate=model.average_hourly_rate,
        total_cost=model.total_cost,
        currency=model.currency,
        meeting_date=model.meeting_date,
        created_at=model.created_at,
        updated_at=model.updated_at or model.created_at,
    )


def derive_total_cost(model: MeetingModel) -> None:
    """Recompute the stored cost from the model's current cost inputs."""
    model.total_cost = calculate_cost(
        model.attendees_count,
        model.average_hourly_rate,
        model.duration_minutes,
    )


def build_meeting_model(owner_id: str, data: MeetingInput) -> MeetingModel:
    """Create an unsaved MeetingModel with ids, timestamps and cost filled in."""
    now = datetime.now(timezone.utc)
    fields = data.model_dump()
    fields["currency"] = fields.get("currency") or get_settings().DEFAULT_CURRENCY
    model = MeetingModel(
        id=uuid.uuid4(),
        user_id=owner_id,
        created_at=now,
        updated_at=now,
        **fields,
    )
    derive_total_cost(model)
    return model


def apply_meeting_update(model: MeetingModel, data: MeetingUpdate) -> set[str]:
    """Apply the supplied fields of ``data`` to ``model``.

    Re-derives the cost when any cost input changed. Returns the names of
    the fields that were applied.
    """
    changes: dict[str, Any] = data.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(model, key, value)
    if COST_INPUT_FIELDS & changes.keys():
        derive_total_cost(model)
    model.updated_at = datetime.now(timezone.utc)
    return set(changes)


def _parse_id(meeting_id: str | uuid.UUID) -> uuid.UUID | None:
    if isinstance(meeting_id, uuid.UUID):
        return meeting_id
    try:
        return uuid.UUID(meeting_id)
    except (ValueError, TypeError):
        return None


# ── Repository ──────────────────────────────────────────────────────────────


class MeetingRepository:
    """Async CRUD operations for meetings, scoped by owner.

    Args:
        session_factory: Async callable that yields AsyncSession instances.
    """

    def __init__(
        self, session_factory: Callable[..., AsyncGenerator[AsyncSession, None]]
    ) -> None:
        self._session_factory = session_factory

    async def create_meeting(self, owner_id: str, data: MeetingInput) -> Meeting:
        """Persist a validated meeting and return it with its derived cost.

        Args:
            owner_id: Opaque owner identity.
            data: Sanitized MeetingInput from the validator.

        Returns:
            Meeting with generated id, timestamps and total_cost.
        """
        async for session in self._session_factory():
            model = build_meeting_model(owner_id, data)
            session.add(model)
            await session.commit()
            await session.refresh(model)
            meetings_written_total.labels(operation="create").inc()
            logger.info(
                "meetings.created",
                owner_id=owner_id,
                meeting_id=str(model.id),
                total_cost=str(model.total_cost),
            )
            return _model_to_meeting(model)

    @_read_retry
    async def get_meeting(
        self, owner_id: str, meeting_id: str | uuid.UUID
    ) -> Meeting | None:
        """Get one of the owner's meetings, or None if absent or not theirs."""
        parsed = _parse_id(meeting_id)
        if parsed is None:
            return None
        async for session in self._session_factory():
            model = await self._get_model(session, owner_id, parsed)
            return _model_to_meeting(model) if model is not None else None

    async def update_meeting(
        self, owner_id: str, meeting_id: str | uuid.UUID, data: MeetingUpdate
    ) -> Meeting | None:
        """Apply a validated partial update.

        Returns:
            Updated Meeting, or None if absent or not owned by ``owner_id``.
        """
        parsed = _parse_id(meeting_id)
        if parsed is None:
            return None
        async for session in self._session_factory():
            model = await self._get_model(session, owner_id, parsed)
            if model is None:
                return None
            changed = apply_meeting_update(model, data)
            await session.commit()
            await session.refresh(model)
            meetings_written_total.labels(operation="update").inc()
            logger.info(
                "meetings.updated",
                owner_id=owner_id,
                meeting_id=str(parsed),
                fields=sorted(changed),
            )
            return _model_to_meeting(model)

    async def delete_meeting(self, owner_id: str, meeting_id: str | uuid.UUID) -> bool:
        """Delete one of the owner's meetings. Returns False if nothing matched."""
        parsed = _parse_id(meeting_id)
        if parsed is None:
            return False
        async for session in self._session_factory():
            model = await self._get_model(session, owner_id, parsed)
            if model is None:
                return False
            await session.delete(model)
            await session.commit()
            meetings_written_total.labels(operation="delete").inc()
            logger.info("meetings.deleted", owner_id=owner_id, meeting_id=str(parsed))
            return True
        return False

    @_read_retry
    async def list_meetings(
        self, owner_id: str, limit: int | None = None, offset: int = 0
    ) -> list[Meeting]:
        """List the owner's meetings, newest first.

        Args:
            owner_id: Opaque owner identity.
            limit: Maximum rows to return (None for all).
            offset: Rows to skip.
        """
        async for session in self._session_factory():
            stmt = (
                select(MeetingModel)
                .where(MeetingModel.user_id == owner_id)
                .order_by(MeetingModel.created_at.desc())
                .offset(offset)
            )
            if limit is not None:
                stmt = stmt.limit(limit)
            result = await session.execute(stmt)
            return [_model_to_meeting(m) for m in result.scalars().all()]
        return []

    @staticmethod
    async def _get_model(
        session: AsyncSession, owner_id: str, meeting_id: uuid.UUID
    ) -> MeetingModel | None:
        stmt = select(MeetingModel).where(
            MeetingModel.user_id == owner_id,
            MeetingModel.id == meeting_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
