"""REST endpoints for logging meetings and previewing their cost.

Every write goes through the validator first; a failed validation is
returned as a 422 with the full list of field messages. Costs are never
accepted from clients: the repository derives them with the same
formula the preview endpoint uses.

All endpoints are scoped to the authenticated owner. A meeting owned by
someone else is reported as not found.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Response, status
from pydantic import BaseModel

from src.meetcost.api.deps import get_current_owner, get_meeting_repository
from src.meetcost.core.errors import InvalidInputError, NotFoundError
from src.meetcost.meetings.cost import calculate_cost
from src.meetcost.meetings.schemas import Meeting
from src.meetcost.meetings.validation import (
    validate_cost_inputs,
    validate_meeting_input,
    validate_meeting_update,
)

router = APIRouter(prefix="/meetings", tags=["meetings"])

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


# ── Response Schemas ─────────────────────────────────────────────────────────


class MeetingResponse(BaseModel):
    """Response for meeting data, serializes money as JSON numbers."""

    id: str
    user_id: str
    title: str
    description: str | None = None
    attendees_count: int
    duration_minutes: int
    average_hourly_rate: float
    total_cost: float | None = None
    currency: str | None = None
    meeting_date: datetime | None = None
    created_at: datetime
    updated_at: datetime


class CostPreviewResponse(BaseModel):
    """Live cost for a set of not-yet-saved inputs."""

    attendees_count: int
    duration_minutes: int
    average_hourly_rate: float
    total_cost: float


# ── Conversion Helpers ───────────────────────────────────────────────────────


def meeting_to_response(m: Meeting) -> MeetingResponse:
    """Convert Meeting schema to MeetingResponse."""
    return MeetingResponse(
        id=str(m.id),
        user_id=m.user_id,
        title=m.title,
        description=m.description,
        attendees_count=m.attendees_count,
        duration_minutes=m.duration_minutes,
        average_hourly_rate=float(m.average_hourly_rate),
        total_cost=float(m.total_cost) if m.total_cost is not None else None,
        currency=m.currency,
        meeting_date=m.meeting_date,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


# ── REST Endpoints ───────────────────────────────────────────────────────────


@router.post("/cost-preview", response_model=CostPreviewResponse)
async def preview_cost(
    body: dict[str, Any] = Body(...),
    owner_id: str = Depends(get_current_owner),
) -> CostPreviewResponse:
    """Compute the cost of unsaved inputs (used while filling the form)."""
    cleaned, errors = validate_cost_inputs(body)
    if errors:
        raise InvalidInputError(errors)

    total = calculate_cost(
        cleaned["attendees_count"],
        cleaned["average_hourly_rate"],
        cleaned["duration_minutes"],
    )
    return CostPreviewResponse(
        attendees_count=cleaned["attendees_count"],
        duration_minutes=cleaned["duration_minutes"],
        average_hourly_rate=float(cleaned["average_hourly_rate"]),
        total_cost=float(total),
    )


@router.post("", response_model=MeetingResponse, status_code=status.HTTP_201_CREATED)
async def create_meeting(
    body: dict[str, Any] = Body(...),
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> MeetingResponse:
    """Validate and log a new meeting. Any ``total_cost`` in the body is ignored."""
    result = validate_meeting_input(body)
    if not result.is_valid:
        raise InvalidInputError(result.errors, context={"owner_id": owner_id})

    meeting = await repo.create_meeting(owner_id, result.data)
    return meeting_to_response(meeting)


@router.get("", response_model=list[MeetingResponse])
async def list_meetings(
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> list[MeetingResponse]:
    """List the caller's meetings, newest first."""
    meetings = await repo.list_meetings(owner_id, limit=limit, offset=offset)
    return [meeting_to_response(m) for m in meetings]


@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting(
    meeting_id: str,
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> MeetingResponse:
    """Get one of the caller's meetings."""
    meeting = await repo.get_meeting(owner_id, meeting_id)
    if meeting is None:
        raise NotFoundError(context={"meeting_id": meeting_id})
    return meeting_to_response(meeting)


@router.patch("/{meeting_id}", response_model=MeetingResponse)
async def update_meeting(
    meeting_id: str,
    body: dict[str, Any] = Body(...),
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> MeetingResponse:
    """Partially update a meeting; only the supplied fields are validated."""
    result = validate_meeting_update(body)
    if not result.is_valid:
        raise InvalidInputError(
            result.errors, context={"owner_id": owner_id, "meeting_id": meeting_id}
        )

    meeting = await repo.update_meeting(owner_id, meeting_id, result.data)
    if meeting is None:
        raise NotFoundError(context={"meeting_id": meeting_id})
    return meeting_to_response(meeting)


@router.delete("/{meeting_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_meeting(
    meeting_id: str,
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> Response:
    """Delete one of the caller's meetings."""
    deleted = await repo.delete_meeting(owner_id, meeting_id)
    if not deleted:
        raise NotFoundError(context={"meeting_id": meeting_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)
