"""Pydantic v2 schemas for the meeting cost domain.

Defines the data contracts shared by the validator, cost calculator,
stats aggregator, rule engine, repository and API layer: meeting input
and partial updates, persisted meetings, dashboard statistics, rule
descriptors and rule violations.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, computed_field


# ── Enums ────────────────────────────────────────────────────────────────────


class Severity(str, Enum):
    """Severity tag attached to each broken-rule descriptor."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SaturationLevel(str, Enum):
    """Cost-per-meeting-hour bucket used by the daily saturation view."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ── Meeting Input ────────────────────────────────────────────────────────────


class MeetingInput(BaseModel):
    """Sanitized, well-typed meeting fields ready for persistence.

    Only ever produced by the validator. Carries no cost: the repository
    derives ``total_cost`` from these fields on write.
    """

    title: str
    description: str | None = None
    attendees_count: int
    duration_minutes: int
    average_hourly_rate: Decimal
    currency: str | None = None
    meeting_date: datetime | None = None


class MeetingUpdate(BaseModel):
    """Sanitized partial update (only supplied fields are set)."""

    title: str | None = None
    description: str | None = None
    attendees_count: int | None = None
    duration_minutes: int | None = None
    average_hourly_rate: Decimal | None = None
    currency: str | None = None
    meeting_date: datetime | None = None


class ValidationResult(BaseModel):
    """Outcome of validating raw meeting input.

    ``data`` is populated only when ``errors`` is empty.
    """

    errors: list[str] = Field(default_factory=list)
    data: MeetingInput | MeetingUpdate | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


# ── Meeting ──────────────────────────────────────────────────────────────────


class Meeting(BaseModel):
    """A persisted meeting record owned by a single user."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    title: str
    description: str | None = None
    attendees_count: int
    duration_minutes: int
    average_hourly_rate: Decimal
    total_cost: Decimal | None = None
    currency: str | None = None
    meeting_date: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def effective_date(self) -> datetime:
        """Explicit meeting date if set, otherwise the creation timestamp."""
        return self.meeting_date or self.created_at


# ── Dashboard Aggregates ─────────────────────────────────────────────────────


class MeetingStats(BaseModel):
    """Weekly and all-time cost summary. Recomputed on every request."""

    total_cost_this_week: Decimal = Decimal(0)
    total_meetings_this_week: int = 0
    average_cost_per_meeting: Decimal = Decimal(0)
    total_meetings_all_time: int = 0
    total_cost_all_time: Decimal = Decimal(0)


class TrendPoint(BaseModel):
    """Total spend for one period of the cost trend chart."""

    label: str
    period_start: date
    period_end: date
    cost: Decimal
    savings: Decimal


class DaySaturation(BaseModel):
    """One calendar day of the saturation heatmap."""

    day: date
    meeting_count: int
    total_cost: Decimal
    cost_per_meeting_hour: Decimal
    level: SaturationLevel


# ── Rules ────────────────────────────────────────────────────────────────────


class Rule(BaseModel):
    """Static descriptor of one organizational meeting rule."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: str
    severity: Severity


class RuleViolation(BaseModel):
    """Result of evaluating one rule against the analysis window."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    title: str
    description: str
    severity: Severity
    meetings: tuple[Meeting, ...] = ()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        return len(self.meetings)
