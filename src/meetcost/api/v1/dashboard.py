"""Read-side dashboard endpoints: stats, broken rules, trend, saturation.

Each request fetches the caller's meetings exactly once and hands that
snapshot to the pure aggregators, so every number in a response is
computed from the same data.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from src.meetcost.api.deps import get_current_owner, get_meeting_repository
from src.meetcost.api.v1.meetings import MeetingResponse, meeting_to_response
from src.meetcost.config import get_settings
from src.meetcost.core.errors import InvalidInputError
from src.meetcost.core.monitoring import rule_violations_total
from src.meetcost.meetings.rules import evaluate_rules
from src.meetcost.meetings.schemas import (
    DaySaturation,
    Meeting,
    MeetingStats,
    RuleViolation,
    TrendPoint,
)
from src.meetcost.meetings.stats import (
    TREND_RANGES,
    aggregate_stats,
    cost_trend,
    daily_saturation,
    top_meetings,
)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


# ── Response Schemas ─────────────────────────────────────────────────────────


class StatsResponse(BaseModel):
    total_cost_this_week: float
    total_meetings_this_week: int
    average_cost_per_meeting: float
    total_meetings_all_time: int
    total_cost_all_time: float


class RuleViolationResponse(BaseModel):
    id: str
    title: str
    description: str
    severity: str
    count: int
    meetings: list[MeetingResponse] = Field(default_factory=list)


class TrendPointResponse(BaseModel):
    label: str
    period_start: date
    period_end: date
    cost: float
    savings: float


class SaturationResponse(BaseModel):
    day: date
    meeting_count: int
    total_cost: float
    cost_per_meeting_hour: float
    level: str


class DashboardResponse(BaseModel):
    """Stats and broken rules computed from one snapshot."""

    stats: StatsResponse
    rules: list[RuleViolationResponse] = Field(default_factory=list)


# ── Helpers ──────────────────────────────────────────────────────────────────


def _resolve_now(tz: str | None) -> datetime:
    """Current time in the caller's calendar (default DASHBOARD_TIMEZONE)."""
    name = tz or get_settings().DASHBOARD_TIMEZONE
    try:
        zone = ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise InvalidInputError([f"Unknown timezone: {name}"])
    return datetime.now(zone)


def _broken_rules(
    meetings: list[Meeting], now: datetime, period_days: int | None
) -> list[RuleViolation]:
    violations = evaluate_rules(meetings, now=now, period_days=period_days)
    for v in violations:
        rule_violations_total.labels(rule_id=v.rule_id).inc(v.count)
    return violations


def _stats_to_response(stats: MeetingStats) -> StatsResponse:
    return StatsResponse(
        total_cost_this_week=float(stats.total_cost_this_week),
        total_meetings_this_week=stats.total_meetings_this_week,
        average_cost_per_meeting=float(stats.average_cost_per_meeting),
        total_meetings_all_time=stats.total_meetings_all_time,
        total_cost_all_time=float(stats.total_cost_all_time),
    )


def _violation_to_response(v: RuleViolation) -> RuleViolationResponse:
    return RuleViolationResponse(
        id=v.rule_id,
        title=v.title,
        description=v.description,
        severity=v.severity.value,
        count=v.count,
        meetings=[meeting_to_response(m) for m in v.meetings],
    )


def _trend_to_response(p: TrendPoint) -> TrendPointResponse:
    return TrendPointResponse(
        label=p.label,
        period_start=p.period_start,
        period_end=p.period_end,
        cost=float(p.cost),
        savings=float(p.savings),
    )


def _saturation_to_response(d: DaySaturation) -> SaturationResponse:
    return SaturationResponse(
        day=d.day,
        meeting_count=d.meeting_count,
        total_cost=float(d.total_cost),
        cost_per_meeting_hour=float(d.cost_per_meeting_hour),
        level=d.level.value,
    )


# ── Endpoints ────────────────────────────────────────────────────────────────


@router.get("", response_model=DashboardResponse)
async def get_dashboard(
    tz: str | None = Query(default=None, description="IANA timezone of the caller"),
    period_days: int | None = Query(default=None, ge=1, le=365),
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> DashboardResponse:
    """Weekly/all-time stats plus broken rules, from a single fetch."""
    now = _resolve_now(tz)
    meetings = await repo.list_meetings(owner_id)
    stats = aggregate_stats(meetings, now=now)
    violations = _broken_rules(meetings, now, period_days)
    return DashboardResponse(
        stats=_stats_to_response(stats),
        rules=[_violation_to_response(v) for v in violations],
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    tz: str | None = Query(default=None, description="IANA timezone of the caller"),
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> StatsResponse:
    """Cost totals for the current week and all time."""
    now = _resolve_now(tz)
    meetings = await repo.list_meetings(owner_id)
    return _stats_to_response(aggregate_stats(meetings, now=now))


@router.get("/rules", response_model=list[RuleViolationResponse])
async def get_broken_rules(
    tz: str | None = Query(default=None),
    period_days: int | None = Query(default=None, ge=1, le=365),
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> list[RuleViolationResponse]:
    """Rules broken by meetings in the trailing analysis window."""
    now = _resolve_now(tz)
    meetings = await repo.list_meetings(owner_id)
    violations = _broken_rules(meetings, now, period_days)
    return [_violation_to_response(v) for v in violations]


@router.get("/trend", response_model=list[TrendPointResponse])
async def get_trend(
    time_range: str = Query(default="4weeks", alias="range"),
    tz: str | None = Query(default=None),
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> list[TrendPointResponse]:
    """Spend per period for the trend chart (4weeks, 12weeks or 6months)."""
    if time_range not in TREND_RANGES:
        raise InvalidInputError(
            [f"Range must be one of: {', '.join(TREND_RANGES)}"]
        )
    now = _resolve_now(tz)
    meetings = await repo.list_meetings(owner_id)
    return [_trend_to_response(p) for p in cost_trend(meetings, now, time_range)]


@router.get("/saturation", response_model=list[SaturationResponse])
async def get_saturation(
    days: int = Query(default=7, ge=1, le=31),
    tz: str | None = Query(default=None),
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> list[SaturationResponse]:
    """Per-day spend and saturation level for the heatmap."""
    now = _resolve_now(tz)
    meetings = await repo.list_meetings(owner_id)
    return [_saturation_to_response(d) for d in daily_saturation(meetings, now, days)]


@router.get("/top-meetings", response_model=list[MeetingResponse])
async def get_top_meetings(
    limit: int = Query(default=10, ge=1, le=50),
    owner_id: str = Depends(get_current_owner),
    repo: Any = Depends(get_meeting_repository),
) -> list[MeetingResponse]:
    """Most expensive meetings first."""
    meetings = await repo.list_meetings(owner_id)
    return [meeting_to_response(m) for m in top_meetings(meetings, limit)]
