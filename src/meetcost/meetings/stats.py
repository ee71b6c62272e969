"""Dashboard aggregation over a snapshot of an owner's meetings.

All functions are pure: they take the already-fetched meeting list and
a reference instant, and never query the store themselves. Time windows
use each meeting's effective date (meeting_date, else created_at),
bucketed in the calendar of ``now``'s timezone.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import Decimal
from zoneinfo import ZoneInfo

from src.meetcost.config import get_settings
from src.meetcost.meetings.schemas import (
    DaySaturation,
    Meeting,
    MeetingStats,
    SaturationLevel,
    TrendPoint,
)

# (number of periods, period length in days) per trend range
TREND_RANGES: dict[str, tuple[int, int]] = {
    "4weeks": (4, 7),
    "12weeks": (8, 7),
    "6months": (6, 30),
}

# Share of spend the dashboard shows as recoverable
SAVINGS_RATE = Decimal("0.2")

# Cost-per-meeting-hour thresholds for the saturation heatmap
SATURATION_MEDIUM_ABOVE = Decimal(300)
SATURATION_HIGH_ABOVE = Decimal(600)

ZERO = Decimal(0)


# ── Helpers ──────────────────────────────────────────────────────────────────


def resolve_now(now: datetime | None = None) -> datetime:
    """Return an aware reference instant carrying a real IANA zone.

    None means the current time in ``DASHBOARD_TIMEZONE``; a naive value
    is read as wall time in that zone. Calendar arithmetic (Monday 00:00,
    day starts) then follows the zone's DST rules instead of a fixed offset.
    """
    zone = ZoneInfo(get_settings().DASHBOARD_TIMEZONE)
    if now is None:
        return datetime.now(zone)
    if now.tzinfo is None:
        return now.replace(tzinfo=zone)
    return now


def _localize(value: datetime, tz: tzinfo) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def _local_day(meeting: Meeting, tz: tzinfo) -> date:
    return _localize(meeting.effective_date, tz).date()


def _sum_cost(meetings: Iterable[Meeting]) -> Decimal:
    return sum((m.total_cost or ZERO for m in meetings), ZERO)


def current_week_bounds(now: datetime | None = None) -> tuple[datetime, datetime]:
    """Return [Monday 00:00, next Monday 00:00) around ``now``."""
    now = resolve_now(now)
    monday = now.date() - timedelta(days=now.weekday())
    start = datetime.combine(monday, time.min, tzinfo=now.tzinfo)
    end = datetime.combine(monday + timedelta(days=7), time.min, tzinfo=now.tzinfo)
    return start, end


# ── Stats ────────────────────────────────────────────────────────────────────


def aggregate_stats(
    meetings: Sequence[Meeting], now: datetime | None = None
) -> MeetingStats:
    """Reduce meetings into weekly and all-time cost statistics.

    The week runs Monday 00:00:00 through Sunday 23:59:59 in the timezone
    of ``now``. Missing costs count as zero and an empty input yields
    all-zero stats.
    """
    snapshot = tuple(meetings)
    now = resolve_now(now)
    week_start, week_end = current_week_bounds(now)

    this_week = [
        m
        for m in snapshot
        if week_start <= _localize(m.effective_date, now.tzinfo) < week_end
    ]

    total_all_time = _sum_cost(snapshot)
    count = len(snapshot)
    average = total_all_time / count if count > 0 else ZERO

    return MeetingStats(
        total_cost_this_week=_sum_cost(this_week),
        total_meetings_this_week=len(this_week),
        average_cost_per_meeting=average,
        total_meetings_all_time=count,
        total_cost_all_time=total_all_time,
    )


# ── Trend ────────────────────────────────────────────────────────────────────


def cost_trend(
    meetings: Sequence[Meeting],
    now: datetime | None = None,
    time_range: str = "4weeks",
) -> list[TrendPoint]:
    """Total spend per period for the trend chart, oldest period first.

    Period ``i`` starts ``i * interval`` days before today and covers
    ``interval`` calendar days inclusive.

    Raises:
        ValueError: If ``time_range`` is not one of TREND_RANGES.
    """
    if time_range not in TREND_RANGES:
        raise ValueError(f"Unknown trend range: {time_range}")
    periods, interval = TREND_RANGES[time_range]

    snapshot = tuple(meetings)
    now = resolve_now(now)
    today = now.date()
    days = [(m, _local_day(m, now.tzinfo)) for m in snapshot]

    points: list[TrendPoint] = []
    for i in range(periods - 1, -1, -1):
        start = today - timedelta(days=i * interval)
        end = start + timedelta(days=interval - 1)
        cost = _sum_cost(m for m, day in days if start <= day <= end)
        label = start.strftime("%b") if interval >= 30 else start.strftime("%d %b")
        points.append(
            TrendPoint(
                label=label,
                period_start=start,
                period_end=end,
                cost=cost,
                savings=cost * SAVINGS_RATE,
            )
        )
    return points


# ── Saturation ───────────────────────────────────────────────────────────────


def saturation_level(cost_per_meeting_hour: Decimal) -> SaturationLevel:
    if cost_per_meeting_hour > SATURATION_HIGH_ABOVE:
        return SaturationLevel.HIGH
    if cost_per_meeting_hour > SATURATION_MEDIUM_ABOVE:
        return SaturationLevel.MEDIUM
    return SaturationLevel.LOW


def daily_saturation(
    meetings: Sequence[Meeting],
    now: datetime | None = None,
    days: int = 7,
) -> list[DaySaturation]:
    """Per-day spend for the last ``days`` calendar days, today last."""
    snapshot = tuple(meetings)
    now = resolve_now(now)
    today = now.date()

    by_day: dict[date, list[Meeting]] = {}
    for meeting in snapshot:
        by_day.setdefault(_local_day(meeting, now.tzinfo), []).append(meeting)

    result: list[DaySaturation] = []
    for offset in range(days - 1, -1, -1):
        day = today - timedelta(days=offset)
        day_meetings = by_day.get(day, [])
        total = _sum_cost(day_meetings)
        per_hour = total / len(day_meetings) if day_meetings else ZERO
        result.append(
            DaySaturation(
                day=day,
                meeting_count=len(day_meetings),
                total_cost=total,
                cost_per_meeting_hour=per_hour,
                level=saturation_level(per_hour),
            )
        )
    return result


# ── Top Meetings ─────────────────────────────────────────────────────────────


def top_meetings(meetings: Sequence[Meeting], limit: int = 10) -> list[Meeting]:
    """Most expensive meetings first; ties keep their input order."""
    if limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    ranked = sorted(meetings, key=lambda m: m.total_cost or ZERO, reverse=True)
    return ranked[:limit]
