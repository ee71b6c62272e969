"""Broken-rules analysis for recent meetings.

Evaluates a fixed battery of organizational meeting rules against the
meetings whose effective date falls inside the trailing analysis window:

1. large_long_meetings -- too many attendees AND too long (high)
2. no_agenda           -- missing or very short description (medium)
3. no_owner            -- description without an ``@`` mention (medium)
4. excessive_duration  -- longer than the duration ceiling (high)
5. too_frequent        -- same title repeated too often in the window (low)

Rules 1-4 are per-meeting predicates; rule 5 needs a grouping pass over
the whole window first. All five read the same immutable snapshot and
only rules with at least one violation are returned.

The ``no_owner`` rule is a substring heuristic, not a structured owner
field: any ``@`` in the description counts as an owner mention.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from src.meetcost.config import Settings, get_settings
from src.meetcost.meetings.schemas import Meeting, Rule, RuleViolation, Severity
from src.meetcost.meetings.stats import resolve_now
from src.meetcost.meetings.validation import sanitize_text

logger = structlog.get_logger(__name__)

LARGE_LONG_MEETINGS = "large_long_meetings"
NO_AGENDA = "no_agenda"
NO_OWNER = "no_owner"
EXCESSIVE_DURATION = "excessive_duration"
TOO_FREQUENT = "too_frequent"

OWNER_MENTION_MARKER = "@"


@dataclass(frozen=True)
class RuleThresholds:
    """Tunable limits for the rule battery. All comparisons are strict (>)."""

    analysis_period_days: int = 7
    large_meeting_attendees: int = 8
    long_meeting_minutes: int = 60
    excessive_duration_minutes: int = 90
    min_agenda_length: int = 10
    frequent_meeting_threshold: int = 3

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RuleThresholds:
        settings = settings or get_settings()
        return cls(
            analysis_period_days=settings.RULE_ANALYSIS_PERIOD_DAYS,
            large_meeting_attendees=settings.LARGE_MEETING_ATTENDEES,
            long_meeting_minutes=settings.LONG_MEETING_MINUTES,
            excessive_duration_minutes=settings.EXCESSIVE_DURATION_MINUTES,
            min_agenda_length=settings.MIN_AGENDA_LENGTH,
            frequent_meeting_threshold=settings.FREQUENT_MEETING_THRESHOLD,
        )


def build_rules(thresholds: RuleThresholds) -> tuple[Rule, ...]:
    """Rule descriptors, in evaluation and output order."""
    t = thresholds
    return (
        Rule(
            id=LARGE_LONG_MEETINGS,
            title=(
                f"Meetings with >{t.large_meeting_attendees} people "
                f">{t.long_meeting_minutes} min"
            ),
            description=(
                f"Meetings with more than {t.large_meeting_attendees} attendees "
                f"lasting more than {t.long_meeting_minutes} minutes"
            ),
            severity=Severity.HIGH,
        ),
        Rule(
            id=NO_AGENDA,
            title="Meeting without an agenda",
            description="Meetings with no description or defined agenda",
            severity=Severity.MEDIUM,
        ),
        Rule(
            id=NO_OWNER,
            title="No owner assigned",
            description="Meetings without a clearly identified owner (@mention)",
            severity=Severity.MEDIUM,
        ),
        Rule(
            id=EXCESSIVE_DURATION,
            title="Excessive duration",
            description=(
                f"Meetings lasting more than {t.excessive_duration_minutes} minutes"
            ),
            severity=Severity.HIGH,
        ),
        Rule(
            id=TOO_FREQUENT,
            title="Meetings too frequent",
            description=(
                f"Same meeting title more than {t.frequent_meeting_threshold} "
                f"times in the analysis period"
            ),
            severity=Severity.LOW,
        ),
    )


# ── Per-meeting predicates ───────────────────────────────────────────────────

_Predicate = Callable[[Meeting, RuleThresholds], bool]


def _is_large_and_long(m: Meeting, t: RuleThresholds) -> bool:
    return (
        m.attendees_count > t.large_meeting_attendees
        and m.duration_minutes > t.long_meeting_minutes
    )


def _has_no_agenda(m: Meeting, t: RuleThresholds) -> bool:
    return not m.description or len(sanitize_text(m.description)) < t.min_agenda_length


def _has_no_owner(m: Meeting, t: RuleThresholds) -> bool:
    return not m.description or OWNER_MENTION_MARKER not in m.description


def _is_excessive(m: Meeting, t: RuleThresholds) -> bool:
    return m.duration_minutes > t.excessive_duration_minutes


_PREDICATES: dict[str, _Predicate] = {
    LARGE_LONG_MEETINGS: _is_large_and_long,
    NO_AGENDA: _has_no_agenda,
    NO_OWNER: _has_no_owner,
    EXCESSIVE_DURATION: _is_excessive,
}


def _frequent_meetings(
    window: Sequence[Meeting], t: RuleThresholds
) -> list[Meeting]:
    """Members of every title group larger than the frequency threshold."""
    groups: dict[str, list[Meeting]] = {}
    for meeting in window:
        groups.setdefault(meeting.title.strip().lower(), []).append(meeting)
    return [
        meeting
        for group in groups.values()
        if len(group) > t.frequent_meeting_threshold
        for meeting in group
    ]


# ── Window & evaluation ──────────────────────────────────────────────────────


def analysis_window(
    meetings: Sequence[Meeting], now: datetime, period_days: int
) -> tuple[Meeting, ...]:
    """Meetings whose effective date is on or after ``now - period_days``.

    Naive effective dates are read in ``now``'s timezone.
    """
    cutoff = now - timedelta(days=period_days)
    window = []
    for meeting in meetings:
        effective = meeting.effective_date
        if effective.tzinfo is None and now.tzinfo is not None:
            effective = effective.replace(tzinfo=now.tzinfo)
        if effective >= cutoff:
            window.append(meeting)
    return tuple(window)


def evaluate_rules(
    meetings: Sequence[Meeting],
    now: datetime | None = None,
    period_days: int | None = None,
    thresholds: RuleThresholds | None = None,
) -> list[RuleViolation]:
    """Evaluate the rule battery over the trailing analysis window.

    Args:
        meetings: The owner's meetings. Copied into a snapshot before
            evaluation.
        now: Reference instant. Defaults to the current time in
            ``DASHBOARD_TIMEZONE``; naive values are read in that zone.
        period_days: Window length in days. Overrides
            ``thresholds.analysis_period_days`` when given.
        thresholds: Rule limits. Defaults to values from Settings.

    Returns:
        One RuleViolation per rule with at least one offending meeting,
        in rule battery order.
    """
    thresholds = thresholds or RuleThresholds.from_settings()
    if period_days is None:
        period_days = thresholds.analysis_period_days
    now = resolve_now(now)

    snapshot = tuple(meetings)
    window = analysis_window(snapshot, now, period_days)

    violations: list[RuleViolation] = []
    for rule in build_rules(thresholds):
        if rule.id == TOO_FREQUENT:
            offending = _frequent_meetings(window, thresholds)
        else:
            predicate = _PREDICATES[rule.id]
            offending = [m for m in window if predicate(m, thresholds)]

        if not offending:
            continue
        violations.append(
            RuleViolation(
                rule_id=rule.id,
                title=rule.title,
                description=rule.description,
                severity=rule.severity,
                meetings=tuple(offending),
            )
        )

    logger.info(
        "rules.evaluated",
        total_meetings=len(snapshot),
        window_meetings=len(window),
        period_days=period_days,
        broken_rules=[v.rule_id for v in violations],
    )
    return violations
