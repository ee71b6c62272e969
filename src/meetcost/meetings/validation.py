"""Meeting input sanitization and validation.

Free-text fields are stripped of all markup before their length is
checked, so the limits apply to what is actually stored. Every rule is
evaluated and every failure collected; bad input never raises, it comes
back as a list of field-level messages on ValidationResult.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from bs4 import BeautifulSoup

from src.meetcost.meetings.cost import to_decimal
from src.meetcost.meetings.schemas import MeetingInput, MeetingUpdate, ValidationResult

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
MIN_ATTENDEES = 1
MAX_ATTENDEES = 100
MIN_DURATION_MINUTES = 1
MAX_DURATION_MINUTES = 1440
MIN_HOURLY_RATE = Decimal(0)
MAX_HOURLY_RATE = Decimal(10000)

_CURRENCY_RE = re.compile(r"^[A-Za-z]{3}$")

# Sentinel for "key not supplied" (distinct from an explicit None)
_MISSING = object()


def sanitize_text(value: str) -> str:
    """Remove every HTML tag (and script/style bodies) and trim whitespace.

    Parsing decodes entities, so ``&lt;b&gt;`` comes out as a live ``<b>``.
    The text is re-parsed until it stops changing, which strips escaped
    markup as well and makes the result a fixed point:
    ``sanitize_text(sanitize_text(x)) == sanitize_text(x)``.
    """
    text = value
    while True:
        soup = BeautifulSoup(text, "html.parser")
        for tag in soup(["script", "style"]):
            tag.decompose()
        cleaned = soup.get_text().strip()
        # every pass that changes the text also shortens it
        if cleaned == text or len(cleaned) >= len(text):
            return cleaned
        text = cleaned


# ── Field Checks ─────────────────────────────────────────────────────────────
# Each check appends its messages to ``errors`` and returns the cleaned value.


def _check_title(value: Any, errors: list[str]) -> str | None:
    if not isinstance(value, str):
        errors.append(f"Title must be at least {TITLE_MIN_LENGTH} characters")
        return None
    title = sanitize_text(value)
    if len(title) < TITLE_MIN_LENGTH:
        errors.append(f"Title must be at least {TITLE_MIN_LENGTH} characters")
    if len(title) > TITLE_MAX_LENGTH:
        errors.append(f"Title cannot be longer than {TITLE_MAX_LENGTH} characters")
    return title


def _check_description(value: Any, errors: list[str]) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append("Description must be text")
        return None
    description = sanitize_text(value)
    if len(description) > DESCRIPTION_MAX_LENGTH:
        errors.append(
            f"Description cannot be longer than {DESCRIPTION_MAX_LENGTH} characters"
        )
    return description or None


def _as_int(value: Any) -> int | None:
    """Return value as int if it is an integral number, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, Decimal) and value.is_finite() and value == value.to_integral_value():
        return int(value)
    return None


def _check_attendees(value: Any, errors: list[str]) -> int | None:
    attendees = _as_int(value)
    if attendees is None or not MIN_ATTENDEES <= attendees <= MAX_ATTENDEES:
        errors.append(
            f"Attendees must be a whole number between {MIN_ATTENDEES} and {MAX_ATTENDEES}"
        )
        return None
    return attendees


def _check_duration(value: Any, errors: list[str]) -> int | None:
    duration = _as_int(value)
    if duration is None or not MIN_DURATION_MINUTES <= duration <= MAX_DURATION_MINUTES:
        errors.append(
            f"Duration must be between {MIN_DURATION_MINUTES} and "
            f"{MAX_DURATION_MINUTES} minutes"
        )
        return None
    return duration


def _check_hourly_rate(value: Any, errors: list[str]) -> Decimal | None:
    message = f"Hourly rate must be between {MIN_HOURLY_RATE} and {MAX_HOURLY_RATE:,}"
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        errors.append(message)
        return None
    if isinstance(value, float) and not math.isfinite(value):
        errors.append(message)
        return None
    rate = to_decimal(value)
    if not rate.is_finite() or not MIN_HOURLY_RATE <= rate <= MAX_HOURLY_RATE:
        errors.append(message)
        return None
    return rate


def _check_currency(value: Any, errors: list[str]) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str) or not _CURRENCY_RE.match(value.strip()):
        errors.append("Currency must be a three-letter code")
        return None
    return value.strip().upper()


def _check_meeting_date(value: Any, errors: list[str]) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            pass
    errors.append("Meeting date must be an ISO-8601 date or datetime")
    return None


_FieldCheck = Callable[[Any, list[str]], Any]

# Evaluation order of the field checks (and of the reported messages)
FIELD_CHECKS: dict[str, _FieldCheck] = {
    "title": _check_title,
    "description": _check_description,
    "attendees_count": _check_attendees,
    "duration_minutes": _check_duration,
    "average_hourly_rate": _check_hourly_rate,
    "currency": _check_currency,
    "meeting_date": _check_meeting_date,
}

_OPTIONAL_FIELDS = frozenset({"description", "currency", "meeting_date"})


def _require_mapping(raw: Any) -> None:
    if not isinstance(raw, Mapping):
        raise TypeError(
            f"Meeting input must be a mapping, got {type(raw).__name__}"
        )


# ── Public API ───────────────────────────────────────────────────────────────


def validate_meeting_input(raw: Mapping[str, Any]) -> ValidationResult:
    """Sanitize and validate the fields of a new meeting.

    Args:
        raw: Untrusted field values (e.g. a decoded JSON body). Unknown
            keys, including any ``total_cost``, are ignored.

    Returns:
        ValidationResult with a MeetingInput when valid, otherwise the
        full list of error messages.

    Raises:
        TypeError: If ``raw`` is not a mapping.
    """
    _require_mapping(raw)
    errors: list[str] = []
    cleaned: dict[str, Any] = {}

    for field, check in FIELD_CHECKS.items():
        value = raw.get(field)
        if value is None and field in _OPTIONAL_FIELDS:
            cleaned[field] = None
            continue
        cleaned[field] = check(value, errors)

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(data=MeetingInput(**cleaned))


def validate_meeting_update(raw: Mapping[str, Any]) -> ValidationResult:
    """Sanitize and validate a partial update.

    Only the supplied fields are checked. Optional fields may be set to
    None to clear them; required fields may not.

    Raises:
        TypeError: If ``raw`` is not a mapping.
    """
    _require_mapping(raw)
    errors: list[str] = []
    cleaned: dict[str, Any] = {}

    for field, check in FIELD_CHECKS.items():
        value = raw.get(field, _MISSING)
        if value is _MISSING:
            continue
        if value is None and field in _OPTIONAL_FIELDS:
            cleaned[field] = None
            continue
        cleaned[field] = check(value, errors)

    if not cleaned and not errors:
        errors.append("No updatable fields supplied")

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(data=MeetingUpdate(**cleaned))


def validate_cost_inputs(
    raw: Mapping[str, Any],
) -> tuple[dict[str, Any], list[str]]:
    """Validate just the three cost inputs, for live previews.

    Returns:
        (cleaned values keyed by field name, error messages).

    Raises:
        TypeError: If ``raw`` is not a mapping.
    """
    _require_mapping(raw)
    errors: list[str] = []
    cleaned = {
        field: FIELD_CHECKS[field](raw.get(field), errors)
        for field in ("attendees_count", "duration_minutes", "average_hourly_rate")
    }
    return cleaned, errors
