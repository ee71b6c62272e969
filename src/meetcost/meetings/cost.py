"""Meeting cost formula.

Single source of truth for ``total_cost``: used by the live preview
endpoint and by the repository on every write, so a previewed cost and
the stored cost for the same inputs are always identical.
"""

from __future__ import annotations

from decimal import Decimal

MINUTES_PER_HOUR = Decimal(60)


def to_decimal(value: Decimal | float | int) -> Decimal:
    """Convert a numeric value to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def calculate_cost(
    attendees: int,
    hourly_rate: Decimal | float | int,
    duration_minutes: int,
) -> Decimal:
    """Return ``attendees * hourly_rate * duration_minutes / 60``.

    No rounding is applied; formatting is left to the presentation layer.
    Inputs are expected to be validated (attendees and duration >= 1).
    """
    return (
        Decimal(attendees) * to_decimal(hourly_rate) * Decimal(duration_minutes)
    ) / MINUTES_PER_HOUR
