"""Tests for meeting input sanitization and validation."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.meetcost.meetings.schemas import MeetingInput, MeetingUpdate
from src.meetcost.meetings.validation import (
    sanitize_text,
    validate_cost_inputs,
    validate_meeting_input,
    validate_meeting_update,
)


def _valid(**overrides):
    raw = {
        "title": "Sprint planning",
        "description": "Plan sprint 12 with @maria",
        "attendees_count": 6,
        "duration_minutes": 45,
        "average_hourly_rate": 55.5,
    }
    raw.update(overrides)
    return raw


# ── Sanitization ─────────────────────────────────────────────────────────────


class TestSanitizeText:
    def test_strips_tags(self):
        assert sanitize_text("<b>Standup</b>") == "Standup"

    def test_drops_script_body(self):
        assert sanitize_text("Hi<script>alert('x')</script>") == "Hi"

    def test_drops_style_body(self):
        assert sanitize_text("<style>p{color:red}</style>Retro") == "Retro"

    def test_trims_whitespace(self):
        assert sanitize_text("   Sync  \n") == "Sync"

    def test_escaped_script_is_stripped_not_unescaped(self):
        assert sanitize_text("&lt;script&gt;alert(1)&lt;/script&gt; Sync") == "Sync"

    def test_escaped_tags_are_stripped(self):
        assert sanitize_text("&lt;b&gt;Plan&lt;/b&gt;") == "Plan"

    def test_plain_ampersand_kept(self):
        assert sanitize_text("R&D sync") == "R&D sync"

    @pytest.mark.parametrize(
        "value",
        [
            "<b>Standup</b>",
            "&lt;b&gt;Plan&lt;/b&gt;",
            "&lt;script&gt;alert(1)&lt;/script&gt; Sync",
            "&amp;lt;i&amp;gt;Retro&amp;lt;/i&amp;gt;",
            "Budget &amp; roadmap",
            "  1 &lt; 2  ",
        ],
    )
    def test_sanitizing_twice_changes_nothing(self, value):
        once = sanitize_text(value)
        assert sanitize_text(once) == once


# ── New Meetings ─────────────────────────────────────────────────────────────


class TestValidateMeetingInput:
    def test_valid_input_produces_meeting_input(self):
        result = validate_meeting_input(_valid())

        assert result.is_valid
        assert result.errors == []
        assert isinstance(result.data, MeetingInput)
        assert result.data.title == "Sprint planning"
        assert result.data.average_hourly_rate == Decimal("55.5")

    def test_title_of_two_characters_after_sanitization_rejected(self):
        result = validate_meeting_input(_valid(title="<i>ab</i>"))

        assert not result.is_valid
        assert result.errors == ["Title must be at least 3 characters"]

    @pytest.mark.parametrize("length", [3, 100])
    def test_title_boundaries_accepted(self, length):
        result = validate_meeting_input(_valid(title="x" * length))
        assert result.is_valid

    def test_title_of_101_characters_rejected(self):
        result = validate_meeting_input(_valid(title="x" * 101))

        assert result.errors == ["Title cannot be longer than 100 characters"]

    def test_markup_does_not_count_towards_title_length(self):
        result = validate_meeting_input(_valid(title="<span>" + "x" * 100 + "</span>"))

        assert result.is_valid
        assert result.data.title == "x" * 100

    def test_all_violations_reported_together(self):
        result = validate_meeting_input(
            {
                "title": "a",
                "description": "d" * 501,
                "attendees_count": 0,
                "duration_minutes": 1441,
                "average_hourly_rate": -1,
            }
        )

        assert result.errors == [
            "Title must be at least 3 characters",
            "Description cannot be longer than 500 characters",
            "Attendees must be a whole number between 1 and 100",
            "Duration must be between 1 and 1440 minutes",
            "Hourly rate must be between 0 and 10,000",
        ]
        assert result.data is None

    def test_missing_fields_are_errors_not_exceptions(self):
        result = validate_meeting_input({})

        assert not result.is_valid
        assert len(result.errors) == 4

    def test_non_mapping_raises_type_error(self):
        with pytest.raises(TypeError):
            validate_meeting_input(["title"])

    def test_description_sanitized_and_empty_becomes_none(self):
        result = validate_meeting_input(_valid(description="<p>  </p>"))

        assert result.is_valid
        assert result.data.description is None

    def test_description_script_removed(self):
        result = validate_meeting_input(
            _valid(description="Agenda<script>steal()</script> for @maria")
        )
        assert result.data.description == "Agenda for @maria"

    def test_escaped_script_in_title_is_not_stored_as_markup(self):
        result = validate_meeting_input(
            _valid(title="&lt;script&gt;alert(1)&lt;/script&gt; Sync")
        )

        assert result.is_valid
        assert result.data.title == "Sync"

    def test_escaped_markup_only_title_rejected(self):
        result = validate_meeting_input(_valid(title="&lt;b&gt;&lt;/b&gt;ab"))

        assert not result.is_valid
        assert "Title must be at least 3 characters" in result.errors

    @pytest.mark.parametrize("value", [True, 2.5, "6", None])
    def test_attendees_must_be_whole_number(self, value):
        result = validate_meeting_input(_valid(attendees_count=value))
        assert result.errors == ["Attendees must be a whole number between 1 and 100"]

    def test_integral_float_attendees_accepted(self):
        result = validate_meeting_input(_valid(attendees_count=6.0))

        assert result.is_valid
        assert result.data.attendees_count == 6

    @pytest.mark.parametrize("value", [1, 1440])
    def test_duration_boundaries_accepted(self, value):
        assert validate_meeting_input(_valid(duration_minutes=value)).is_valid

    @pytest.mark.parametrize("value", [0, 10000])
    def test_hourly_rate_boundaries_accepted(self, value):
        assert validate_meeting_input(_valid(average_hourly_rate=value)).is_valid

    @pytest.mark.parametrize("value", [10000.01, float("nan"), float("inf"), False, "50"])
    def test_invalid_hourly_rate_rejected(self, value):
        result = validate_meeting_input(_valid(average_hourly_rate=value))
        assert result.errors == ["Hourly rate must be between 0 and 10,000"]

    def test_currency_normalized(self):
        result = validate_meeting_input(_valid(currency=" usd "))
        assert result.data.currency == "USD"

    def test_bad_currency_rejected(self):
        result = validate_meeting_input(_valid(currency="EURO"))
        assert result.errors == ["Currency must be a three-letter code"]

    def test_meeting_date_parsed_from_iso_string(self):
        result = validate_meeting_input(_valid(meeting_date="2026-10-14T09:30:00+00:00"))

        assert result.data.meeting_date == datetime(2026, 10, 14, 9, 30, tzinfo=timezone.utc)

    def test_unparseable_meeting_date_rejected(self):
        result = validate_meeting_input(_valid(meeting_date="next tuesday"))
        assert result.errors == ["Meeting date must be an ISO-8601 date or datetime"]

    def test_client_supplied_total_cost_ignored(self):
        result = validate_meeting_input(_valid(total_cost=1))

        assert result.is_valid
        assert "total_cost" not in result.data.model_dump()


# ── Updates and Previews ─────────────────────────────────────────────────────


class TestValidateMeetingUpdate:
    def test_only_supplied_fields_checked(self):
        result = validate_meeting_update({"duration_minutes": 30})

        assert result.is_valid
        assert isinstance(result.data, MeetingUpdate)
        assert result.data.model_dump(exclude_unset=True) == {"duration_minutes": 30}

    def test_invalid_supplied_field_reported(self):
        result = validate_meeting_update({"title": "no", "attendees_count": 3})
        assert result.errors == ["Title must be at least 3 characters"]

    def test_empty_update_rejected(self):
        result = validate_meeting_update({"unknown": 1})
        assert result.errors == ["No updatable fields supplied"]

    def test_optional_field_can_be_cleared(self):
        result = validate_meeting_update({"description": None})

        assert result.is_valid
        assert result.data.model_dump(exclude_unset=True) == {"description": None}

    def test_required_field_cannot_be_cleared(self):
        result = validate_meeting_update({"title": None})
        assert not result.is_valid


class TestValidateCostInputs:
    def test_valid(self):
        cleaned, errors = validate_cost_inputs(
            {"attendees_count": 10, "duration_minutes": 90, "average_hourly_rate": 100}
        )

        assert errors == []
        assert cleaned == {
            "attendees_count": 10,
            "duration_minutes": 90,
            "average_hourly_rate": Decimal(100),
        }

    def test_collects_errors(self):
        _, errors = validate_cost_inputs({"attendees_count": 101})
        assert len(errors) == 3
