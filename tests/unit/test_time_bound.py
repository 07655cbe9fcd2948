"""Tests for deadline validation."""

from datetime import datetime

import pytest

from okr_coach.services.scoring.key_result import score_time_bound
from okr_coach.services.scoring.time_bound import (
    NO_TIMEFRAME_ISSUE,
    PAST_DATE_ISSUE,
    describe_timeframe,
    is_current_or_future,
    validate_time_bound,
)

from conftest import NOW


def test_future_quarter_is_valid():
    result = validate_time_bound("Ship onboarding v2 by Q2 2024", now=NOW)

    assert result.is_valid
    assert result.format == "quarterly"
    assert result.parsed_date == {"quarter": 2, "year": 2024}
    assert result.issues == []
    assert describe_timeframe(result) == "Q2 2024"


def test_current_period_counts_as_future():
    assert validate_time_bound("by Q1 2024", now=NOW).is_valid
    assert validate_time_bound("by January 2024", now=NOW).is_valid
    assert validate_time_bound("by H1 2024", now=NOW).is_valid


def test_month_and_half_year_formats():
    month = validate_time_bound("Hit 1,000 paying accounts by end of March 2024", now=NOW)
    half = validate_time_bound("Cut churn in half by H2 2025", now=NOW)

    assert month.format == "monthly"
    assert describe_timeframe(month) == "March 2024"
    assert half.format == "half-year"
    assert describe_timeframe(half) == "H2 2025"


def test_past_date():
    result = validate_time_bound("Increase NPS to 50 by Q4 2023", now=NOW)

    assert not result.is_valid
    assert result.is_past
    assert result.issues == [PAST_DATE_ISSUE]


def test_vague_timeframe_reported():
    result = validate_time_bound("Increase NPS to 50 next quarter", now=NOW)

    assert not result.is_valid
    assert result.has_vague_timeframe
    assert result.issues == ['Vague timeframe detected: "next quarter"']
    assert NO_TIMEFRAME_ISSUE not in result.issues


def test_no_timeframe():
    result = validate_time_bound("Increase NPS to 50", now=NOW)

    assert result.issues == [NO_TIMEFRAME_ISSUE]
    assert describe_timeframe(result) == "No valid timeframe"


def test_deadline_without_by_is_not_recognized():
    assert not validate_time_bound("Q2 2024 target of 20K users", now=NOW).is_valid


@pytest.mark.parametrize(
    "kind,period,year,expected",
    [
        ("quarter", 1, 2024, True),
        ("quarter", 4, 2023, False),
        ("month", 1, 2024, True),
        ("month", 12, 2023, False),
        ("half", 2, 2024, True),
        ("quarter", 1, 2025, True),
    ],
)
def test_is_current_or_future(kind, period, year, expected):
    assert is_current_or_future(kind, period, year, NOW) is expected


def test_score_time_bound_suggestions():
    vague = score_time_bound("Grow revenue soon", now=NOW)
    past = score_time_bound("Grow revenue by Q1 2020", now=datetime(2024, 6, 1))

    assert vague.score == 0
    assert "vague" in vague.suggestions[0].lower()
    assert past.score == 0
    assert past.suggestions == ["Update to future timeframe"]
