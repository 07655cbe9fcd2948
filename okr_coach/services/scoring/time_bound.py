"""Deadline detection for key results.

Recognized explicit formats (case-insensitive):
    - quarterly:  "by [end of] Q[1-4] YYYY"
    - monthly:    "by [end of] <MonthName> YYYY"
    - half-year:  "by [end of] H[1-2] YYYY"

An explicit deadline is valid when its period is the current period or
later relative to `now`. Vague phrasing ("soon", "next quarter") is reported
as an issue and never counts as a deadline.
"""

import re
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

TimeframeFormat = Literal["quarterly", "monthly", "half-year"]

MONTHS = [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
]

_QUARTER = re.compile(r"\bby\s+(?:end\s+of\s+)?Q([1-4])\s+(\d{4})", re.IGNORECASE)
_MONTH = re.compile(
    r"\bby\s+(?:end\s+of\s+)?(" + "|".join(MONTHS) + r")\s+(\d{4})", re.IGNORECASE
)
_HALF = re.compile(r"\bby\s+(?:end\s+of\s+)?H([12])\s+(\d{4})", re.IGNORECASE)

VAGUE_PATTERNS = [
    re.compile(r"\b(soon|eventually|sometime|later)\b", re.IGNORECASE),
    re.compile(r"\b(next quarter|this quarter|this year)\b", re.IGNORECASE),
]

PAST_DATE_ISSUE = "Date appears to be in the past"
NO_TIMEFRAME_ISSUE = "No timeframe detected"


class TimeBoundResult(BaseModel):
    """Outcome of deadline validation."""

    is_valid: bool = False
    format: Optional[TimeframeFormat] = None
    parsed_date: Optional[Dict[str, int]] = None
    issues: List[str] = Field(default_factory=list)

    @property
    def has_vague_timeframe(self) -> bool:
        return any(issue.startswith("Vague timeframe") for issue in self.issues)

    @property
    def is_past(self) -> bool:
        return PAST_DATE_ISSUE in self.issues


def _current_period(kind: str, now: datetime) -> int:
    if kind == "quarter":
        return (now.month - 1) // 3 + 1
    if kind == "half":
        return 1 if now.month <= 6 else 2
    return now.month


def is_current_or_future(kind: str, period: int, year: int, now: datetime) -> bool:
    """True when (period, year) is not before the period containing `now`."""
    if year != now.year:
        return year > now.year
    return period >= _current_period(kind, now)


def validate_time_bound(text: str, now: Optional[datetime] = None) -> TimeBoundResult:
    """Validate the deadline expressed in `text` relative to `now`."""
    now = now or datetime.now()
    result = TimeBoundResult()

    candidates = [
        (_QUARTER, "quarter", "quarterly"),
        (_MONTH, "month", "monthly"),
        (_HALF, "half", "half-year"),
    ]
    for pattern, kind, fmt in candidates:
        match = pattern.search(text)
        if not match:
            continue
        if kind == "month":
            period = MONTHS.index(match.group(1).capitalize()) + 1
        else:
            period = int(match.group(1))
        year = int(match.group(2))

        if is_current_or_future(kind, period, year, now):
            result.is_valid = True
            result.format = fmt
            result.parsed_date = {kind: period, "year": year}
            result.issues = []
            return result
        if PAST_DATE_ISSUE not in result.issues:
            result.issues.append(PAST_DATE_ISSUE)

    for pattern in VAGUE_PATTERNS:
        match = pattern.search(text)
        if match:
            result.issues.append(f'Vague timeframe detected: "{match.group(0)}"')

    if not result.issues:
        result.issues.append(NO_TIMEFRAME_ISSUE)

    return result


def describe_timeframe(result: TimeBoundResult) -> str:
    """Human-readable label for a validated timeframe."""
    if not result.is_valid or not result.parsed_date:
        return "No valid timeframe"

    date = result.parsed_date
    if result.format == "quarterly":
        return f"Q{date['quarter']} {date['year']}"
    if result.format == "monthly":
        return f"{MONTHS[date['month'] - 1]} {date['year']}"
    return f"H{date['half']} {date['year']}"
