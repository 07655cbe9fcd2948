"""Number and grade helpers shared by the rubric scorers."""

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

_NUMBER = re.compile(r"^(\d+(?:\.\d+)?)([KMB])?$", re.IGNORECASE)
_MULTIPLIERS = {"K": 1_000, "M": 1_000_000, "B": 1_000_000_000}

GRADE_CUTOFFS = [
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (67, "D+"),
    (63, "D"),
    (60, "D-"),
]


def parse_number(raw: str) -> Optional[float]:
    """Parse "10K", "$2.5M", "45%" or "1,200" into a float.

    Returns None for anything that is not a number with an optional
    K/M/B suffix.
    """
    cleaned = re.sub(r"[,%$€£¥\s]", "", raw)
    match = _NUMBER.match(cleaned)
    if not match:
        return None
    value = float(match.group(1))
    suffix = match.group(2)
    if suffix:
        value *= _MULTIPLIERS[suffix.upper()]
    return value


def round_half_up(value: Union[float, Decimal]) -> int:
    """Round to the nearest integer, halves up (62.5 -> 63, not 62)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def grade_for(score: float) -> str:
    """Letter grade for a 0-100 score."""
    for cutoff, grade in GRADE_CUTOFFS:
        if score >= cutoff:
            return grade
    return "F"


def quality_level(score: float) -> str:
    """Coarse quality band used in feedback and overall scores."""
    if score >= 90:
        return "excellent"
    if score >= 80:
        return "good"
    if score >= 70:
        return "fair"
    if score >= 60:
        return "needs_improvement"
    return "poor"
