"""
Objective rubric.

Dimensions (each banded 0/25/50/75/100):
    - outcome_orientation: outcome wording beats activity wording
    - inspiration: energizing vocabulary
    - clarity: short enough to remember (word count bands)
    - alignment: business value and strategic positioning vocabulary
    - ambition: stretch vocabulary; maintenance wording scores 0

`overall` is the rounded mean of the five dimensions.
"""

import re
from dataclasses import dataclass
from typing import Dict, List

from okr_coach.core.exceptions import ScoringError
from okr_coach.domain.models.quality import ObjectiveScore
from okr_coach.services.scoring.parsing import grade_for, round_half_up

_I = re.IGNORECASE

ACTIVITY_WORDS = re.compile(
    r"\b(?:launch|build|create|complete|implement|migrate|deploy|ship|deliver|finish|execute)\b", _I
)
OUTCOME_WORDS = re.compile(
    r"\b(?:become|achieve|transform|revolutionize|dominate|establish|accelerate|maximize"
    r"|drive|strengthen|increase|improve|reduce|enhance)\b",
    _I,
)
MAINTENANCE_WORDS = re.compile(r"\b(?:maintain|sustain|keep|preserve|continue)\b", _I)

EXEMPLARY_INSPIRATION = re.compile(
    r"\b(?:revolutionize|transform|breakthrough|extraordinary|delight|exceptional|game-changing)\b", _I
)
STRONG_INSPIRATION = re.compile(
    r"\b(?:dramatically|significantly|dominate|accelerate|maximize|strengthen|best-in-class"
    r"|industry-leading|world-class|leading|achieve)\b",
    _I,
)
FUNCTIONAL_WORDS = re.compile(r"\b(?:increase|improve|enhance|grow|develop|advance)\b", _I)
TECHNICAL_WORDS = re.compile(r"\b(?:optimize|implement|configure|integrate|deploy|execute)\b", _I)
DEMOTIVATING_WORDS = re.compile(r"\b(?:comply|maintain|meet requirements|sustain|preserve)\b", _I)

BUSINESS_WORDS = [
    "revenue",
    "customer",
    "market",
    "growth",
    "value",
    "adoption",
    "engagement",
    "satisfaction",
    "retention",
    "acquisition",
    "conversion",
    "profit",
    "sales",
    "enterprise",
    "business",
]
STRATEGIC_WORDS = [
    "industry-leading",
    "best-in-class",
    "world-class",
    "leading",
    "competitive",
    "leadership",
    "excellence",
    "premier",
    "top-tier",
    "platform",
    "capabilities",
    "delivery",
    "operations",
    "performance",
    "quality",
    "reliability",
    "scale",
    "efficiency",
    "effectiveness",
]

HIGH_AMBITION = re.compile(
    r"\b(?:revolutionize|transform|dominate|breakthrough|exceptional|extraordinary)\b", _I
)
GOOD_AMBITION = re.compile(r"\b(?:dramatically|significantly|accelerate|maximize|achieve)\b", _I)
MODERATE_AMBITION = re.compile(r"\b(?:improve|increase|enhance|grow|strengthen)\b", _I)

# (dimension, threshold, coaching sentence) -- sentence emitted below threshold
FEEDBACK_RULES = [
    ("outcome_orientation", 65, "Focus on the outcome or result rather than the activity or deliverable"),
    ("inspiration", 50, "Add more inspiring language that energizes the team"),
    ("clarity", 70, "Make the objective clearer and more memorable (aim for 8-15 words)"),
    ("alignment", 60, "Connect more clearly to business value and strategic priorities"),
    ("ambition", 70, "Increase the ambition level - this should be a stretch goal"),
]


@dataclass
class ObjectiveAnalysis:
    word_count: int
    has_activity_words: bool
    has_outcome_words: bool
    has_maintenance_words: bool


def analyze_objective(text: str) -> ObjectiveAnalysis:
    return ObjectiveAnalysis(
        word_count=len(text.split()),
        has_activity_words=bool(ACTIVITY_WORDS.search(text)),
        has_outcome_words=bool(OUTCOME_WORDS.search(text)),
        has_maintenance_words=bool(MAINTENANCE_WORDS.search(text)),
    )


def score_outcome_orientation(text: str, analysis: ObjectiveAnalysis) -> int:
    if analysis.has_activity_words and not analysis.has_outcome_words:
        return 0
    if analysis.has_outcome_words and not analysis.has_activity_words:
        return 100
    if analysis.has_outcome_words and analysis.has_activity_words:
        outcome_count = len(OUTCOME_WORDS.findall(text))
        activity_count = len(ACTIVITY_WORDS.findall(text))
        return 75 if outcome_count > activity_count else 50
    return 50


def score_inspiration(text: str) -> int:
    if EXEMPLARY_INSPIRATION.search(text):
        return 100
    if STRONG_INSPIRATION.search(text):
        return 75
    if FUNCTIONAL_WORDS.search(text):
        return 50
    if TECHNICAL_WORDS.search(text):
        return 25
    if DEMOTIVATING_WORDS.search(text):
        return 0
    return 50


def score_clarity(analysis: ObjectiveAnalysis) -> int:
    words = analysis.word_count
    if words == 0:
        return 0
    if words <= 10:
        return 100
    if words <= 15:
        return 75
    if words <= 20:
        return 50
    if words <= 30:
        return 25
    return 0


def score_alignment(text: str, analysis: ObjectiveAnalysis) -> int:
    lower = text.lower()
    indicators = sum(1 for w in BUSINESS_WORDS + STRATEGIC_WORDS if w in lower)

    if indicators >= 2 and analysis.has_outcome_words:
        return 100
    if indicators >= 1 and analysis.has_outcome_words:
        return 75
    if indicators >= 1 or "team" in lower or "improve" in lower:
        return 50
    if analysis.has_maintenance_words:
        return 25
    return 0


def score_ambition(text: str, analysis: ObjectiveAnalysis) -> int:
    if analysis.has_maintenance_words:
        return 0
    if HIGH_AMBITION.search(text):
        return 100
    if GOOD_AMBITION.search(text):
        return 75
    if MODERATE_AMBITION.search(text):
        return 50
    return 50


def objective_feedback(dimensions: Dict[str, int]) -> List[str]:
    return [
        message
        for name, threshold, message in FEEDBACK_RULES
        if dimensions.get(name, 0) < threshold
    ]


def score_objective(text: str) -> ObjectiveScore:
    """Score an objective statement. Empty text scores 0 across the board."""
    if not isinstance(text, str):
        raise ScoringError(f"Objective must be a string, got {type(text).__name__}")

    if not text.strip():
        return ObjectiveScore(text=text, overall=0, feedback=["No objective provided"])

    analysis = analyze_objective(text)
    dimensions = {
        "outcome_orientation": score_outcome_orientation(text, analysis),
        "inspiration": score_inspiration(text),
        "clarity": score_clarity(analysis),
        "alignment": score_alignment(text, analysis),
        "ambition": score_ambition(text, analysis),
    }
    overall = round_half_up(sum(dimensions.values()) / len(dimensions))

    return ObjectiveScore(
        text=text,
        overall=overall,
        dimensions=dimensions,
        feedback=objective_feedback(dimensions),
        grade=grade_for(overall),
    )
