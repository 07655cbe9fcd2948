"""
Key result rubric.

Five independently scored dimensions, each banded to 0/25/50/75/100:

    measurability 30% | specificity 25% | achievability 20% | relevance 15% | time-bound 10%

Every dimension has a fallback score, so malformed or ambiguous text lowers
the score instead of raising.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from okr_coach.core.exceptions import ScoringError
from okr_coach.domain.models.quality import DimensionScore, KeyResultAnalysis
from okr_coach.services.scoring.parsing import grade_for, parse_number, round_half_up
from okr_coach.services.scoring.time_bound import validate_time_bound

WEIGHTS = {
    "measurability": 0.30,
    "specificity": 0.25,
    "achievability": 0.20,
    "relevance": 0.15,
    "time_bound": 0.10,
}

_I = re.IGNORECASE
_VALUE = r"[$€£¥]?(\d{1,3}(?:,\d{3})+(?:\.\d+)?(?:[KMB]\b|%)?|\d+(?:\.\d+)?(?:[KMB]\b|%)?)"

METRIC_TOKEN = re.compile(
    r"\b(?:NPS|MAU|DAU|WAU|MRR|ARR)\b"
    r"|\b(?:launch|deliver|ship)\s+\d+"
    r"|\d+(?:\.\d+)?\s?%"
    r"|[$€£¥]\s?\d+(?:[.,]\d+)*[KMB]?"
    r"|\d+(?:\.\d+)?[KMB]\b"
    r"|\d+(?:,\d{3})*\s+(?:users|customers|accounts|subscribers|score|rate|time|hours|days"
    r"|minutes|seconds|features?|items?|points?|deals|leads|tickets)\b",
    _I,
)
FROM_VALUE = re.compile(r"\bfrom\s+" + _VALUE, _I)
TO_VALUE = re.compile(r"\bto\s+" + _VALUE, _I)
LAUNCH_COUNT = re.compile(r"\b(?:launch|deliver|ship)\s+(\d+)", _I)
HAS_BASELINE = re.compile(r"\bfrom\s+(?:[$€£¥]?\d+(?:\.\d+)?(?:[KMB]\b|%)?|NPS)", _I)
HAS_TARGET = re.compile(
    r"\b(?:to|reach|achieve)\s+(?:[$€£¥]?\d+(?:\.\d+)?(?:[KMB]\b|%)?|NPS)", _I
)
UNITS = re.compile(
    r"\b(?:users|customers|accounts|subscribers|hours|days|minutes|seconds|score|rate"
    r"|count|features?|items?|points?|NPS|MAU|DAU|WAU|MRR|ARR)\b|%|[$€£¥]\s?\d",
    _I,
)
TIMEFRAME = re.compile(
    r"\bby\s+(?:end\s+of\s+)?(?:Q[1-4]|H[12]|\d{4}|January|February|March|April|May|June"
    r"|July|August|September|October|November|December)",
    _I,
)

FREQUENCY = re.compile(
    r"\b(?:monthly|quarterly|weekly|daily|annual(?:ly)?|per\s+(?:month|quarter|week|day|year)"
    r"|MAU|DAU|WAU|MRR|ARR)\b",
    _I,
)
IMPLICIT_FREQUENCY = re.compile(
    r"monthly active users|daily active users|weekly active users|monthly recurring revenue"
    r"|annual recurring revenue|7-day retention|30-day retention|response time|load time"
    r"|latency|deployment time|\bNPS\b",
    _I,
)
SOURCE = re.compile(
    r"\b(?:survey|analytics|data|report|zendesk|salesforce|google analytics|metrics"
    r"|dashboard)\b",
    _I,
)
VAGUE_QUANTIFIER = re.compile(r"\b(?:significant|meaningful|substantial|considerable)", _I)
TIME_METRIC = re.compile(r"\b(?:time|latency|duration|delay)\b", _I)

INCREASE_VERBS = ("increase", "grow", "expand", "improve", "maximize", "accelerate", "boost", "double", "raise", "scale")
REDUCE_VERBS = ("reduce", "decrease", "lower", "minimize", "cut")
OTHER_VERBS = (
    "achieve",
    "maintain",
    "launch",
    "deliver",
    "build",
    "create",
    "establish",
    "reach",
    "attain",
    "hit",
    "complete",
    "execute",
)

DOMAIN_PATTERNS = {
    "revenue": re.compile(r"revenue|mrr|arr|sales|\$\d+"),
    "users": re.compile(r"users|customers|accounts|subscribers"),
    "engagement": re.compile(r"engagement|active|retention|adoption|mau|dau|wau"),
    "quality": re.compile(r"quality|satisfaction|nps|defect|yield|excellence|operational"),
    "performance": re.compile(
        r"performance|speed|time|uptime|reliability|deployment|delivery|accelerate"
    ),
    "growth": re.compile(r"growth|expand|scale|increase|grow"),
    "cost": re.compile(r"cost|expense|efficiency|savings"),
    "market": re.compile(r"market|share|competitive|industry"),
}

# Objective domain -> key result vocabulary that supports it indirectly
ADJACENT_DOMAINS = {
    "revenue": ["customer", "sales", "pricing", "conversion", "churn", "acquisition"],
    "engagement": ["users", "active", "retention", "features", "adoption", "session"],
    "quality": [
        "defect",
        "yield",
        "satisfaction",
        "nps",
        "response time",
        "uptime",
        "performance",
        "deployment",
        "delivery",
        "operational",
    ],
    "performance": [
        "quality",
        "operational",
        "delivery",
        "deployment",
        "speed",
        "time",
        "efficiency",
        "excellence",
    ],
    "growth": ["customers", "revenue", "users", "market share", "expansion", "delivery", "performance"],
}

MISSING_BASELINE = "Missing baseline (where you start from)"
UNCLEAR_RELEVANCE = "Unclear how this KR supports the objective"


@dataclass
class DimensionResult:
    """Score for one rubric dimension plus the notes it produced."""

    score: int
    issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


def _detect_metric_type(text: str) -> Optional[str]:
    if re.search(r"\d+(?:\.\d+)?\s?%", text):
        return "percentage"
    if re.search(r"[$€£¥]\s?\d+|\b(?:USD|EUR|GBP)\b", text):
        return "currency"
    if re.search(
        r"\d+(?:\.\d+)?[KMB]\b|\d+ (?:users|customers|features|items)|\b(?:launch|deliver|ship) \d+",
        text,
        _I,
    ):
        return "count"
    if re.search(r"\d+ (?:hours?|days?|minutes?|seconds?|weeks?|months?|ms)\b", text, _I):
        return "time"
    if re.search(r"\d+:\d+", text):
        return "ratio"
    return None


def _detect_verb(text: str) -> Optional[str]:
    lower = text.strip().lower()
    for verb in INCREASE_VERBS + REDUCE_VERBS + OTHER_VERBS:
        if lower.startswith(verb):
            return verb
    return None


def analyze_key_result(text: str) -> KeyResultAnalysis:
    """Detect the metric, baseline, target and verb in a key result."""
    baseline: Optional[float] = None
    target: Optional[float] = None
    ratio: Optional[float] = None

    from_match = FROM_VALUE.search(text)
    to_match = TO_VALUE.search(text)
    launch_match = LAUNCH_COUNT.search(text)

    if from_match and to_match:
        baseline = parse_number(from_match.group(1))
        target = parse_number(to_match.group(1))
        if baseline and target and baseline > 0:
            ratio = target / baseline
    elif launch_match:
        # "Launch 3 features" starts from an implicit zero
        baseline = 0.0
        target = float(launch_match.group(1))

    return KeyResultAnalysis(
        metric_type=_detect_metric_type(text),
        baseline=baseline,
        target=target,
        improvement_ratio=ratio,
        verb=_detect_verb(text),
        has_metric=bool(METRIC_TOKEN.search(text)),
        has_baseline=bool(HAS_BASELINE.search(text) or launch_match),
        has_target=bool(HAS_TARGET.search(text) or launch_match),
        has_units=bool(UNITS.search(text)),
        has_timeframe=bool(TIMEFRAME.search(text)),
    )


def score_measurability(analysis: KeyResultAnalysis) -> DimensionResult:
    if analysis.has_metric and analysis.has_baseline and analysis.has_target:
        return DimensionResult(100)
    if analysis.has_metric and analysis.has_target:
        return DimensionResult(
            75,
            [MISSING_BASELINE],
            ['Add "from [current value]" to show baseline'],
        )
    if analysis.has_metric:
        return DimensionResult(
            50,
            ["Missing baseline and target values"],
            ['Use format: "[Verb] [Metric] from [Baseline] to [Target]"'],
        )
    return DimensionResult(
        0,
        ["No measurable metric detected"],
        ["Add a quantifiable metric (%, $, count, time, etc.)"],
    )


def score_specificity(text: str, analysis: KeyResultAnalysis) -> DimensionResult:
    has_cadence = bool(FREQUENCY.search(text) or IMPLICIT_FREQUENCY.search(text))
    has_source = bool(SOURCE.search(text))

    if analysis.has_units and has_cadence and has_source:
        return DimensionResult(100)
    if analysis.has_units and has_cadence:
        return DimensionResult(
            75,
            suggestions=[
                'Consider adding measurement source for clarity (e.g., "Google Analytics", "NPS survey")'
            ],
        )
    if analysis.has_units:
        return DimensionResult(
            50, suggestions=["Add frequency if relevant (monthly, quarterly, etc.)"]
        )
    if VAGUE_QUANTIFIER.search(text):
        return DimensionResult(
            25,
            ["Ambiguous quantifiers without specific units"],
            ["Replace vague terms with specific units (%, $, count, etc.)"],
        )
    return DimensionResult(
        0,
        ["No measurement units specified"],
        ["Add specific units (%, $, users, hours, etc.)"],
    )


def _score_reduction(text: str, analysis: KeyResultAnalysis, ratio: float) -> DimensionResult:
    if ratio > 1:
        return DimensionResult(
            0,
            ['Target is higher than baseline for a "reduce" goal'],
            ["Check if target should be lower than baseline"],
        )

    reduction_pct = (1 - ratio) * 100
    is_time_metric = analysis.metric_type == "time" or bool(TIME_METRIC.search(text))
    max_reduction = 95 if is_time_metric else 80
    lower_bound = 0.05 if is_time_metric else 0.2

    if ratio < lower_bound:
        return DimensionResult(
            50,
            [f"{reduction_pct:.0f}% reduction may be unrealistic"],
            [f"Consider a more achievable target (30-{max_reduction}% reduction)"],
        )
    if ratio <= 0.7:
        return DimensionResult(100)
    if ratio <= 0.8:
        return DimensionResult(75, suggestions=["Consider a more ambitious target if possible"])
    return DimensionResult(
        25,
        [f"Only {reduction_pct:.0f}% reduction - not ambitious enough for OKR"],
        [f"OKRs should target 30-{max_reduction}% reduction for stretch goals"],
    )


def _score_increase(ratio: float) -> DimensionResult:
    if ratio < 1:
        return DimensionResult(
            0,
            ['Target is lower than baseline for an "increase" goal'],
            ["Check if target should be higher than baseline"],
        )
    if ratio > 5:
        return DimensionResult(
            50,
            [f"{ratio:.1f}x improvement may be unrealistic"],
            ["Consider a more achievable target (1.5x-3x range)"],
        )
    if 1.5 <= ratio <= 3:
        return DimensionResult(100)
    if 1.2 <= ratio < 1.5:
        return DimensionResult(75, suggestions=["Consider a more ambitious target if possible"])
    if ratio > 3:
        return DimensionResult(
            50, suggestions=["Target is very ambitious - ensure it's achievable"]
        )
    return DimensionResult(
        25,
        [f"Only {(ratio - 1) * 100:.0f}% improvement - not ambitious enough for OKR"],
        ["OKRs should target 1.5x-3x improvement for stretch goals"],
    )


def score_achievability(text: str, analysis: KeyResultAnalysis) -> DimensionResult:
    ratio = analysis.improvement_ratio
    if ratio is None:
        return DimensionResult(
            75, suggestions=["Unable to assess achievability without baseline and target"]
        )

    if analysis.verb in REDUCE_VERBS:
        return _score_reduction(text, analysis, ratio)
    if analysis.verb in INCREASE_VERBS or ratio > 1:
        return _score_increase(ratio)
    return DimensionResult(75)


def extract_domains(text: str) -> List[str]:
    """Business domain buckets mentioned in `text`."""
    lower = text.lower()
    return [name for name, pattern in DOMAIN_PATTERNS.items() if pattern.search(lower)]


def score_relevance(text: str, objective: Optional[str] = None) -> DimensionResult:
    if not objective or not objective.strip():
        return DimensionResult(75)

    objective_domains = extract_domains(objective)
    kr_domains = extract_domains(text)
    shared = [d for d in objective_domains if d in kr_domains]

    if len(shared) >= 2:
        return DimensionResult(100)
    if len(shared) == 1:
        return DimensionResult(75)

    lower = text.lower()
    for domain in objective_domains:
        if any(word in lower for word in ADJACENT_DOMAINS.get(domain, [])):
            return DimensionResult(75)

    return DimensionResult(
        50,
        [UNCLEAR_RELEVANCE],
        ["Ensure KR directly contributes to objective achievement"],
    )


def score_time_bound(text: str, now: Optional[datetime] = None) -> DimensionResult:
    result = validate_time_bound(text, now=now)
    if result.is_valid:
        return DimensionResult(100)

    if result.has_vague_timeframe:
        suggestion = 'Replace vague timeframe with specific deadline like "by Q2 2026"'
    elif result.is_past:
        suggestion = "Update to future timeframe"
    else:
        suggestion = 'Add specific deadline: "by Q[1-4] YYYY" or "by [Month] YYYY"'
    return DimensionResult(0, list(result.issues), [suggestion])


def weighted_overall(
    measurability: int, specificity: int, achievability: int, relevance: int, time_bound: int
) -> int:
    scores = {
        "measurability": measurability,
        "specificity": specificity,
        "achievability": achievability,
        "relevance": relevance,
        "time_bound": time_bound,
    }
    # Exact decimal arithmetic so x.5 totals round up reliably
    total = sum(Decimal(scores[name]) * Decimal(str(weight)) for name, weight in WEIGHTS.items())
    return round_half_up(total)


def score_key_result(
    text: str, objective: Optional[str] = None, now: Optional[datetime] = None
) -> DimensionScore:
    """Score one key result string against the rubric.

    Args:
        text: Candidate key result
        objective: Objective the key result supports, for relevance
        now: Reference time for deadline validation (defaults to wall clock)
    """
    if not isinstance(text, str):
        raise ScoringError(f"Key result must be a string, got {type(text).__name__}")

    analysis = analyze_key_result(text)
    parts = {
        "measurability": score_measurability(analysis),
        "specificity": score_specificity(text, analysis),
        "achievability": score_achievability(text, analysis),
        "relevance": score_relevance(text, objective),
        "time_bound": score_time_bound(text, now),
    }

    overall = weighted_overall(**{name: part.score for name, part in parts.items()})
    analysis.has_timeframe = analysis.has_timeframe or parts["time_bound"].score == 100

    return DimensionScore(
        text=text,
        overall=overall,
        grade=grade_for(overall),
        issues=[issue for part in parts.values() for issue in part.issues],
        suggestions=[s for part in parts.values() for s in part.suggestions],
        analysis=analysis,
        **{name: part.score for name, part in parts.items()},
    )
