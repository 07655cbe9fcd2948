"""Content-quality score models and the score accumulation fold.

Scores accumulate across a session's turns. The merge rule is that a field
computed on an earlier turn is never replaced by an empty one:

    QualityScore = fold_scores(turn_scores)  # == reduce(merge_scores, turn_scores, empty)

Key results merge by their normalized text: a re-scored key result replaces
its earlier score in place, new key results are appended.
"""

from functools import reduce
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field, field_validator

RUBRIC_BANDS = (0, 25, 50, 75, 100)


class KeyResultAnalysis(BaseModel):
    """Facts detected in a key result string, used by the rubric dimensions."""

    metric_type: Optional[str] = None  # percentage, currency, count, time, ratio
    baseline: Optional[float] = None
    target: Optional[float] = None
    improvement_ratio: Optional[float] = None
    verb: Optional[str] = None
    has_metric: bool = False
    has_baseline: bool = False
    has_target: bool = False
    has_units: bool = False
    has_timeframe: bool = False


class DimensionScore(BaseModel):
    """Rubric score of a single key result.

    Each dimension is one of 0/25/50/75/100; `overall` is the weighted sum
    (measurability 30%, specificity 25%, achievability 20%, relevance 15%,
    time-bound 10%), rounded half up.
    """

    text: str = ""
    measurability: int = 0
    specificity: int = 0
    achievability: int = 0
    relevance: int = 0
    time_bound: int = 0
    overall: int = Field(default=0, ge=0, le=100)
    grade: str = "F"
    issues: List[str] = Field(default_factory=list)
    suggestions: List[str] = Field(default_factory=list)
    analysis: KeyResultAnalysis = Field(default_factory=KeyResultAnalysis)

    @field_validator(
        "measurability", "specificity", "achievability", "relevance", "time_bound"
    )
    @classmethod
    def must_be_rubric_band(cls, v: int) -> int:
        if v not in RUBRIC_BANDS:
            raise ValueError(f"dimension score must be one of {RUBRIC_BANDS}, got {v}")
        return v

    @property
    def dimensions(self) -> Dict[str, int]:
        return {
            "measurability": self.measurability,
            "specificity": self.specificity,
            "achievability": self.achievability,
            "relevance": self.relevance,
            "time_bound": self.time_bound,
        }


class ObjectiveScore(BaseModel):
    """Rubric score of an objective statement."""

    text: str = ""
    overall: int = Field(default=0, ge=0, le=100)
    dimensions: Dict[str, int] = Field(default_factory=dict)
    feedback: List[str] = Field(default_factory=list)
    grade: str = "F"


class OverallScore(BaseModel):
    """Score of the objective and its key results taken as one OKR set."""

    score: int = Field(default=0, ge=0, le=100)
    achievability: int = Field(default=0, ge=0, le=100)
    coherence: int = 0
    completeness: int = 0
    balance: int = 0
    level: str = "poor"


class QualityScore(BaseModel):
    """Accumulated quality scores for a session."""

    objective: Optional[ObjectiveScore] = None
    key_results: Optional[List[DimensionScore]] = None
    overall: Optional[OverallScore] = None

    @property
    def objective_quality(self) -> int:
        return self.objective.overall if self.objective else 0

    @property
    def key_result_count(self) -> int:
        return len(self.key_results or [])

    @property
    def average_key_result_score(self) -> float:
        if not self.key_results:
            return 0.0
        return sum(kr.overall for kr in self.key_results) / len(self.key_results)

    def is_empty(self) -> bool:
        return (
            _objective_is_empty(self.objective)
            and not self.key_results
            and _overall_is_empty(self.overall)
        )


def _objective_is_empty(objective: Optional[ObjectiveScore]) -> bool:
    return objective is None or (objective.overall == 0 and not objective.text.strip())


def _overall_is_empty(overall: Optional[OverallScore]) -> bool:
    return overall is None or overall.score == 0


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def merge_key_results(
    previous: Optional[List[DimensionScore]], update: Optional[List[DimensionScore]]
) -> Optional[List[DimensionScore]]:
    """Merge key-result scores by normalized text, keeping first-seen order."""
    if not update:
        return previous
    if not previous:
        return list(update)

    merged: Dict[str, DimensionScore] = {_normalize(kr.text): kr for kr in previous}
    for kr in update:
        merged[_normalize(kr.text)] = kr
    return list(merged.values())


def merge_scores(previous: QualityScore, update: QualityScore) -> QualityScore:
    """Combine two score snapshots without discarding computed data.

    Pure function: neither argument is modified.
    """
    objective = previous.objective
    if not _objective_is_empty(update.objective):
        objective = update.objective

    overall = previous.overall
    if not _overall_is_empty(update.overall):
        overall = update.overall

    return QualityScore(
        objective=objective,
        key_results=merge_key_results(previous.key_results, update.key_results),
        overall=overall,
    )


def fold_scores(
    updates: Iterable[QualityScore], initial: Optional[QualityScore] = None
) -> QualityScore:
    """Reduce a sequence of per-turn scores into the accumulated score."""
    return reduce(merge_scores, updates, initial or QualityScore())
