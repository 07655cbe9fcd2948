"""Content scoring package.

Pure rubric functions (one per dimension) plus the cached ContentScorer
facade used by the turn pipeline.
"""

from okr_coach.services.scoring.content_scorer import ContentScorer
from okr_coach.services.scoring.key_result import analyze_key_result, score_key_result
from okr_coach.services.scoring.objective import score_objective
from okr_coach.services.scoring.overall import score_overall
from okr_coach.services.scoring.time_bound import (
    TimeBoundResult,
    describe_timeframe,
    validate_time_bound,
)

__all__ = [
    "ContentScorer",
    "analyze_key_result",
    "score_key_result",
    "score_objective",
    "score_overall",
    "TimeBoundResult",
    "describe_timeframe",
    "validate_time_bound",
]
