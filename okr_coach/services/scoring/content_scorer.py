"""ContentScorer: cached facade over the pure rubric functions."""

from datetime import datetime
from typing import List, Optional, Sequence

import structlog

from okr_coach.domain.models.quality import (
    DimensionScore,
    ObjectiveScore,
    QualityScore,
    merge_scores,
)
from okr_coach.services.cache import TTLCache
from okr_coach.services.scoring.key_result import score_key_result
from okr_coach.services.scoring.objective import score_objective
from okr_coach.services.scoring.overall import score_overall

log = structlog.get_logger(__name__)


class ContentScorer:
    """Scores objective and key-result text.

    Results are pure functions of (text, objective context, month of `now`),
    so they are memoized in the injected cache. Callers always receive a
    copy they may mutate freely.
    """

    def __init__(self, cache: Optional[TTLCache] = None):
        self.cache = cache if cache is not None else TTLCache(name="content_scores")

    def score_key_result(
        self, text: str, objective: Optional[str] = None, now: Optional[datetime] = None
    ) -> DimensionScore:
        now = now or datetime.now()
        key = ("kr", text.strip(), (objective or "").strip(), now.year, now.month)
        score = self.cache.get_or_compute(
            key, lambda: score_key_result(text, objective=objective, now=now)
        )
        return score.model_copy(deep=True)

    def score_objective(self, text: str) -> ObjectiveScore:
        key = ("objective", text.strip())
        score = self.cache.get_or_compute(key, lambda: score_objective(text))
        return score.model_copy(deep=True)

    def score_turn(
        self,
        objective: Optional[str],
        key_results: Sequence[str],
        objective_context: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> QualityScore:
        """Score whatever OKR text one turn produced.

        Only fields with candidate text are populated; the rest stay None so
        merging never replaces earlier results with empty ones. Key results
        are judged for relevance against `objective`, or `objective_context`
        when this turn produced no new objective.
        """
        objective_score = self.score_objective(objective) if objective else None
        context = objective or objective_context
        kr_scores: Optional[List[DimensionScore]] = None
        if key_results:
            kr_scores = [
                self.score_key_result(kr, objective=context, now=now) for kr in key_results
            ]

        log.debug(
            "turn_scored",
            objective_score=objective_score.overall if objective_score else None,
            key_results_scored=len(kr_scores or []),
        )
        return QualityScore(objective=objective_score, key_results=kr_scores)

    def accumulate(self, previous: QualityScore, turn: QualityScore) -> QualityScore:
        """Merge a turn's scores into the session's and refresh the overall score."""
        merged = merge_scores(previous, turn)
        overall = score_overall(merged.objective, merged.key_results)
        return merge_scores(merged, QualityScore(overall=overall))
