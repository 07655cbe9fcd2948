"""
Stage 3: Score this turn's OKR text and fold it into the session's scores.
"""

from typing import TYPE_CHECKING

import structlog

from ..base import TurnStage
from okr_coach.domain.models.pipeline_contracts import ScoringOutput
from okr_coach.services.scoring.content_scorer import ContentScorer

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class ScoringStage(TurnStage):
    def __init__(self, scorer: ContentScorer):
        self.scorer = scorer

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        extraction = context.extraction_output
        if extraction is None:
            raise RuntimeError(
                "Pipeline contract violation: ScoringStage ran before ExtractionStage. "
                f"Session: {context.session_id}"
            )

        previous = extraction.context.conversation_state.quality_scores
        turn_scores = self.scorer.score_turn(
            extraction.objective,
            extraction.key_results,
            objective_context=extraction.context.okr_data.objective,
            now=context.now,
        )
        accumulated = self.scorer.accumulate(previous, turn_scores)
        extraction.context.conversation_state.quality_scores = accumulated

        context.scoring_output = ScoringOutput(
            turn_scores=turn_scores, quality_scores=accumulated
        )

        log.info(
            "quality_scores_updated",
            session_id=context.session_id,
            objective_score=accumulated.objective_quality,
            key_results=accumulated.key_result_count,
            average_key_result_score=round(accumulated.average_key_result_score, 1),
            overall_score=accumulated.overall.score if accumulated.overall else None,
        )
        return context
