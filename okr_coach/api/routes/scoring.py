"""
Scoring API routes.

Stateless scoring of single objectives and key results, outside any
coaching session.
"""

from fastapi import APIRouter
import structlog

from okr_coach.api.dependencies import ScorerDep
from okr_coach.api.schemas import KeyResultScoreRequest, ObjectiveScoreRequest
from okr_coach.domain.models.quality import DimensionScore, ObjectiveScore

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/score", tags=["scoring"])


@router.post("/key-result", response_model=DimensionScore)
async def score_key_result(request: KeyResultScoreRequest, scorer: ScorerDep):
    """Score a key result on measurability, specificity, achievability,
    relevance and time-boundedness."""
    score = scorer.score_key_result(request.text, request.objective, now=request.as_of)
    log.debug("key_result_scored", overall=score.overall, grade=score.grade)
    return score


@router.post("/objective", response_model=ObjectiveScore)
async def score_objective(request: ObjectiveScoreRequest, scorer: ScorerDep):
    """Score an objective against the objective rubric."""
    return scorer.score_objective(request.text)
