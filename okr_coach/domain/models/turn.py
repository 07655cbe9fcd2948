"""Result of processing one user turn."""

from typing import Optional

from pydantic import BaseModel

from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.quality import QualityScore
from okr_coach.domain.models.transition import (
    PhaseReadiness,
    RollbackResult,
    TransitionAttempt,
)


class TurnOutcome(BaseModel):
    """Structured result handed back to the transport layer.

    `success=False` means the turn raised; `error` carries the message and
    nothing else is guaranteed to be set.
    """

    success: bool
    session_id: str
    phase: Optional[Phase] = None
    readiness: Optional[PhaseReadiness] = None
    quality_scores: Optional[QualityScore] = None
    transition: Optional[TransitionAttempt] = None
    rollback: Optional[RollbackResult] = None
    latency_ms: int = 0
    error: Optional[str] = None
