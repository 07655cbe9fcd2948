"""Pipeline stage contracts.

Pydantic models for the output of each turn pipeline stage. The pipeline
context holds one of each; they are the single source of truth for the
turn's data.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.quality import QualityScore
from okr_coach.domain.models.session import Message, Session, SessionContext
from okr_coach.domain.models.transition import (
    PhaseReadiness,
    TransitionAttempt,
    TransitionTrigger,
)


class ContextLoadingOutput(BaseModel):
    """Contract: ContextLoadingStage output (Stage 1).

    Session as loaded, with this turn's messages appended in memory. They
    reach the database with the turn's state write.
    """

    session: Session
    phase: Phase
    message_count: int = Field(ge=0)
    turns_in_phase: int = Field(ge=1, description="Including the current turn")
    recent_messages: List[str] = Field(
        default_factory=list, description="Finalization search window"
    )
    user_messages: List[str] = Field(default_factory=list)
    new_messages: List[Message] = Field(default_factory=list)


class ExtractionOutput(BaseModel):
    """Contract: ExtractionStage output (Stage 2)."""

    objective: Optional[str] = None
    key_results: List[str] = Field(default_factory=list)
    context: SessionContext = Field(description="Session context with OKR text updated")


class ScoringOutput(BaseModel):
    """Contract: ScoringStage output (Stage 3)."""

    turn_scores: QualityScore
    quality_scores: QualityScore = Field(description="Accumulated across the session")


class ReadinessOutput(BaseModel):
    """Contract: ReadinessStage output (Stage 4)."""

    readiness: PhaseReadiness
    finalization_detected: bool = False
    should_transition: bool = False
    target_phase: Optional[Phase] = None
    trigger: Optional[TransitionTrigger] = None


class TransitionOutput(BaseModel):
    """Contract: TransitionStage output (Stage 5)."""

    attempt: Optional[TransitionAttempt] = None
    phase: Phase = Field(description="Durably committed phase after this stage")
    context: SessionContext


class StateSavingOutput(BaseModel):
    """Contract: StateSavingStage output (Stage 6)."""

    phase: Phase
    saved: bool = True
