"""
Turn pipeline context.

Carries the turn's inputs and accumulates one output contract per stage.
Convenience properties raise RuntimeError when read before the producing
stage has run, so ordering mistakes fail loudly.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.pipeline_contracts import (
    ContextLoadingOutput,
    ExtractionOutput,
    ReadinessOutput,
    ScoringOutput,
    StateSavingOutput,
    TransitionOutput,
)
from okr_coach.domain.models.quality import QualityScore
from okr_coach.domain.models.session import Message, Session


@dataclass
class PipelineContext:
    """State accumulated across the stages of one turn."""

    # =========================================================================
    # Inputs
    # =========================================================================
    session_id: str
    user_input: str
    assistant_message: Optional[str] = None
    now: Optional[datetime] = None

    # =========================================================================
    # Stage outputs
    # =========================================================================
    context_loading_output: Optional[ContextLoadingOutput] = None
    extraction_output: Optional[ExtractionOutput] = None
    scoring_output: Optional[ScoringOutput] = None
    readiness_output: Optional[ReadinessOutput] = None
    transition_output: Optional[TransitionOutput] = None
    state_saving_output: Optional[StateSavingOutput] = None

    stage_timings: Dict[str, float] = field(default_factory=dict)

    def _require(self, value, name: str, stage: str):
        if value is None:
            raise RuntimeError(
                f"Pipeline contract violation: {name} accessed before {stage} completed. "
                f"Session: {self.session_id}"
            )
        return value

    @property
    def session(self) -> Session:
        return self._require(
            self.context_loading_output, "session", "ContextLoadingStage"
        ).session

    @property
    def phase(self) -> Phase:
        """Committed phase: post-transition if a transition ran, else as loaded."""
        if self.transition_output is not None:
            return self.transition_output.phase
        return self._require(self.context_loading_output, "phase", "ContextLoadingStage").phase

    @property
    def new_messages(self) -> List[Message]:
        """This turn's messages, not yet persisted."""
        return self._require(
            self.context_loading_output, "new_messages", "ContextLoadingStage"
        ).new_messages

    @property
    def message_count(self) -> int:
        return self._require(
            self.context_loading_output, "message_count", "ContextLoadingStage"
        ).message_count

    @property
    def turns_in_phase(self) -> int:
        return self._require(
            self.context_loading_output, "turns_in_phase", "ContextLoadingStage"
        ).turns_in_phase

    @property
    def quality_scores(self) -> QualityScore:
        return self._require(
            self.scoring_output, "quality_scores", "ScoringStage"
        ).quality_scores
