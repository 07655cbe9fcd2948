"""Session domain models for the coaching conversation.

Core Models:
    - Session: Top-level coaching entity with its current phase
    - SessionContext: Typed replacement for the free-form context blob
    - ConversationState: Per-phase bookkeeping and accumulated scores
    - OKRData: The objective and key-result strings captured so far

Session Lifecycle:
    1. Created in the discovery phase
    2. Context updated every turn (scores, OKR text, turn counters)
    3. Phase advanced only by a validated, durably committed transition
    4. Terminal once the phase is completed
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.quality import QualityScore


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(BaseModel):
    """Single utterance in the coaching dialogue."""

    role: Literal["user", "assistant"]
    content: str
    created_at: datetime = Field(default_factory=utcnow)


class OKRData(BaseModel):
    """Objective and key-result text captured from the conversation."""

    objective: Optional[str] = None
    key_results: List[str] = Field(default_factory=list)

    @property
    def has_objective(self) -> bool:
        return bool(self.objective and self.objective.strip())

    @property
    def has_key_results(self) -> bool:
        return len(self.key_results) > 0


class PhaseHistoryEntry(BaseModel):
    """Record of a committed phase change."""

    from_phase: Phase
    to_phase: Phase
    trigger: str
    message_count: int
    at: datetime = Field(default_factory=utcnow)


class ConversationState(BaseModel):
    """Per-phase bookkeeping carried between turns."""

    quality_scores: QualityScore = Field(default_factory=QualityScore)
    turns_in_phase: int = Field(default=0, ge=0)
    phase_started_at_message: int = Field(default=0, ge=0)
    last_readiness: Optional[float] = None


class SessionContext(BaseModel):
    """Typed session context.

    `extra` holds genuinely open-ended metadata only.
    """

    conversation_state: ConversationState = Field(default_factory=ConversationState)
    okr_data: OKRData = Field(default_factory=OKRData)
    phase_history: List[PhaseHistoryEntry] = Field(default_factory=list)
    extra: Dict[str, Any] = Field(default_factory=dict)

    def has_required(self, requirement: str) -> bool:
        """Whether a `requires_data` entry is satisfied."""
        if requirement == "objective":
            return self.okr_data.has_objective
        if requirement == "key_results":
            return self.okr_data.has_key_results
        return False


class Session(BaseModel):
    """Coaching session as stored by the persistence collaborator."""

    id: str
    phase: Phase = Phase.DISCOVERY
    context: SessionContext = Field(default_factory=SessionContext)
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def is_completed(self) -> bool:
        return self.phase is Phase.COMPLETED

    def recent_messages(self, limit: int) -> List[Message]:
        return self.messages[-limit:] if limit > 0 else []
