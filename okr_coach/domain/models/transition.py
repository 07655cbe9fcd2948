"""Transition, readiness, snapshot and event models."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.quality import QualityScore
from okr_coach.domain.models.session import SessionContext, utcnow


class TransitionTrigger(str, Enum):
    """What caused a phase transition attempt."""

    QUALITY_THRESHOLD = "quality_threshold"
    FINALIZATION_SIGNAL = "finalization_signal"
    TIMEOUT = "timeout"
    FORCED = "forced"


class TransitionEventType(str, Enum):
    BEFORE = "before"
    AFTER = "after"
    FAILED = "failed"


class PhaseReadiness(BaseModel):
    """Readiness of the current phase to advance. Computed fresh every turn."""

    current_phase: Phase
    readiness_score: float = Field(ge=0.0, le=1.0)
    ready_to_transition: bool = False
    missing_elements: List[str] = Field(default_factory=list)
    forced: bool = False


class ValidationResult(BaseModel):
    """Outcome of a transition validation; errors are cumulative."""

    valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class SnapshotReason(str, Enum):
    BEFORE_TRANSITION = "before_transition"
    MANUAL = "manual"
    CHECKPOINT = "checkpoint"


class Snapshot(BaseModel):
    """Immutable point-in-time capture of session state."""

    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    phase: Phase
    context: SessionContext
    quality_scores: QualityScore
    message_count: int
    reason: SnapshotReason = SnapshotReason.BEFORE_TRANSITION
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)


class TransitionEvent(BaseModel):
    """Notification published on the transition event bus."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    from_phase: Phase
    to_phase: Phase
    trigger: TransitionTrigger
    reason: str = ""
    quality_scores: QualityScore = Field(default_factory=QualityScore)
    message_count: int = 0
    turns_in_phase: int = 0
    valid: bool = True
    errors: Optional[List[str]] = None
    metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime = Field(default_factory=utcnow)


class TransitionAttempt(BaseModel):
    """What happened when the orchestrator tried to leave a phase."""

    from_phase: Phase
    to_phase: Phase
    trigger: TransitionTrigger
    committed: bool
    snapshot_id: str
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class RollbackResult(BaseModel):
    success: bool
    snapshot_id: Optional[str] = None
    restored_phase: Optional[Phase] = None
    error: Optional[str] = None
