"""Domain models package."""

from .phase import Phase, PHASE_ORDER, next_phase, phase_index, is_backward, is_forward
from .quality import (
    DimensionScore,
    KeyResultAnalysis,
    ObjectiveScore,
    OverallScore,
    QualityScore,
    fold_scores,
    merge_scores,
)
from .session import (
    ConversationState,
    Message,
    OKRData,
    PhaseHistoryEntry,
    Session,
    SessionContext,
)
from .transition import (
    PhaseReadiness,
    RollbackResult,
    Snapshot,
    SnapshotReason,
    TransitionAttempt,
    TransitionEvent,
    TransitionEventType,
    TransitionTrigger,
    ValidationResult,
)
from .turn import TurnOutcome

__all__ = [
    "Phase",
    "PHASE_ORDER",
    "next_phase",
    "phase_index",
    "is_backward",
    "is_forward",
    "DimensionScore",
    "KeyResultAnalysis",
    "ObjectiveScore",
    "OverallScore",
    "QualityScore",
    "fold_scores",
    "merge_scores",
    "ConversationState",
    "Message",
    "OKRData",
    "PhaseHistoryEntry",
    "Session",
    "SessionContext",
    "PhaseReadiness",
    "RollbackResult",
    "Snapshot",
    "SnapshotReason",
    "TransitionAttempt",
    "TransitionEvent",
    "TransitionEventType",
    "TransitionTrigger",
    "ValidationResult",
    "TurnOutcome",
]
