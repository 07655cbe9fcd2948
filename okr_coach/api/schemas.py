"""
API request/response schemas.

Pydantic models for API validation and serialization. Domain models are
returned directly where their shape is already the public one.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.session import Message, Session, SessionContext
from okr_coach.domain.models.transition import Snapshot


# ============ SESSION SCHEMAS ============


class SessionCreate(BaseModel):
    """Request to create a new session. The id is generated when omitted."""

    id: Optional[str] = Field(default=None, min_length=1, max_length=100)


class SessionResponse(BaseModel):
    """Session details response."""

    id: str
    phase: Phase
    context: SessionContext
    message_count: int = 0
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: Session) -> "SessionResponse":
        return cls(
            id=session.id,
            phase=session.phase,
            context=session.context,
            message_count=session.message_count,
            messages=session.messages,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


# ============ TURN SCHEMAS ============


class TurnRequest(BaseModel):
    """Request to process a turn."""

    message: str = Field(..., min_length=1, max_length=5000, description="User's message")
    assistant_message: Optional[str] = Field(
        default=None, max_length=10000, description="Coach reply to record with the turn"
    )
    as_of: Optional[datetime] = Field(
        default=None, description="Reference time for timeframe scoring"
    )


# ============ SNAPSHOT / ROLLBACK SCHEMAS ============


class SnapshotSummary(BaseModel):
    id: str
    phase: Phase
    reason: str
    message_count: int
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime

    @classmethod
    def from_snapshot(cls, snapshot: Snapshot) -> "SnapshotSummary":
        return cls(
            id=snapshot.id,
            phase=snapshot.phase,
            reason=snapshot.reason.value,
            message_count=snapshot.message_count,
            metadata=snapshot.metadata,
            timestamp=snapshot.timestamp,
        )


class SnapshotListResponse(BaseModel):
    snapshots: List[SnapshotSummary]
    total: int


class RollbackRequest(BaseModel):
    """Rollback target: a snapshot id, a phase, or (neither) the latest snapshot."""

    snapshot_id: Optional[str] = None
    phase: Optional[Phase] = None


# ============ SCORING SCHEMAS ============


class KeyResultScoreRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)
    objective: Optional[str] = Field(default=None, max_length=2000)
    as_of: Optional[datetime] = None


class ObjectiveScoreRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)
