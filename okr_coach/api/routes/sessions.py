"""
Session API routes.

Endpoints for session management, turn processing and rollback.
"""

from fastapi import APIRouter, status
import structlog

from okr_coach.api.dependencies import CoachingServiceDep
from okr_coach.api.schemas import (
    RollbackRequest,
    SessionCreate,
    SessionResponse,
    SnapshotListResponse,
    SnapshotSummary,
    TurnRequest,
)
from okr_coach.core.exceptions import OKRCoachError, SessionCompletedError
from okr_coach.domain.models.transition import RollbackResult
from okr_coach.domain.models.turn import TurnOutcome

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(request: SessionCreate, service: CoachingServiceDep):
    """Create a coaching session in the discovery phase."""
    session = await service.create_session(request.id)
    return SessionResponse.from_session(session)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, service: CoachingServiceDep):
    session = await service.get_session(session_id)
    return SessionResponse.from_session(session)


@router.post("/{session_id}/turns", response_model=TurnOutcome)
async def process_turn(session_id: str, request: TurnRequest, service: CoachingServiceDep):
    """Process one user message: score it, evaluate readiness and attempt
    a phase transition when the phase is ready."""
    session = await service.get_session(session_id)
    if session.is_completed:
        raise SessionCompletedError(
            f"Session {session_id} is completed; no further turns accepted"
        )

    outcome = await service.process_turn(
        session_id,
        request.message,
        assistant_message=request.assistant_message,
        now=request.as_of,
    )
    if not outcome.success:
        raise OKRCoachError(outcome.error or "Turn processing failed")
    return outcome


@router.get("/{session_id}/snapshots", response_model=SnapshotListResponse)
async def list_snapshots(session_id: str, service: CoachingServiceDep):
    snapshots = await service.list_snapshots(session_id)
    return SnapshotListResponse(
        snapshots=[SnapshotSummary.from_snapshot(s) for s in snapshots],
        total=len(snapshots),
    )


@router.post("/{session_id}/rollback", response_model=RollbackResult)
async def rollback_session(
    session_id: str, request: RollbackRequest, service: CoachingServiceDep
):
    """Restore the session from a snapshot (latest when no target given)."""
    result = await service.rollback(
        session_id, snapshot_id=request.snapshot_id, phase=request.phase
    )
    log.info(
        "session_rollback_requested",
        session_id=session_id,
        snapshot_id=result.snapshot_id,
        restored_phase=result.restored_phase.value if result.restored_phase else None,
    )
    return result
