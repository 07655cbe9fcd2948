"""
Snapshots and rollback.

A snapshot is taken before every transition attempt, whatever its outcome,
so a last known good state always exists. Snapshots are append-only: this
module never mutates or deletes them. Retention is left to storage.

Rollback restores a session's phase and context from a snapshot through the
persistence collaborator. It is an administrative restore, not a phase
transition, and bypasses the transition validator.
"""

import secrets
import time
from collections import Counter, defaultdict
from typing import Any, Dict, List, Optional, Protocol, Sequence

import structlog

from okr_coach.core.exceptions import (
    RollbackError,
    SessionNotFoundError,
    SnapshotNotFoundError,
)
from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.quality import QualityScore
from okr_coach.domain.models.session import Message, Session, SessionContext
from okr_coach.domain.models.transition import RollbackResult, Snapshot, SnapshotReason

log = structlog.get_logger(__name__)


class SnapshotStore(Protocol):
    """Durable sink for snapshots (e.g. SnapshotRepository)."""

    async def save(self, snapshot: Snapshot) -> None: ...

    async def list_for_session(self, session_id: str) -> List[Snapshot]: ...


class SessionStore(Protocol):
    """Subset of the session repository that rollback needs."""

    async def get(self, session_id: str) -> Optional[Session]: ...

    async def update_state(
        self,
        session_id: str,
        phase: Phase,
        context: SessionContext,
        messages: Optional[Sequence[Message]] = None,
    ) -> Session: ...


def _snapshot_id(session_id: str) -> str:
    return f"snapshot_{session_id}_{int(time.time() * 1000)}_{secrets.token_hex(4)}"


class SnapshotManager:
    """In-memory, append-only snapshot log, optionally mirrored to a store."""

    def __init__(self, store: Optional[SnapshotStore] = None):
        self.store = store
        self._snapshots: Dict[str, List[Snapshot]] = defaultdict(list)

    async def create_snapshot(
        self,
        session_id: str,
        phase: Phase,
        context: SessionContext,
        quality_scores: QualityScore,
        message_count: int,
        reason: SnapshotReason = SnapshotReason.BEFORE_TRANSITION,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Snapshot:
        """Capture session state. Inputs are deep-copied; later edits do not leak in."""
        snapshot = Snapshot(
            id=_snapshot_id(session_id),
            session_id=session_id,
            phase=Phase(phase),
            context=context.model_copy(deep=True),
            quality_scores=quality_scores.model_copy(deep=True),
            message_count=message_count,
            reason=reason,
            metadata=dict(metadata or {}),
        )
        if self.store is not None:
            await self.store.save(snapshot)
        self._snapshots[session_id].append(snapshot)

        log.info(
            "snapshot_created",
            session_id=session_id,
            snapshot_id=snapshot.id,
            phase=snapshot.phase.value,
            reason=snapshot.reason.value,
            message_count=message_count,
        )
        return snapshot

    async def hydrate(self, session_id: str) -> int:
        """Load a session's stored snapshots if none are held in memory yet."""
        if self.store is None or self._snapshots.get(session_id):
            return self.count(session_id)
        self._snapshots[session_id] = list(await self.store.list_for_session(session_id))
        return self.count(session_id)

    def get_snapshots(self, session_id: str) -> List[Snapshot]:
        """All snapshots for a session, oldest first."""
        return list(self._snapshots.get(session_id, []))

    def count(self, session_id: str) -> int:
        return len(self._snapshots.get(session_id, []))

    def get_latest(self, session_id: str) -> Optional[Snapshot]:
        snapshots = self._snapshots.get(session_id)
        return snapshots[-1] if snapshots else None

    def get_by_id(self, session_id: str, snapshot_id: str) -> Snapshot:
        for snapshot in self._snapshots.get(session_id, []):
            if snapshot.id == snapshot_id:
                return snapshot
        raise SnapshotNotFoundError(f"Snapshot {snapshot_id} not found for session {session_id}")

    def get_back(self, session_id: str, steps: int) -> Optional[Snapshot]:
        """The snapshot `steps` places before the latest (0 is the latest)."""
        snapshots = self._snapshots.get(session_id, [])
        if steps < 0 or steps >= len(snapshots):
            return None
        return snapshots[-1 - steps]

    def get_previous(self, session_id: str) -> Optional[Snapshot]:
        return self.get_back(session_id, 1)

    def latest_for_phase(self, session_id: str, phase: Phase) -> Optional[Snapshot]:
        for snapshot in reversed(self._snapshots.get(session_id, [])):
            if snapshot.phase is Phase(phase):
                return snapshot
        return None

    def statistics(self, session_id: Optional[str] = None) -> Dict[str, Any]:
        if session_id is not None:
            snapshots = self._snapshots.get(session_id, [])
        else:
            snapshots = [s for group in self._snapshots.values() for s in group]
        return {
            "total": len(snapshots),
            "sessions": len(self._snapshots) if session_id is None else int(bool(snapshots)),
            "by_phase": dict(Counter(s.phase.value for s in snapshots)),
            "by_reason": dict(Counter(s.reason.value for s in snapshots)),
        }


class RollbackManager:
    """Restores sessions from snapshots."""

    def __init__(self, snapshots: SnapshotManager, sessions: SessionStore):
        self.snapshots = snapshots
        self.sessions = sessions

    async def rollback_to_snapshot(self, session_id: str, snapshot_id: str) -> RollbackResult:
        snapshot = self.snapshots.get_by_id(session_id, snapshot_id)
        return await self._restore(snapshot)

    async def rollback_to_previous(self, session_id: str) -> RollbackResult:
        """Restore the most recent snapshot (state before the last attempt)."""
        snapshot = self.snapshots.get_latest(session_id)
        if snapshot is None:
            raise RollbackError(f"No snapshots available for session {session_id}")
        return await self._restore(snapshot)

    async def rollback_to_phase(self, session_id: str, phase: Phase) -> RollbackResult:
        snapshot = self.snapshots.latest_for_phase(session_id, phase)
        if snapshot is None:
            raise RollbackError(
                f"No snapshot of phase {Phase(phase).value} for session {session_id}"
            )
        return await self._restore(snapshot)

    def can_rollback_to_phase(self, session_id: str, phase: Phase) -> bool:
        return self.snapshots.latest_for_phase(session_id, phase) is not None

    def available_rollback_points(self, session_id: str) -> List[Dict[str, Any]]:
        return [
            {
                "snapshot_id": s.id,
                "phase": s.phase.value,
                "reason": s.reason.value,
                "message_count": s.message_count,
                "timestamp": s.timestamp.isoformat(),
            }
            for s in reversed(self.snapshots.get_snapshots(session_id))
        ]

    async def _restore(self, snapshot: Snapshot) -> RollbackResult:
        session = await self.sessions.get(snapshot.session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {snapshot.session_id} not found")
        context = snapshot.context.model_copy(deep=True)
        context.conversation_state.quality_scores = snapshot.quality_scores.model_copy(deep=True)
        context.conversation_state.turns_in_phase = 0
        context.conversation_state.phase_started_at_message = session.message_count

        await self.sessions.update_state(snapshot.session_id, snapshot.phase, context)
        log.info(
            "session_rolled_back",
            session_id=snapshot.session_id,
            snapshot_id=snapshot.id,
            from_phase=session.phase.value,
            to_phase=snapshot.phase.value,
        )
        return RollbackResult(
            success=True, snapshot_id=snapshot.id, restored_phase=snapshot.phase
        )
