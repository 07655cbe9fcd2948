"""
Coaching orchestration service.

Main entry point for turn processing. Each turn runs through a pipeline of
stages: load context, extract OKR text, score it, evaluate readiness and
attempt a phase transition, then persist the new state.

Turns of the same session are serialised with a per-session lock; turns of
different sessions run concurrently.
"""

import asyncio
import time
import weakref
from datetime import datetime
from typing import List, Optional
from uuid import uuid4

import structlog

from okr_coach.core.config import settings
from okr_coach.core.exceptions import (
    SessionCompletedError,
    SessionNotFoundError,
    SnapshotError,
)
from okr_coach.domain.models.phase import Phase, phase_index
from okr_coach.domain.models.session import Message, Session
from okr_coach.domain.models.transition import RollbackResult, Snapshot
from okr_coach.domain.models.turn import TurnOutcome
from okr_coach.persistence.repositories.session_repo import SessionRepository
from okr_coach.services.cache import TTLCache
from okr_coach.services.event_bus import TransitionEventBus
from okr_coach.services.phase_machine import PhaseStateMachine
from okr_coach.services.scoring.content_scorer import ContentScorer
from okr_coach.services.signals import detect_rollback_intent
from okr_coach.services.snapshot_manager import RollbackManager, SnapshotManager
from okr_coach.services.transition_validator import TransitionValidator
from okr_coach.services.turn_pipeline import PipelineContext, TurnPipeline
from okr_coach.services.turn_pipeline.stages import (
    ContextLoadingStage,
    ExtractionStage,
    ReadinessStage,
    ScoringStage,
    StateSavingStage,
    TransitionStage,
)

log = structlog.get_logger(__name__)


class CoachingService:
    """Orchestrates OKR coaching turns for many sessions."""

    def __init__(
        self,
        session_repo: SessionRepository,
        scorer: Optional[ContentScorer] = None,
        state_machine: Optional[PhaseStateMachine] = None,
        validator: Optional[TransitionValidator] = None,
        snapshots: Optional[SnapshotManager] = None,
        events: Optional[TransitionEventBus] = None,
    ):
        """
        Initialize the service and build its pipeline.

        Args:
            session_repo: Session persistence
            scorer: Content scorer (cached default if None)
            state_machine: Readiness evaluator (config file defaults if None)
            validator: Transition validator, sharing the state machine config if None
            snapshots: Snapshot manager (in-memory only if None)
            events: Transition event bus (new bus if None)
        """
        self.session_repo = session_repo
        self.scorer = scorer or ContentScorer(
            TTLCache(
                max_size=settings.score_cache_size,
                ttl_seconds=settings.score_cache_ttl_seconds,
                name="score_cache",
            )
        )
        self.state_machine = state_machine or PhaseStateMachine(
            forced_progression_turns=settings.forced_progression_turns
        )
        self.validator = validator or TransitionValidator(self.state_machine.config)
        self.snapshots = snapshots or SnapshotManager()
        self.events = events or TransitionEventBus(history_size=settings.event_history_size)
        self.rollbacks = RollbackManager(self.snapshots, self.session_repo)

        # Entries vanish once no turn holds or awaits the lock
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()
        self.pipeline = self._build_pipeline()

        log.info("coaching_service_initialized", pipeline_stages=len(self.pipeline.stages))

    def _build_pipeline(self) -> TurnPipeline:
        return TurnPipeline(
            [
                ContextLoadingStage(
                    self.session_repo, finalization_window=settings.finalization_window
                ),
                ExtractionStage(),
                ScoringStage(self.scorer),
                ReadinessStage(
                    self.state_machine,
                    weak_min_messages=settings.weak_signal_min_messages,
                ),
                TransitionStage(self.validator, self.snapshots, self.events, self.session_repo),
                StateSavingStage(self.session_repo),
            ]
        )

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def create_session(self, session_id: Optional[str] = None) -> Session:
        return await self.session_repo.create(Session(id=session_id or str(uuid4())))

    async def get_session(self, session_id: str) -> Session:
        session = await self.session_repo.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    async def list_snapshots(self, session_id: str) -> List[Snapshot]:
        await self.get_session(session_id)
        await self.snapshots.hydrate(session_id)
        return self.snapshots.get_snapshots(session_id)

    # ------------------------------------------------------------------
    # Turns
    # ------------------------------------------------------------------

    async def process_turn(
        self,
        session_id: str,
        user_message: str,
        assistant_message: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> TurnOutcome:
        """
        Process one user turn.

        Never raises: failures are logged and returned as
        TurnOutcome(success=False).

        Args:
            session_id: Session to advance
            user_message: Latest user utterance
            assistant_message: Coach reply to record alongside it, if any
            now: Reference time for timeframe scoring (current time if None)
        """
        async with self._lock_for(session_id):
            try:
                await self.snapshots.hydrate(session_id)
                intent = detect_rollback_intent(user_message)
                if intent.detected:
                    return await self._rollback_turn(
                        session_id, user_message, assistant_message, intent.target_phase
                    )

                context = PipelineContext(
                    session_id=session_id,
                    user_input=user_message,
                    assistant_message=assistant_message,
                    now=now,
                )
                return await self.pipeline.execute(context)
            except Exception as e:
                log.error(
                    "turn_processing_failed",
                    session_id=session_id,
                    error_type=type(e).__name__,
                    error=str(e),
                    exc_info=True,
                )
                return TurnOutcome(success=False, session_id=session_id, error=str(e))

    async def _rollback_turn(
        self,
        session_id: str,
        user_message: str,
        assistant_message: Optional[str],
        target_phase: Optional[Phase],
    ) -> TurnOutcome:
        start_time = time.perf_counter()
        session = await self.get_session(session_id)
        if session.is_completed:
            raise SessionCompletedError(
                f"Session {session_id} is completed; no further turns accepted"
            )

        await self.session_repo.add_message(session_id, Message(role="user", content=user_message))
        if assistant_message:
            await self.session_repo.add_message(
                session_id, Message(role="assistant", content=assistant_message)
            )

        log.info(
            "rollback_intent_detected",
            session_id=session_id,
            target_phase=target_phase.value if target_phase else None,
        )
        if target_phase is not None and phase_index(target_phase) >= phase_index(session.phase):
            log.warning(
                "rollback_target_not_behind",
                session_id=session_id,
                current_phase=session.phase.value,
                target_phase=target_phase.value,
            )
            result = RollbackResult(
                success=False,
                error=f"Cannot roll back from {session.phase.value} to {target_phase.value}",
            )
        else:
            try:
                if target_phase is not None:
                    result = await self.rollbacks.rollback_to_phase(session_id, target_phase)
                else:
                    result = await self.rollbacks.rollback_to_previous(session_id)
            except SnapshotError as e:
                log.warning("rollback_unavailable", session_id=session_id, error=e.message)
                result = RollbackResult(success=False, error=e.message)

        session = await self.get_session(session_id)
        return TurnOutcome(
            success=True,
            session_id=session_id,
            phase=session.phase,
            quality_scores=session.context.conversation_state.quality_scores,
            rollback=result,
            latency_ms=int((time.perf_counter() - start_time) * 1000),
        )

    # ------------------------------------------------------------------
    # Rollback
    # ------------------------------------------------------------------

    async def rollback(
        self,
        session_id: str,
        snapshot_id: Optional[str] = None,
        phase: Optional[Phase] = None,
    ) -> RollbackResult:
        """
        Restore a session from a snapshot.

        Targets, in order of precedence: a specific snapshot, the latest
        snapshot of a phase, or the most recent snapshot.

        Raises:
            SessionNotFoundError: Unknown session
            SessionCompletedError: Session already completed
            SnapshotNotFoundError: Unknown snapshot id
            RollbackError: No snapshot matches the request
        """
        async with self._lock_for(session_id):
            session = await self.get_session(session_id)
            if session.is_completed:
                raise SessionCompletedError(f"Session {session_id} is completed; rollback refused")
            await self.snapshots.hydrate(session_id)
            if snapshot_id is not None:
                return await self.rollbacks.rollback_to_snapshot(session_id, snapshot_id)
            if phase is not None:
                return await self.rollbacks.rollback_to_phase(session_id, phase)
            return await self.rollbacks.rollback_to_previous(session_id)

