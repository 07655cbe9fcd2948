"""
Stage 5: Snapshot, validate, and commit a phase transition.

Every attempt is preceded by exactly one snapshot. The phase only changes
once the new state has been written by the session repository; a failed
write leaves the session in its previous phase and is reported as a failed
transition.
"""

from typing import TYPE_CHECKING

import structlog

from ..base import TurnStage
from okr_coach.core.exceptions import PersistenceError
from okr_coach.domain.models.pipeline_contracts import TransitionOutput
from okr_coach.domain.models.session import PhaseHistoryEntry
from okr_coach.domain.models.transition import (
    SnapshotReason,
    TransitionAttempt,
    TransitionEventType,
)
from okr_coach.persistence.repositories.session_repo import SessionRepository
from okr_coach.services.event_bus import TransitionEventBus, create_transition_event
from okr_coach.services.snapshot_manager import SnapshotManager
from okr_coach.services.transition_validator import TransitionValidator

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class TransitionStage(TurnStage):
    def __init__(
        self,
        validator: TransitionValidator,
        snapshots: SnapshotManager,
        events: TransitionEventBus,
        session_repo: SessionRepository,
    ):
        self.validator = validator
        self.snapshots = snapshots
        self.events = events
        self.session_repo = session_repo

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        decision = context.readiness_output
        session_context = context.extraction_output.context
        session_context.conversation_state.turns_in_phase = context.turns_in_phase
        session_context.conversation_state.last_readiness = decision.readiness.readiness_score

        from_phase = context.phase
        if not decision.should_transition:
            context.transition_output = TransitionOutput(
                phase=from_phase, context=session_context
            )
            return context

        to_phase = decision.target_phase
        trigger = decision.trigger
        scores = context.quality_scores
        message_count = context.message_count

        snapshot = await self.snapshots.create_snapshot(
            context.session_id,
            from_phase,
            session_context,
            scores,
            message_count,
            reason=SnapshotReason.BEFORE_TRANSITION,
            metadata={"trigger": trigger.value, "target_phase": to_phase.value},
        )

        candidate = context.session.model_copy(update={"context": session_context})
        result = self.validator.validate(from_phase, to_phase, candidate, scores)

        def event(valid: bool = True, errors=None, metadata=None):
            return create_transition_event(
                context.session_id,
                from_phase,
                to_phase,
                trigger,
                scores,
                message_count,
                context.turns_in_phase,
                valid=valid,
                errors=errors,
                metadata=metadata,
            )

        if not result.valid:
            await self.events.emit(
                TransitionEventType.FAILED, event(valid=False, errors=result.errors)
            )
            context.transition_output = TransitionOutput(
                attempt=TransitionAttempt(
                    from_phase=from_phase,
                    to_phase=to_phase,
                    trigger=trigger,
                    committed=False,
                    snapshot_id=snapshot.id,
                    errors=result.errors,
                    warnings=result.warnings,
                ),
                phase=from_phase,
                context=session_context,
            )
            return context

        await self.events.emit(TransitionEventType.BEFORE, event())

        committed_context = session_context.model_copy(deep=True)
        committed_context.phase_history.append(
            PhaseHistoryEntry(
                from_phase=from_phase,
                to_phase=to_phase,
                trigger=trigger.value,
                message_count=message_count,
            )
        )
        state = committed_context.conversation_state
        state.turns_in_phase = 0
        state.phase_started_at_message = message_count

        try:
            await self.session_repo.update_state(
                context.session_id, to_phase, committed_context, messages=context.new_messages
            )
        except PersistenceError as e:
            errors = [f"Failed to persist transition: {e}"]
            log.error(
                "transition_commit_failed",
                session_id=context.session_id,
                from_phase=from_phase.value,
                to_phase=to_phase.value,
                error=str(e),
            )
            await self.events.emit(
                TransitionEventType.FAILED, event(valid=False, errors=errors)
            )
            context.transition_output = TransitionOutput(
                attempt=TransitionAttempt(
                    from_phase=from_phase,
                    to_phase=to_phase,
                    trigger=trigger,
                    committed=False,
                    snapshot_id=snapshot.id,
                    errors=errors,
                    warnings=result.warnings,
                ),
                phase=from_phase,
                context=session_context,
            )
            return context

        await self.events.emit(
            TransitionEventType.AFTER, event(metadata={"snapshot_id": snapshot.id})
        )
        context.transition_output = TransitionOutput(
            attempt=TransitionAttempt(
                from_phase=from_phase,
                to_phase=to_phase,
                trigger=trigger,
                committed=True,
                snapshot_id=snapshot.id,
                warnings=result.warnings,
            ),
            phase=to_phase,
            context=committed_context,
        )
        return context
