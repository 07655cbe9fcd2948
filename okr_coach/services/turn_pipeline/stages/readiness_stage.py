"""
Stage 4: Evaluate phase readiness and decide whether to attempt a transition.
"""

from typing import TYPE_CHECKING

import structlog

from ..base import TurnStage
from okr_coach.domain.models.pipeline_contracts import ReadinessOutput
from okr_coach.services.phase_machine import PhaseStateMachine
from okr_coach.services.signals import (
    analyze_discovery_context,
    detect_finalization_signal,
)

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class ReadinessStage(TurnStage):
    """
    Readiness is recomputed from scratch each turn; the forced-progression
    guard is applied on top of the per-phase heuristic.
    """

    def __init__(self, state_machine: PhaseStateMachine, weak_min_messages: int = 5):
        """
        Args:
            state_machine: Phase readiness evaluator
            weak_min_messages: Messages required before weak approval counts
        """
        self.state_machine = state_machine
        self.weak_min_messages = weak_min_messages

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        loaded = context.context_loading_output
        phase = context.phase

        finalization = detect_finalization_signal(
            loaded.recent_messages,
            context.message_count,
            weak_min_messages=self.weak_min_messages,
        )
        readiness = self.state_machine.evaluate_readiness(
            phase,
            context.quality_scores,
            message_count=context.message_count,
            turns_in_phase=context.turns_in_phase,
            finalization_signal_detected=finalization.detected,
            discovery_context=analyze_discovery_context(loaded.user_messages),
            latest_message=context.user_input,
        )
        readiness = self.state_machine.apply_forced_progression(
            readiness, context.turns_in_phase
        )

        should_transition = readiness.ready_to_transition and not phase.is_terminal
        target_phase = None
        trigger = None
        if should_transition:
            target_phase = self.state_machine.next_phase(phase)
            trigger = self.state_machine.determine_trigger(
                phase, readiness, finalization.detected, context.turns_in_phase
            )

        context.readiness_output = ReadinessOutput(
            readiness=readiness,
            finalization_detected=finalization.detected,
            should_transition=should_transition,
            target_phase=target_phase,
            trigger=trigger,
        )

        if finalization.detected:
            log.info(
                "finalization_signal_detected",
                session_id=context.session_id,
                strength=finalization.strength,
                matches=finalization.matches,
            )
        return context
