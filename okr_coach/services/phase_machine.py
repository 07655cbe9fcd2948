"""
Phase state machine: readiness evaluation and forced progression.

Readiness is recomputed from scratch every turn. Each phase has its own
heuristic; all of them return a score in [0, 1], a ready flag and the list
of elements still missing. A forced-progression guard outside the per-phase
logic guarantees no phase can hold a session indefinitely.
"""

from typing import List, Optional

import structlog

from okr_coach.core.config import StateMachineConfig, load_state_machine_config
from okr_coach.domain.models.phase import Phase, next_phase
from okr_coach.domain.models.quality import QualityScore
from okr_coach.domain.models.transition import PhaseReadiness, TransitionTrigger
from okr_coach.services.signals import (
    DiscoveryContext,
    count_finalization_phrases,
    has_refinement_progress,
)

log = structlog.get_logger(__name__)

DEFAULT_FORCED_PROGRESSION_TURNS = 10


class PhaseStateMachine:
    """Decides whether the current phase may advance."""

    def __init__(
        self,
        config: Optional[StateMachineConfig] = None,
        forced_progression_turns: int = DEFAULT_FORCED_PROGRESSION_TURNS,
    ):
        self.config = config or load_state_machine_config()
        self.forced_progression_turns = forced_progression_turns

    def next_phase(self, phase: Phase) -> Phase:
        return next_phase(phase)

    def evaluate_readiness(
        self,
        phase: Phase,
        quality_scores: QualityScore,
        message_count: int,
        turns_in_phase: int,
        finalization_signal_detected: bool,
        discovery_context: Optional[DiscoveryContext] = None,
        latest_message: str = "",
    ) -> PhaseReadiness:
        """Compute readiness of `phase` from this turn's state.

        Args:
            phase: Current phase
            quality_scores: Accumulated scores for the session
            message_count: Messages in the whole session
            turns_in_phase: User turns since the phase was entered
            finalization_signal_detected: Finalization phrase in recent dialogue
            discovery_context: Business-context signals (discovery only)
            latest_message: Latest user message (refinement only)
        """
        phase = Phase(phase)
        if phase is Phase.DISCOVERY:
            readiness = self._discovery(
                quality_scores,
                message_count,
                finalization_signal_detected,
                discovery_context or DiscoveryContext(),
            )
        elif phase is Phase.REFINEMENT:
            readiness = self._refinement(
                quality_scores, message_count, finalization_signal_detected, latest_message
            )
        elif phase is Phase.KR_DISCOVERY:
            readiness = self._kr_discovery(
                quality_scores, turns_in_phase, finalization_signal_detected
            )
        elif phase is Phase.VALIDATION:
            readiness = self._validation(
                quality_scores, turns_in_phase, finalization_signal_detected
            )
        else:
            readiness = PhaseReadiness(
                current_phase=Phase.COMPLETED,
                readiness_score=1.0,
                ready_to_transition=False,
            )

        log.info(
            "phase_readiness_evaluated",
            phase=phase.value,
            readiness_score=round(readiness.readiness_score, 3),
            ready=readiness.ready_to_transition,
            message_count=message_count,
            turns_in_phase=turns_in_phase,
            finalization=finalization_signal_detected,
        )
        return readiness

    # ------------------------------------------------------------------
    # Per-phase readiness
    # ------------------------------------------------------------------

    def _discovery(
        self,
        scores: QualityScore,
        message_count: int,
        finalization: bool,
        context: DiscoveryContext,
    ) -> PhaseReadiness:
        cfg = self.config.for_phase(Phase.DISCOVERY)
        objective_quality = scores.objective_quality

        score = 0.0
        if len(context.business_objectives) >= 1:
            score += 0.15
        if len(context.business_objectives) >= 2:
            score += 0.15
        if len(context.stakeholders) >= 1:
            score += 0.1
        if len(context.stakeholders) >= 3:
            score += 0.1
        if context.outcomes:
            score += 0.1
        if context.metrics:
            score += 0.1
        if len(context.outcomes) >= 2 and len(context.metrics) >= 2:
            score += 0.05
        if context.constraints:
            score += 0.05
        if context.declarations >= 1:
            score += 0.05
        if context.answered_questions >= 3:
            score += 0.05
        if context.readiness_signals >= 1:
            score += 0.05
        if context.readiness_signals >= 2:
            score += 0.05
        # Frustrated users are moved forward rather than kept looping
        if context.frustration_signals >= 2:
            score += 0.2
        if context.frustration_signals >= 3:
            score += 0.3
        score += min(0.15, objective_quality / 100 * 0.15)
        score = min(1.0, score)

        ready = (
            score > cfg.quality_threshold
            and message_count >= cfg.min_messages
            and objective_quality > cfg.min_data_quality
        ) or (finalization and objective_quality > 0)

        missing: List[str] = []
        if context.frustration_signals >= 2:
            missing.append("User ready to proceed - working with provided information")
        else:
            if not context.business_objectives:
                missing.append("Clear business objectives or project goals")
            if len(context.stakeholders) < 2:
                missing.append("Key stakeholder identification (developers, users, etc.)")
            if not context.outcomes:
                missing.append("Expected outcomes or success measures")
            if not context.metrics:
                missing.append("Quantifiable metrics or KPIs")
            if not context.constraints:
                missing.append("Project constraints, timeline, or technical context")
        if objective_quality <= cfg.min_data_quality:
            missing.append(
                f"Objective quality too low ({objective_quality}/100) - need {cfg.min_data_quality + 1}+"
            )

        return PhaseReadiness(
            current_phase=Phase.DISCOVERY,
            readiness_score=score,
            ready_to_transition=ready,
            missing_elements=missing,
        )

    def _refinement(
        self,
        scores: QualityScore,
        message_count: int,
        finalization: bool,
        latest_message: str,
    ) -> PhaseReadiness:
        cfg = self.config.for_phase(Phase.REFINEMENT)
        objective_quality = scores.objective_quality

        score = 0.0
        phrases = count_finalization_phrases(latest_message)
        if phrases or finalization:
            score += 0.4
            if phrases >= 2:
                score += 0.2
        score += min(0.25, objective_quality / 100 * 0.25)
        if has_refinement_progress(latest_message):
            score += 0.15
        score = min(1.0, score)

        meets_quality = objective_quality >= cfg.min_data_quality
        ready = (
            score > cfg.quality_threshold
            and meets_quality
            and message_count >= cfg.min_messages
        ) or (finalization and meets_quality)

        missing: List[str] = []
        if not meets_quality:
            missing.append(
                f"Objective quality too low ({objective_quality}/100) - need {cfg.min_data_quality}+"
            )
        if not finalization:
            missing.append("Confirmation that the objective is final")
        if scores.objective:
            missing.extend(scores.objective.feedback)

        return PhaseReadiness(
            current_phase=Phase.REFINEMENT,
            readiness_score=score,
            ready_to_transition=ready,
            missing_elements=missing,
        )

    def _kr_discovery(
        self, scores: QualityScore, turns_in_phase: int, finalization: bool
    ) -> PhaseReadiness:
        rules = self.config.readiness
        count = scores.key_result_count
        average = scores.average_key_result_score / 100
        score = average if count >= 2 else 0.0

        ready = (
            (count >= 2 and score > 0.5)
            or turns_in_phase >= rules.kr_stuck_turns
            or (count >= 1 and turns_in_phase >= rules.kr_min_turns_with_key_result)
            or (finalization and count >= 1)
        )

        missing: List[str] = []
        if count < 2:
            missing.append(f"At least 2 key results (have {count})")
        if count and average <= 0.5:
            missing.append(
                f"Key results quality too low ({round(average * 100)}/100 average)"
            )

        return PhaseReadiness(
            current_phase=Phase.KR_DISCOVERY,
            readiness_score=score,
            ready_to_transition=ready,
            missing_elements=missing,
        )

    def _validation(
        self, scores: QualityScore, turns_in_phase: int, finalization: bool
    ) -> PhaseReadiness:
        rules = self.config.readiness
        score = scores.overall.score / 100 if scores.overall else 0.0
        has_objective = scores.objective_quality > 0
        has_key_results = scores.key_result_count >= 1

        ready = (has_objective and has_key_results and finalization) or (
            turns_in_phase >= rules.validation_stuck_turns
        )

        missing: List[str] = []
        if not has_objective:
            missing.append("Scored objective")
        if not has_key_results:
            missing.append("At least one scored key result")
        if not finalization:
            missing.append("Explicit approval of the final OKR")

        return PhaseReadiness(
            current_phase=Phase.VALIDATION,
            readiness_score=min(1.0, score),
            ready_to_transition=ready,
            missing_elements=missing,
        )

    # ------------------------------------------------------------------
    # Guards and triggers
    # ------------------------------------------------------------------

    def apply_forced_progression(
        self, readiness: PhaseReadiness, turns_in_phase: int
    ) -> PhaseReadiness:
        """Force a transition once a non-terminal phase has run too long."""
        if readiness.current_phase is Phase.COMPLETED or readiness.ready_to_transition:
            return readiness
        if turns_in_phase < self.forced_progression_turns:
            return readiness

        log.warning(
            "forced_progression_triggered",
            phase=readiness.current_phase.value,
            turns_in_phase=turns_in_phase,
            readiness_score=round(readiness.readiness_score, 3),
        )
        return readiness.model_copy(update={"ready_to_transition": True, "forced": True})

    def should_transition(self, readiness: PhaseReadiness, turns_in_phase: int) -> bool:
        return self.apply_forced_progression(readiness, turns_in_phase).ready_to_transition

    def determine_trigger(
        self,
        phase: Phase,
        readiness: PhaseReadiness,
        finalization_signal_detected: bool,
        turns_in_phase: int,
    ) -> TransitionTrigger:
        cfg = self.config.for_phase(phase)
        if cfg.timeout_messages and turns_in_phase >= cfg.timeout_messages:
            return TransitionTrigger.TIMEOUT
        if finalization_signal_detected:
            return TransitionTrigger.FINALIZATION_SIGNAL
        if readiness.readiness_score > cfg.quality_threshold:
            return TransitionTrigger.QUALITY_THRESHOLD
        return TransitionTrigger.FORCED
