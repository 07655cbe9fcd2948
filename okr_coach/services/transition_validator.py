"""
Transition validation.

Checks every rule and reports all violations at once; there is no early
return. Rules, in order:

1. No backward movement (unless leaving `completed`, handled by rule 2)
2. Nothing leaves `completed`
3. No skipping phases
4. Entry preconditions of the target phase
5. Minimum content quality of the target phase

A same-phase "transition" is valid with a no-op warning.
"""

from typing import List, Optional

import structlog

from okr_coach.core.config import StateMachineConfig, load_state_machine_config
from okr_coach.domain.models.phase import Phase, is_backward, phase_index
from okr_coach.domain.models.quality import QualityScore
from okr_coach.domain.models.session import Session
from okr_coach.domain.models.transition import ValidationResult
from okr_coach.services.scoring.parsing import round_half_up

log = structlog.get_logger(__name__)


class TransitionValidator:
    """Guards entry into each phase."""

    def __init__(self, config: Optional[StateMachineConfig] = None):
        self.config = config or load_state_machine_config()

    def validate(
        self,
        from_phase: Phase,
        to_phase: Phase,
        session: Session,
        quality_scores: QualityScore,
    ) -> ValidationResult:
        from_phase, to_phase = Phase(from_phase), Phase(to_phase)
        errors: List[str] = []
        warnings: List[str] = []

        if is_backward(from_phase, to_phase) and from_phase is not Phase.COMPLETED:
            errors.append(
                f"Invalid transition: {from_phase.value} → {to_phase.value} "
                "(backward movement not allowed)"
            )

        if from_phase is Phase.COMPLETED:
            errors.append("Cannot transition from completed phase - it is terminal")

        if phase_index(to_phase) - phase_index(from_phase) > 1:
            errors.append(
                f"Invalid transition: {from_phase.value} → {to_phase.value} "
                "(phases cannot be skipped)"
            )

        errors.extend(self._check_preconditions(to_phase, session, quality_scores))
        errors.extend(self._check_quality(to_phase, quality_scores))

        if from_phase is to_phase:
            warnings.append("Transition to same phase (no-op)")

        result = ValidationResult(valid=not errors, errors=errors, warnings=warnings)
        if not result.valid:
            log.warning(
                "transition_validation_failed",
                session_id=session.id,
                from_phase=from_phase.value,
                to_phase=to_phase.value,
                errors=errors,
            )
        return result

    def _check_preconditions(
        self, to_phase: Phase, session: Session, scores: QualityScore
    ) -> List[str]:
        okr = session.context.okr_data
        errors: List[str] = []

        if to_phase is Phase.REFINEMENT:
            if not okr.has_objective:
                errors.append("Cannot enter refinement: No objective extracted from discovery")
            if scores.objective_quality == 0:
                errors.append(
                    "Cannot enter refinement: Objective quality score is 0 (not yet evaluated)"
                )

        elif to_phase is Phase.KR_DISCOVERY:
            needed = self.config.for_phase(Phase.REFINEMENT).min_data_quality
            if not okr.has_objective:
                errors.append("Cannot enter kr_discovery: No objective found in session")
            if scores.objective_quality < needed:
                errors.append(
                    "Cannot enter kr_discovery: Objective quality too low "
                    f"({scores.objective_quality}/100, need {needed}+)"
                )

        elif to_phase is Phase.VALIDATION:
            if scores.key_result_count == 0:
                errors.append("Cannot enter validation: No key results created")
            if not okr.has_key_results:
                errors.append("Cannot enter validation: Key results array is empty")

        elif to_phase is Phase.COMPLETED:
            needed = self.config.for_phase(Phase.COMPLETED).min_data_quality
            if not okr.has_objective:
                errors.append("Cannot complete: No objective defined")
            if not okr.has_key_results:
                errors.append("Cannot complete: No key results defined")
            if self._overall_quality(scores) < needed:
                errors.append(
                    "Cannot complete: Overall quality too low "
                    f"({self._overall_quality(scores)}/100, need {needed}+)"
                )

        return errors

    def _check_quality(self, to_phase: Phase, scores: QualityScore) -> List[str]:
        needed = self.config.for_phase(to_phase).min_data_quality
        errors: List[str] = []

        if to_phase is Phase.REFINEMENT and scores.objective_quality < needed:
            errors.append(
                "Objective quality too low for refinement "
                f"({scores.objective_quality}/100, need {needed}+)"
            )
        elif to_phase is Phase.KR_DISCOVERY and scores.objective_quality < needed:
            errors.append(
                "Objective quality too low for KR creation "
                f"({scores.objective_quality}/100, need {needed}+)"
            )
        elif to_phase is Phase.VALIDATION and scores.key_results:
            average = round_half_up(scores.average_key_result_score)
            if average < needed:
                errors.append(f"Key results quality too low ({average}/100, need {needed}+)")
        elif to_phase is Phase.COMPLETED:
            overall = self._overall_quality(scores)
            if overall < needed:
                errors.append(
                    f"Overall OKR quality too low for completion ({overall}/100, need {needed}+)"
                )

        return errors

    @staticmethod
    def _overall_quality(scores: QualityScore) -> int:
        if scores.overall and scores.overall.score:
            return scores.overall.score
        return scores.objective_quality

    def validate_phase_invariants(
        self, phase: Phase, session: Session, quality_scores: QualityScore
    ) -> ValidationResult:
        """Check that the data a phase depends on is present while in it."""
        phase = Phase(phase)
        cfg = self.config.for_phase(phase)
        errors: List[str] = []
        warnings: List[str] = []

        for requirement in cfg.requires_data:
            if not session.context.has_required(requirement):
                errors.append(f"Phase {phase.value} requires {requirement} but it is missing")

        if session.message_count < cfg.min_messages:
            warnings.append(
                f"Phase {phase.value} has {session.message_count} messages, "
                f"expected at least {cfg.min_messages}"
            )
        if phase in (Phase.VALIDATION, Phase.COMPLETED) and quality_scores.overall is None:
            warnings.append(f"Phase {phase.value} has no overall OKR score yet")

        return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
