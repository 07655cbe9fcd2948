"""Tests for phase readiness evaluation and forced progression."""

import pytest

from okr_coach.core.config import ReadinessConfig, StateMachineConfig
from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.quality import QualityScore
from okr_coach.domain.models.transition import PhaseReadiness, TransitionTrigger
from okr_coach.services.phase_machine import PhaseStateMachine
from okr_coach.services.signals import DiscoveryContext

from conftest import make_scores


@pytest.fixture
def machine():
    return PhaseStateMachine(StateMachineConfig())


class TestDiscovery:
    def test_nothing_shared_yet(self, machine):
        readiness = machine.evaluate_readiness(
            Phase.DISCOVERY, QualityScore(), message_count=1, turns_in_phase=1,
            finalization_signal_detected=False,
        )

        assert not readiness.ready_to_transition
        assert readiness.readiness_score == 0.0
        assert "Objective quality too low (0/100) - need 31+" in readiness.missing_elements

    def test_finalization_with_scored_objective(self, machine):
        readiness = machine.evaluate_readiness(
            Phase.DISCOVERY, make_scores(objective=50), message_count=2, turns_in_phase=1,
            finalization_signal_detected=True,
        )

        assert readiness.ready_to_transition

    def test_finalization_without_objective(self, machine):
        readiness = machine.evaluate_readiness(
            Phase.DISCOVERY, QualityScore(), message_count=2, turns_in_phase=1,
            finalization_signal_detected=True,
        )

        assert not readiness.ready_to_transition

    def test_rich_context_passes_threshold(self, machine):
        context = DiscoveryContext(
            business_objectives=["business", "product"],
            stakeholders=["user", "customer", "developer"],
            outcomes=["grow", "increase"],
            metrics=["retention", "nps"],
            constraints=["budget"],
            declarations=1,
        )
        readiness = machine.evaluate_readiness(
            Phase.DISCOVERY, make_scores(objective=60), message_count=4, turns_in_phase=2,
            finalization_signal_detected=False, discovery_context=context,
        )

        assert readiness.readiness_score > 0.6
        assert readiness.ready_to_transition

    def test_frustration_moves_user_forward(self, machine):
        context = DiscoveryContext(frustration_signals=3)
        readiness = machine.evaluate_readiness(
            Phase.DISCOVERY, QualityScore(), message_count=4, turns_in_phase=2,
            finalization_signal_detected=False, discovery_context=context,
        )

        assert readiness.readiness_score == pytest.approx(0.5)
        assert readiness.missing_elements[0].startswith("User ready to proceed")


class TestRefinement:
    def test_finalized_good_objective(self, machine):
        readiness = machine.evaluate_readiness(
            Phase.REFINEMENT, make_scores(objective=80), message_count=6, turns_in_phase=2,
            finalization_signal_detected=True, latest_message="Looks good, let's finalize it",
        )

        assert readiness.ready_to_transition

    def test_weak_objective_blocks(self, machine):
        readiness = machine.evaluate_readiness(
            Phase.REFINEMENT, make_scores(objective=20), message_count=6, turns_in_phase=2,
            finalization_signal_detected=True,
        )

        assert not readiness.ready_to_transition
        assert "Objective quality too low (20/100) - need 30+" in readiness.missing_elements


class TestKeyResultDiscovery:
    def test_two_good_key_results(self, machine):
        readiness = machine.evaluate_readiness(
            Phase.KR_DISCOVERY, make_scores(objective=70, key_results=[80, 80]),
            message_count=10, turns_in_phase=1, finalization_signal_detected=False,
        )

        assert readiness.readiness_score == pytest.approx(0.8)
        assert readiness.ready_to_transition

    def test_single_key_result_needs_turns(self, machine):
        scores = make_scores(objective=70, key_results=[40])

        early = machine.evaluate_readiness(
            Phase.KR_DISCOVERY, scores, message_count=10, turns_in_phase=2,
            finalization_signal_detected=False,
        )
        later = machine.evaluate_readiness(
            Phase.KR_DISCOVERY, scores, message_count=10, turns_in_phase=3,
            finalization_signal_detected=False,
        )

        assert not early.ready_to_transition
        assert "At least 2 key results (have 1)" in early.missing_elements
        assert later.ready_to_transition

    def test_stuck_ceiling(self, machine):
        readiness = machine.evaluate_readiness(
            Phase.KR_DISCOVERY, QualityScore(), message_count=20, turns_in_phase=6,
            finalization_signal_detected=False,
        )

        assert readiness.ready_to_transition
        assert not readiness.forced


class TestValidation:
    def test_needs_approval(self, machine):
        scores = make_scores(objective=70, key_results=[80], overall=75)

        pending = machine.evaluate_readiness(
            Phase.VALIDATION, scores, message_count=12, turns_in_phase=1,
            finalization_signal_detected=False,
        )
        approved = machine.evaluate_readiness(
            Phase.VALIDATION, scores, message_count=12, turns_in_phase=1,
            finalization_signal_detected=True,
        )

        assert not pending.ready_to_transition
        assert "Explicit approval of the final OKR" in pending.missing_elements
        assert approved.ready_to_transition
        assert approved.readiness_score == pytest.approx(0.75)

    def test_stuck_ceiling(self, machine):
        readiness = machine.evaluate_readiness(
            Phase.VALIDATION, QualityScore(), message_count=30, turns_in_phase=12,
            finalization_signal_detected=False,
        )

        assert readiness.ready_to_transition


def test_completed_is_never_ready(machine):
    readiness = machine.evaluate_readiness(
        Phase.COMPLETED, make_scores(objective=90), message_count=40, turns_in_phase=15,
        finalization_signal_detected=True,
    )

    assert not readiness.ready_to_transition
    assert not machine.apply_forced_progression(readiness, 15).ready_to_transition


class TestForcedProgression:
    def test_guard_overrides_readiness_in_kr_discovery(self):
        lenient = StateMachineConfig(
            readiness=ReadinessConfig(kr_stuck_turns=50, kr_min_turns_with_key_result=50)
        )
        machine = PhaseStateMachine(lenient, forced_progression_turns=10)

        readiness = machine.evaluate_readiness(
            Phase.KR_DISCOVERY, QualityScore(), message_count=20, turns_in_phase=10,
            finalization_signal_detected=False,
        )
        assert not readiness.ready_to_transition

        forced = machine.apply_forced_progression(readiness, turns_in_phase=10)

        assert forced.ready_to_transition
        assert forced.forced
        assert forced.readiness_score == readiness.readiness_score
        assert machine.should_transition(readiness, turns_in_phase=10)

    def test_guard_waits_for_threshold(self, machine):
        readiness = PhaseReadiness(current_phase=Phase.REFINEMENT, readiness_score=0.1)

        assert not machine.apply_forced_progression(readiness, turns_in_phase=9).ready_to_transition
        assert machine.apply_forced_progression(readiness, turns_in_phase=10).forced

    def test_ready_phase_is_not_marked_forced(self, machine):
        readiness = PhaseReadiness(
            current_phase=Phase.REFINEMENT, readiness_score=0.9, ready_to_transition=True
        )

        assert not machine.apply_forced_progression(readiness, turns_in_phase=12).forced


class TestDetermineTrigger:
    def _readiness(self, score):
        return PhaseReadiness(current_phase=Phase.KR_DISCOVERY, readiness_score=score)

    def test_timeout_first(self, machine):
        trigger = machine.determine_trigger(Phase.KR_DISCOVERY, self._readiness(0.9), True, 8)
        assert trigger is TransitionTrigger.TIMEOUT

    def test_finalization(self, machine):
        trigger = machine.determine_trigger(Phase.KR_DISCOVERY, self._readiness(0.9), True, 2)
        assert trigger is TransitionTrigger.FINALIZATION_SIGNAL

    def test_quality_threshold(self, machine):
        trigger = machine.determine_trigger(Phase.KR_DISCOVERY, self._readiness(0.7), False, 2)
        assert trigger is TransitionTrigger.QUALITY_THRESHOLD

    def test_forced(self, machine):
        trigger = machine.determine_trigger(Phase.KR_DISCOVERY, self._readiness(0.2), False, 2)
        assert trigger is TransitionTrigger.FORCED


def test_next_phase(machine):
    assert machine.next_phase(Phase.DISCOVERY) is Phase.REFINEMENT
    assert machine.next_phase(Phase.COMPLETED) is Phase.COMPLETED
