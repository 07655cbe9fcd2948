"""Tests for conversation signal detection."""

import pytest

from okr_coach.domain.models.phase import Phase
from okr_coach.services.signals import (
    analyze_discovery_context,
    count_finalization_phrases,
    detect_finalization_signal,
    detect_rollback_intent,
    has_refinement_progress,
)


class TestFinalizationSignal:
    def test_strong_phrase_counts_immediately(self):
        signal = detect_finalization_signal(["Let's finalize this"], total_message_count=2)

        assert signal.detected
        assert signal.strength == "strong"

    def test_weak_phrase_needs_longer_conversation(self):
        early = detect_finalization_signal(["Looks good"], total_message_count=3)
        later = detect_finalization_signal(["Looks good"], total_message_count=6)

        assert not early.detected
        assert later.detected
        assert later.strength == "weak"

    def test_weak_threshold_is_configurable(self):
        signal = detect_finalization_signal(["Sounds great"], 3, weak_min_messages=2)

        assert signal.detected

    def test_no_signal(self):
        assert not detect_finalization_signal(["What about churn?"], 10).detected

    def test_count_phrases(self):
        assert count_finalization_phrases("Perfect, looks good, let's finalize") == 3
        assert count_finalization_phrases("Tell me more") == 0


def test_discovery_context():
    context = analyze_discovery_context(
        [
            "Our goal is to grow the business by improving customer retention",
            "We have budget constraints",
        ]
    )

    assert context.business_objectives == ["business"]
    assert context.stakeholders == ["customer"]
    assert "retention" in context.metrics
    assert context.constraints == ["budget", "constraint"]
    assert context.declarations == 1
    assert context.answered_questions == 1


def test_refinement_progress():
    assert has_refinement_progress("Ready for key results")
    assert not has_refinement_progress("Can you reword it?")


class TestRollbackIntent:
    def test_named_phase(self):
        intent = detect_rollback_intent("Can we go back to refinement?")

        assert intent.detected
        assert intent.target_phase is Phase.REFINEMENT

    def test_generic_undo(self):
        intent = detect_rollback_intent("Please undo that")

        assert intent.detected
        assert intent.target_phase is None

    def test_forward_request_is_not_rollback(self):
        assert not detect_rollback_intent("Let's move on to key results").detected

    def test_go_to_phase_is_not_rollback(self):
        assert not detect_rollback_intent("Can we go to key results now?").detected

    def test_rollback_words_inside_content_are_ignored(self):
        messages = [
            "Key results: Reduce revert rate from 10% to 4% by Q2 2024",
            "We need to undo years of tech debt",
            "Customers go back to the old checkout when it fails",
        ]

        for message in messages:
            assert not detect_rollback_intent(message).detected, message

    @pytest.mark.parametrize(
        "message,target",
        [
            ("Back to discovery please", Phase.DISCOVERY),
            ("Actually, let's return to the objective refinement", Phase.REFINEMENT),
            ("revert", None),
            ("Could we roll back?", None),
            ("OK, start over", None),
        ],
    )
    def test_imperative_requests(self, message, target):
        intent = detect_rollback_intent(message)

        assert intent.detected
        assert intent.target_phase is target
