"""Tests for phase ordering helpers and the exception hierarchy."""

import pytest

from okr_coach.core.exceptions import (
    InvalidTransitionError,
    OKRCoachError,
    SessionError,
    SessionNotFoundError,
    SnapshotError,
    SnapshotNotFoundError,
    TransitionError,
)
from okr_coach.domain.models.phase import (
    PHASE_ORDER,
    Phase,
    is_backward,
    is_forward,
    next_phase,
    phase_index,
)


def test_phase_order():
    assert [p.value for p in PHASE_ORDER] == [
        "discovery",
        "refinement",
        "kr_discovery",
        "validation",
        "completed",
    ]
    assert phase_index("kr_discovery") == 2
    assert str(Phase.VALIDATION) == "validation"


def test_next_phase():
    assert next_phase(Phase.REFINEMENT) is Phase.KR_DISCOVERY
    assert next_phase(Phase.VALIDATION) is Phase.COMPLETED
    assert next_phase(Phase.COMPLETED) is Phase.COMPLETED


@pytest.mark.parametrize("phase", PHASE_ORDER)
def test_same_phase_is_neither_forward_nor_backward(phase):
    assert not is_forward(phase, phase)
    assert not is_backward(phase, phase)


def test_direction():
    assert is_backward(Phase.VALIDATION, Phase.DISCOVERY)
    assert is_forward(Phase.DISCOVERY, Phase.VALIDATION)
    assert Phase.COMPLETED.is_terminal
    assert not Phase.VALIDATION.is_terminal


def test_exception_hierarchy():
    assert issubclass(SessionNotFoundError, SessionError)
    assert issubclass(SnapshotNotFoundError, SnapshotError)
    assert issubclass(InvalidTransitionError, TransitionError)
    assert issubclass(TransitionError, OKRCoachError)


def test_invalid_transition_error_carries_all_errors():
    error = InvalidTransitionError("rejected", ["a", "b"])

    assert error.message == "rejected"
    assert error.errors == ["a", "b"]
    assert str(error) == "rejected"
