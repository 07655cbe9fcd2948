"""Conversation phases and the strictly linear order between them.

    discovery -> refinement -> kr_discovery -> validation -> completed

`completed` is terminal: it has no outgoing transitions.
"""

from enum import Enum
from typing import List


class Phase(str, Enum):
    """Named stage of the coaching conversation."""

    DISCOVERY = "discovery"
    REFINEMENT = "refinement"
    KR_DISCOVERY = "kr_discovery"
    VALIDATION = "validation"
    COMPLETED = "completed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self is Phase.COMPLETED


PHASE_ORDER: List[Phase] = [
    Phase.DISCOVERY,
    Phase.REFINEMENT,
    Phase.KR_DISCOVERY,
    Phase.VALIDATION,
    Phase.COMPLETED,
]


def phase_index(phase: Phase) -> int:
    """Position of a phase in PHASE_ORDER."""
    return PHASE_ORDER.index(Phase(phase))


def next_phase(phase: Phase) -> Phase:
    """The phase following `phase`; the terminal phase maps to itself."""
    index = phase_index(phase)
    if index >= len(PHASE_ORDER) - 1:
        return PHASE_ORDER[-1]
    return PHASE_ORDER[index + 1]


def is_forward(from_phase: Phase, to_phase: Phase) -> bool:
    return phase_index(to_phase) > phase_index(from_phase)


def is_backward(from_phase: Phase, to_phase: Phase) -> bool:
    return phase_index(to_phase) < phase_index(from_phase)
