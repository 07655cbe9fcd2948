"""
Stage 6: Persist the turn's updated context.

A committed transition has already written phase, context and the turn's
messages together, so this stage only writes when no transition was committed.
"""

from typing import TYPE_CHECKING

import structlog

from ..base import TurnStage
from okr_coach.domain.models.pipeline_contracts import StateSavingOutput
from okr_coach.persistence.repositories.session_repo import SessionRepository

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class StateSavingStage(TurnStage):
    def __init__(self, session_repo: SessionRepository):
        self.session_repo = session_repo

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        output = context.transition_output
        if output is None:
            raise RuntimeError(
                "Pipeline contract violation: StateSavingStage ran before TransitionStage. "
                f"Session: {context.session_id}"
            )

        if output.attempt is not None and output.attempt.committed:
            context.state_saving_output = StateSavingOutput(phase=output.phase, saved=False)
            return context

        await self.session_repo.update_state(
            context.session_id, output.phase, output.context, messages=context.new_messages
        )
        context.state_saving_output = StateSavingOutput(phase=output.phase, saved=True)

        log.debug(
            "session_state_saved",
            session_id=context.session_id,
            phase=output.phase.value,
            turns_in_phase=output.context.conversation_state.turns_in_phase,
        )
        return context
