"""
Stage 1: Load the session and append this turn's messages.

Messages are only appended in memory here; the transition commit or the
state-saving stage writes them in the same transaction as the new state.
"""

from typing import TYPE_CHECKING

import structlog

from ..base import TurnStage
from okr_coach.core.exceptions import SessionCompletedError, SessionNotFoundError
from okr_coach.domain.models.pipeline_contracts import ContextLoadingOutput
from okr_coach.domain.models.session import Message
from okr_coach.persistence.repositories.session_repo import SessionRepository

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext


class ContextLoadingStage(TurnStage):
    """
    Load the session, append the user (and assistant) message in memory, and
    compute the per-turn counters.
    """

    def __init__(self, session_repo: SessionRepository, finalization_window: int = 3):
        self.session_repo = session_repo
        self.finalization_window = finalization_window

    async def process(self, context: "PipelineContext") -> "PipelineContext":
        session = await self.session_repo.get(context.session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {context.session_id} not found")
        if session.is_completed:
            raise SessionCompletedError(
                f"Session {context.session_id} is completed; no further turns accepted"
            )

        new_messages = [Message(role="user", content=context.user_input)]
        if context.assistant_message:
            new_messages.append(Message(role="assistant", content=context.assistant_message))
        session.messages.extend(new_messages)

        turns_in_phase = session.context.conversation_state.turns_in_phase + 1

        context.context_loading_output = ContextLoadingOutput(
            session=session,
            phase=session.phase,
            message_count=session.message_count,
            turns_in_phase=turns_in_phase,
            recent_messages=[
                m.content for m in session.recent_messages(self.finalization_window)
            ],
            user_messages=[m.content for m in session.messages if m.role == "user"],
            new_messages=new_messages,
        )

        log.info(
            "context_loaded",
            session_id=session.id,
            phase=session.phase.value,
            message_count=session.message_count,
            turns_in_phase=turns_in_phase,
        )
        return context
