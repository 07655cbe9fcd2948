"""
Transition event bus.

Publish/subscribe over three event kinds:
    - before: validation passed, phase change about to be committed
    - after:  phase change durably committed
    - failed: validation (or the commit) rejected the transition

`emit` awaits every listener before returning, so listeners run ahead of
whatever the orchestrator does next. A failing listener is logged and does
not stop the others.

The bus is constructed explicitly and injected; there is no global instance.
"""

import asyncio
import inspect
from collections import Counter, deque
from typing import Any, Awaitable, Callable, Deque, Dict, List, Optional, Union

import structlog

from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.quality import QualityScore
from okr_coach.domain.models.transition import (
    TransitionEvent,
    TransitionEventType,
    TransitionTrigger,
)

log = structlog.get_logger(__name__)

Handler = Callable[[TransitionEvent], Union[None, Awaitable[None]]]


class TransitionEventBus:
    def __init__(self, history_size: int = 1000):
        self._handlers: Dict[TransitionEventType, List[Handler]] = {
            kind: [] for kind in TransitionEventType
        }
        self._history: Deque[tuple[TransitionEventType, TransitionEvent]] = deque(
            maxlen=history_size
        )

    def subscribe(self, kind: TransitionEventType, handler: Handler) -> None:
        self._handlers[TransitionEventType(kind)].append(handler)

    def unsubscribe(self, kind: TransitionEventType, handler: Handler) -> bool:
        handlers = self._handlers[TransitionEventType(kind)]
        if handler in handlers:
            handlers.remove(handler)
            return True
        return False

    def listener_count(self, kind: TransitionEventType) -> int:
        return len(self._handlers[TransitionEventType(kind)])

    async def emit(self, kind: TransitionEventType, event: TransitionEvent) -> List[BaseException]:
        """Deliver `event` to every listener of `kind` and wait for all of them.

        Returns the exceptions raised by listeners (already logged).
        """
        kind = TransitionEventType(kind)
        self._history.append((kind, event))

        handlers = list(self._handlers[kind])
        if not handlers:
            return []

        results = await asyncio.gather(
            *(self._invoke(handler, event) for handler in handlers),
            return_exceptions=True,
        )
        failures = [r for r in results if isinstance(r, BaseException)]
        for handler, result in zip(handlers, results):
            if isinstance(result, BaseException):
                log.error(
                    "transition_listener_failed",
                    event_kind=kind.value,
                    session_id=event.session_id,
                    listener=getattr(handler, "__qualname__", repr(handler)),
                    error=str(result),
                    exc_info=result,
                )
        return failures

    @staticmethod
    async def _invoke(handler: Handler, event: TransitionEvent) -> None:
        result = handler(event)
        if inspect.isawaitable(result):
            await result

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def history_for_session(self, session_id: str) -> List[tuple[TransitionEventType, TransitionEvent]]:
        return [(kind, e) for kind, e in self._history if e.session_id == session_id]

    def recent_events(self, limit: int = 10) -> List[tuple[TransitionEventType, TransitionEvent]]:
        if limit <= 0:
            return []
        return list(self._history)[-limit:]

    def clear_history(self) -> None:
        self._history.clear()

    def statistics(self) -> Dict[str, Any]:
        attempts = [e for kind, e in self._history if kind is not TransitionEventType.BEFORE]
        committed = [e for kind, e in self._history if kind is TransitionEventType.AFTER]
        failed = [e for kind, e in self._history if kind is TransitionEventType.FAILED]
        return {
            "total_events": len(self._history),
            "committed": len(committed),
            "failed": len(failed),
            "by_trigger": dict(Counter(e.trigger.value for e in attempts)),
            "by_transition": dict(
                Counter(f"{e.from_phase.value}->{e.to_phase.value}" for e in committed)
            ),
            "average_turns_in_phase": (
                round(sum(e.turns_in_phase for e in committed) / len(committed), 2)
                if committed
                else 0.0
            ),
        }


def create_transition_event(
    session_id: str,
    from_phase: Phase,
    to_phase: Phase,
    trigger: TransitionTrigger,
    quality_scores: QualityScore,
    message_count: int,
    turns_in_phase: int,
    reason: str = "",
    valid: bool = True,
    errors: Optional[List[str]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> TransitionEvent:
    return TransitionEvent(
        session_id=session_id,
        from_phase=from_phase,
        to_phase=to_phase,
        trigger=trigger,
        reason=reason or f"{Phase(from_phase).value} -> {Phase(to_phase).value} ({TransitionTrigger(trigger).value})",
        quality_scores=quality_scores.model_copy(deep=True),
        message_count=message_count,
        turns_in_phase=turns_in_phase,
        valid=valid,
        errors=list(errors) if errors else None,
        metadata=metadata,
    )


def register_logging_handlers(bus: TransitionEventBus) -> None:
    """Attach structured-log listeners for every event kind."""

    def on_before(event: TransitionEvent) -> None:
        log.info(
            "phase_transition_starting",
            session_id=event.session_id,
            from_phase=event.from_phase.value,
            to_phase=event.to_phase.value,
            trigger=event.trigger.value,
        )

    def on_after(event: TransitionEvent) -> None:
        log.info(
            "phase_transition_committed",
            session_id=event.session_id,
            from_phase=event.from_phase.value,
            to_phase=event.to_phase.value,
            trigger=event.trigger.value,
            turns_in_phase=event.turns_in_phase,
            snapshot_id=(event.metadata or {}).get("snapshot_id"),
        )

    def on_failed(event: TransitionEvent) -> None:
        log.warning(
            "phase_transition_failed",
            session_id=event.session_id,
            from_phase=event.from_phase.value,
            to_phase=event.to_phase.value,
            trigger=event.trigger.value,
            errors=event.errors,
        )

    bus.subscribe(TransitionEventType.BEFORE, on_before)
    bus.subscribe(TransitionEventType.AFTER, on_after)
    bus.subscribe(TransitionEventType.FAILED, on_failed)
