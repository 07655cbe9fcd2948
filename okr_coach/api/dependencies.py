"""Dependency injection for API routes."""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from okr_coach.core.config import settings
from okr_coach.persistence.repositories import SessionRepository, SnapshotRepository
from okr_coach.services.cache import TTLCache
from okr_coach.services.coaching_service import CoachingService
from okr_coach.services.event_bus import TransitionEventBus, register_logging_handlers
from okr_coach.services.scoring import ContentScorer
from okr_coach.services.snapshot_manager import SnapshotManager


def get_session_repository() -> SessionRepository:
    """FastAPI dependency injection for SessionRepository.

    Each request gets a new repository pointed at the configured database.
    """
    return SessionRepository(str(settings.database_path))


@lru_cache(maxsize=1)
def get_content_scorer() -> ContentScorer:
    """Process-wide scorer so the score cache is shared across requests."""
    return ContentScorer(
        TTLCache(
            max_size=settings.score_cache_size,
            ttl_seconds=settings.score_cache_ttl_seconds,
            name="score_cache",
        )
    )


@lru_cache(maxsize=1)
def get_coaching_service() -> CoachingService:
    """Process-wide coaching service.

    Cached because it owns the per-session locks, the in-memory snapshot
    log and the event bus history.
    """
    db_path = str(settings.database_path)
    events = TransitionEventBus(history_size=settings.event_history_size)
    register_logging_handlers(events)
    return CoachingService(
        session_repo=SessionRepository(db_path),
        scorer=get_content_scorer(),
        snapshots=SnapshotManager(SnapshotRepository(db_path)),
        events=events,
    )


# Type aliases for dependency injection
SessionRepoDep = Annotated[SessionRepository, Depends(get_session_repository)]
ScorerDep = Annotated[ContentScorer, Depends(get_content_scorer)]
CoachingServiceDep = Annotated[CoachingService, Depends(get_coaching_service)]
