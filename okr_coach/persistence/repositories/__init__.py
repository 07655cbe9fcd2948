"""Repository implementations."""

from okr_coach.persistence.repositories.session_repo import SessionRepository
from okr_coach.persistence.repositories.snapshot_repo import SnapshotRepository

__all__ = [
    "SessionRepository",
    "SnapshotRepository",
]
