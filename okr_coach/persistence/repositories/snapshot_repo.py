"""Append-only snapshot storage."""

from pathlib import Path
from typing import List

import aiosqlite
import structlog

from okr_coach.core.exceptions import PersistenceError
from okr_coach.domain.models.transition import Snapshot

log = structlog.get_logger(__name__)


class SnapshotRepository:
    """Inserts and reads snapshots; there is no update or delete."""

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)

    async def save(self, snapshot: Snapshot) -> None:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    "INSERT INTO snapshots "
                    "(id, session_id, phase, reason, message_count, payload, created_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?)",
                    (
                        snapshot.id,
                        snapshot.session_id,
                        snapshot.phase.value,
                        snapshot.reason.value,
                        snapshot.message_count,
                        snapshot.model_dump_json(),
                        snapshot.timestamp.isoformat(),
                    ),
                )
                await db.commit()
        except aiosqlite.Error as e:
            log.error("snapshot_save_failed", snapshot_id=snapshot.id, error=str(e))
            raise PersistenceError(f"Failed to save snapshot {snapshot.id}: {e}") from e

    async def list_for_session(self, session_id: str) -> List[Snapshot]:
        """Snapshots for a session, oldest first."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute(
                    "SELECT payload FROM snapshots WHERE session_id = ? "
                    "ORDER BY created_at, rowid",
                    (session_id,),
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to load snapshots for {session_id}: {e}") from e
        return [Snapshot.model_validate_json(row[0]) for row in rows]
