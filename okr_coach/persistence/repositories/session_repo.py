"""Session repository for database operations."""

from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import aiosqlite
import structlog

from okr_coach.core.exceptions import PersistenceError, SessionNotFoundError
from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.session import Message, Session, SessionContext, utcnow

log = structlog.get_logger(__name__)


class SessionRepository:
    """Session and message CRUD.

    Every write runs in its own transaction; on failure nothing is committed
    and PersistenceError is raised.
    """

    def __init__(self, db_path: str | Path):
        self.db_path = str(db_path)

    async def create(self, session: Session) -> Session:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute(
                    "INSERT INTO sessions (id, phase, context, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?)",
                    (
                        session.id,
                        session.phase.value,
                        session.context.model_dump_json(),
                        session.created_at.isoformat(),
                        session.updated_at.isoformat(),
                    ),
                )
                await db.commit()
        except aiosqlite.Error as e:
            log.error("session_create_failed", session_id=session.id, error=str(e))
            raise PersistenceError(f"Failed to create session {session.id}: {e}") from e

        log.info("session_created", session_id=session.id, phase=session.phase.value)
        return session

    async def get(self, session_id: str) -> Optional[Session]:
        """Get a session with its messages, or None."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute("SELECT * FROM sessions WHERE id = ?", (session_id,))
                row = await cursor.fetchone()
                if not row:
                    return None
                cursor = await db.execute(
                    "SELECT role, content, created_at FROM messages "
                    "WHERE session_id = ? ORDER BY id",
                    (session_id,),
                )
                message_rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to load session {session_id}: {e}") from e

        return self._row_to_session(row, message_rows)

    async def update_state(
        self,
        session_id: str,
        phase: Phase,
        context: SessionContext,
        messages: Optional[Sequence[Message]] = None,
    ) -> Session:
        """Write phase, context and any new messages in one transaction.

        Nothing is written if the session does not exist.

        Raises:
            SessionNotFoundError: Unknown session
            PersistenceError: Database failure
        """
        now = utcnow()
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("PRAGMA foreign_keys = ON")
                cursor = await db.execute(
                    "UPDATE sessions SET phase = ?, context = ?, updated_at = ? WHERE id = ?",
                    (Phase(phase).value, context.model_dump_json(), now.isoformat(), session_id),
                )
                if cursor.rowcount == 0:
                    raise SessionNotFoundError(f"Session {session_id} not found")
                if messages:
                    await db.executemany(
                        "INSERT INTO messages (session_id, role, content, created_at) "
                        "VALUES (?, ?, ?, ?)",
                        [
                            (session_id, m.role, m.content, m.created_at.isoformat())
                            for m in messages
                        ],
                    )
                await db.commit()
        except aiosqlite.Error as e:
            log.error("session_update_failed", session_id=session_id, error=str(e))
            raise PersistenceError(f"Failed to update session {session_id}: {e}") from e

        session = await self.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"Session {session_id} not found")
        return session

    async def add_message(self, session_id: str, message: Message) -> None:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("PRAGMA foreign_keys = ON")
                await db.execute(
                    "INSERT INTO messages (session_id, role, content, created_at) "
                    "VALUES (?, ?, ?, ?)",
                    (session_id, message.role, message.content, message.created_at.isoformat()),
                )
                await db.commit()
        except aiosqlite.IntegrityError as e:
            raise SessionNotFoundError(f"Session {session_id} not found") from e
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to save message for {session_id}: {e}") from e

    async def list_sessions(self, limit: int = 50) -> List[Session]:
        """Most recently updated sessions (without messages)."""
        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    "SELECT * FROM sessions ORDER BY updated_at DESC LIMIT ?", (limit,)
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to list sessions: {e}") from e
        return [self._row_to_session(row, []) for row in rows]

    async def delete(self, session_id: str) -> bool:
        try:
            async with aiosqlite.connect(self.db_path) as db:
                await db.execute("PRAGMA foreign_keys = ON")
                cursor = await db.execute("DELETE FROM sessions WHERE id = ?", (session_id,))
                await db.commit()
                deleted = cursor.rowcount > 0
        except aiosqlite.Error as e:
            raise PersistenceError(f"Failed to delete session {session_id}: {e}") from e

        if deleted:
            log.info("session_deleted", session_id=session_id)
        return deleted

    def _row_to_session(self, row: aiosqlite.Row, message_rows) -> Session:
        return Session(
            id=row["id"],
            phase=Phase(row["phase"]),
            context=SessionContext.model_validate_json(row["context"]),
            messages=[
                Message(
                    role=m["role"],
                    content=m["content"],
                    created_at=datetime.fromisoformat(m["created_at"]),
                )
                for m in message_rows
            ],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )
