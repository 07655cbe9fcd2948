"""Tests for the session and snapshot repositories."""

import uuid

import aiosqlite
import pytest

from okr_coach.core.exceptions import PersistenceError, SessionNotFoundError
from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.session import Message, OKRData, Session, SessionContext
from okr_coach.persistence.database import check_database_health
from okr_coach.persistence.repositories import SessionRepository
from okr_coach.services.snapshot_manager import SnapshotManager

from conftest import make_scores


def create_test_session(session_id=None) -> Session:
    return Session(id=session_id or str(uuid.uuid4()))


class TestSessionRepository:
    @pytest.mark.asyncio
    async def test_create_and_get(self, session_repo):
        session = await session_repo.create(create_test_session("s1"))

        loaded = await session_repo.get("s1")

        assert loaded.id == session.id
        assert loaded.phase is Phase.DISCOVERY
        assert loaded.messages == []
        assert loaded.context.conversation_state.turns_in_phase == 0

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, session_repo):
        assert await session_repo.get("nope") is None

    @pytest.mark.asyncio
    async def test_duplicate_id_raises_persistence_error(self, session_repo):
        await session_repo.create(create_test_session("s1"))

        with pytest.raises(PersistenceError):
            await session_repo.create(create_test_session("s1"))

    @pytest.mark.asyncio
    async def test_messages_are_ordered(self, session_repo):
        await session_repo.create(create_test_session("s1"))
        await session_repo.add_message("s1", Message(role="user", content="first"))
        await session_repo.add_message("s1", Message(role="assistant", content="second"))

        loaded = await session_repo.get("s1")

        assert [m.content for m in loaded.messages] == ["first", "second"]
        assert loaded.message_count == 2

    @pytest.mark.asyncio
    async def test_add_message_to_missing_session(self, session_repo):
        with pytest.raises(SessionNotFoundError):
            await session_repo.add_message("nope", Message(role="user", content="hi"))

    @pytest.mark.asyncio
    async def test_update_state_writes_phase_and_context(self, session_repo):
        await session_repo.create(create_test_session("s1"))
        context = SessionContext(okr_data=OKRData(objective="Delight customers"))
        context.conversation_state.quality_scores = make_scores(objective=70, key_results=[60])
        context.conversation_state.turns_in_phase = 2

        updated = await session_repo.update_state("s1", Phase.REFINEMENT, context)

        assert updated.phase is Phase.REFINEMENT
        assert updated.context.okr_data.objective == "Delight customers"
        assert updated.context.conversation_state.quality_scores.objective_quality == 70
        assert updated.context.conversation_state.quality_scores.key_result_count == 1
        assert updated.context.conversation_state.turns_in_phase == 2

    @pytest.mark.asyncio
    async def test_update_state_writes_messages_with_state(self, session_repo):
        await session_repo.create(create_test_session("s1"))
        await session_repo.add_message("s1", Message(role="user", content="earlier"))

        updated = await session_repo.update_state(
            "s1",
            Phase.DISCOVERY,
            SessionContext(),
            messages=[
                Message(role="user", content="question"),
                Message(role="assistant", content="answer"),
            ],
        )

        assert [m.content for m in updated.messages] == ["earlier", "question", "answer"]

    @pytest.mark.asyncio
    async def test_update_missing_session(self, session_repo):
        with pytest.raises(SessionNotFoundError):
            await session_repo.update_state("nope", Phase.REFINEMENT, SessionContext())

    @pytest.mark.asyncio
    async def test_update_missing_session_stores_no_messages(self, session_repo):
        with pytest.raises(SessionNotFoundError):
            await session_repo.update_state(
                "nope",
                Phase.REFINEMENT,
                SessionContext(),
                messages=[Message(role="user", content="orphan")],
            )

        async with aiosqlite.connect(session_repo.db_path) as db:
            cursor = await db.execute("SELECT COUNT(*) FROM messages")
            (count,) = await cursor.fetchone()
        assert count == 0

    @pytest.mark.asyncio
    async def test_list_and_delete(self, session_repo):
        await session_repo.create(create_test_session("s1"))
        await session_repo.create(create_test_session("s2"))
        await session_repo.add_message("s1", Message(role="user", content="hi"))

        assert {s.id for s in await session_repo.list_sessions()} == {"s1", "s2"}
        assert await session_repo.delete("s1")
        assert not await session_repo.delete("s1")
        assert await session_repo.get("s1") is None

    @pytest.mark.asyncio
    async def test_unreachable_database(self, tmp_path):
        repo = SessionRepository(tmp_path / "missing" / "db.sqlite")

        with pytest.raises(PersistenceError):
            await repo.get("s1")


class TestSnapshotRepository:
    @pytest.mark.asyncio
    async def test_round_trip_in_order(self, session_repo, snapshot_repo):
        await session_repo.create(create_test_session("s1"))
        manager = SnapshotManager(snapshot_repo)
        first = await manager.create_snapshot(
            "s1", Phase.DISCOVERY, SessionContext(), make_scores(objective=20), 2
        )
        second = await manager.create_snapshot(
            "s1", Phase.REFINEMENT, SessionContext(), make_scores(objective=55), 5,
            metadata={"trigger": "finalization_signal"},
        )

        stored = await snapshot_repo.list_for_session("s1")

        assert [s.id for s in stored] == [first.id, second.id]
        assert stored[1].quality_scores.objective_quality == 55
        assert stored[1].metadata == {"trigger": "finalization_signal"}
        assert await snapshot_repo.list_for_session("other") == []


@pytest.mark.asyncio
async def test_database_health(test_db, session_repo):
    await session_repo.create(create_test_session())

    health = await check_database_health(test_db)

    assert health["status"] == "healthy"
    assert health["session_count"] == 1
