"""Tests for snapshots and rollback."""

from unittest.mock import AsyncMock

import pytest

from okr_coach.core.exceptions import RollbackError, SessionNotFoundError, SnapshotNotFoundError
from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.session import ConversationState, OKRData, Session, SessionContext
from okr_coach.domain.models.transition import SnapshotReason
from okr_coach.services.snapshot_manager import RollbackManager, SnapshotManager

from conftest import make_scores


def _context(objective="Delight customers", turns=4):
    return SessionContext(
        conversation_state=ConversationState(turns_in_phase=turns),
        okr_data=OKRData(objective=objective),
    )


@pytest.fixture
def manager():
    return SnapshotManager()


async def _take(manager, phase=Phase.DISCOVERY, objective="Delight customers", count=3):
    return await manager.create_snapshot(
        "s1", phase, _context(objective), make_scores(objective=40), message_count=count
    )


class TestSnapshotManager:
    @pytest.mark.asyncio
    async def test_snapshot_is_deep_copy(self, manager):
        context = _context()
        scores = make_scores(objective=40)

        snapshot = await manager.create_snapshot("s1", Phase.DISCOVERY, context, scores, 3)
        context.okr_data.objective = "Changed"
        scores.objective.overall = 99

        assert snapshot.context.okr_data.objective == "Delight customers"
        assert snapshot.quality_scores.objective_quality == 40
        assert snapshot.reason is SnapshotReason.BEFORE_TRANSITION
        assert snapshot.id.startswith("snapshot_s1_")

    @pytest.mark.asyncio
    async def test_queries(self, manager):
        first = await _take(manager, Phase.DISCOVERY)
        second = await _take(manager, Phase.REFINEMENT)
        third = await _take(manager, Phase.REFINEMENT)

        assert manager.count("s1") == 3
        assert manager.get_latest("s1") is third
        assert manager.get_previous("s1") is second
        assert manager.get_back("s1", 2) is first
        assert manager.get_back("s1", 3) is None
        assert manager.get_by_id("s1", first.id) is first
        assert manager.latest_for_phase("s1", Phase.REFINEMENT) is third
        assert manager.latest_for_phase("s1", Phase.VALIDATION) is None
        assert [s.id for s in manager.get_snapshots("s1")] == [first.id, second.id, third.id]

    @pytest.mark.asyncio
    async def test_unknown_snapshot(self, manager):
        with pytest.raises(SnapshotNotFoundError):
            manager.get_by_id("s1", "nope")

    @pytest.mark.asyncio
    async def test_statistics(self, manager):
        await _take(manager, Phase.DISCOVERY)
        await _take(manager, Phase.REFINEMENT)

        stats = manager.statistics("s1")

        assert stats["total"] == 2
        assert stats["by_phase"] == {"discovery": 1, "refinement": 1}
        assert stats["by_reason"] == {"before_transition": 2}

    @pytest.mark.asyncio
    async def test_store_receives_every_snapshot(self):
        store = AsyncMock()
        manager = SnapshotManager(store)

        snapshot = await _take(manager)

        store.save.assert_awaited_once_with(snapshot)

    @pytest.mark.asyncio
    async def test_failed_store_write_keeps_memory_consistent(self):
        store = AsyncMock()
        store.save.side_effect = RuntimeError("disk full")
        manager = SnapshotManager(store)

        with pytest.raises(RuntimeError):
            await _take(manager)
        assert manager.count("s1") == 0

    @pytest.mark.asyncio
    async def test_hydrate_from_store(self):
        source = SnapshotManager()
        stored = [await _take(source), await _take(source, Phase.REFINEMENT)]
        store = AsyncMock()
        store.list_for_session.return_value = stored

        manager = SnapshotManager(store)

        assert await manager.hydrate("s1") == 2
        assert await manager.hydrate("s1") == 2
        store.list_for_session.assert_awaited_once_with("s1")


class TestRollbackManager:
    @pytest.fixture
    def sessions(self):
        sessions = AsyncMock()
        sessions.get.return_value = Session(
            id="s1", phase=Phase.KR_DISCOVERY, context=_context("Newer objective", turns=2)
        )
        return sessions

    @pytest.mark.asyncio
    async def test_rollback_to_previous(self, manager, sessions):
        snapshot = await _take(manager, Phase.REFINEMENT)
        rollbacks = RollbackManager(manager, sessions)

        result = await rollbacks.rollback_to_previous("s1")

        assert result.success
        assert result.snapshot_id == snapshot.id
        assert result.restored_phase is Phase.REFINEMENT

        session_id, phase, context = sessions.update_state.await_args.args
        assert session_id == "s1"
        assert phase is Phase.REFINEMENT
        assert context.okr_data.objective == "Delight customers"
        assert context.conversation_state.turns_in_phase == 0
        assert context.conversation_state.quality_scores.objective_quality == 40

    @pytest.mark.asyncio
    async def test_rollback_to_phase(self, manager, sessions):
        await _take(manager, Phase.DISCOVERY, objective="First")
        await _take(manager, Phase.REFINEMENT, objective="Second")
        rollbacks = RollbackManager(manager, sessions)

        result = await rollbacks.rollback_to_phase("s1", Phase.DISCOVERY)

        assert result.restored_phase is Phase.DISCOVERY
        assert rollbacks.can_rollback_to_phase("s1", Phase.REFINEMENT)
        assert not rollbacks.can_rollback_to_phase("s1", Phase.VALIDATION)
        with pytest.raises(RollbackError):
            await rollbacks.rollback_to_phase("s1", Phase.VALIDATION)

    @pytest.mark.asyncio
    async def test_rollback_to_snapshot(self, manager, sessions):
        first = await _take(manager, Phase.DISCOVERY)
        await _take(manager, Phase.REFINEMENT)
        rollbacks = RollbackManager(manager, sessions)

        result = await rollbacks.rollback_to_snapshot("s1", first.id)

        assert result.snapshot_id == first.id
        points = rollbacks.available_rollback_points("s1")
        assert [p["phase"] for p in points] == ["refinement", "discovery"]

    @pytest.mark.asyncio
    async def test_nothing_to_roll_back_to(self, manager, sessions):
        with pytest.raises(RollbackError):
            await RollbackManager(manager, sessions).rollback_to_previous("s1")

    @pytest.mark.asyncio
    async def test_missing_session(self, manager):
        await _take(manager)
        sessions = AsyncMock()
        sessions.get.return_value = None

        with pytest.raises(SessionNotFoundError):
            await RollbackManager(manager, sessions).rollback_to_previous("s1")
        sessions.update_state.assert_not_awaited()
