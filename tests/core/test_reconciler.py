"""Reconciler 测试

测试内容：
1. 新条目插入，重复同步幂等
2. 活跃条目只覆盖 title / due_at / scheduled_time
3. 已归档条目不被恢复、不被修改
4. 上游消失的条目保留
5. due_at 无法解析、created_at 缺省
6. 去重键冲突向上抛出
7. 查询后被并发归档的条目保持归档
"""

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest
from taskplanner.core.exceptions import ConflictError
from taskplanner.core.models import ArchiveReason, ExternalCandidate, Origin
from taskplanner.core.reconciler import Reconciler
from taskplanner.core.store.item_store import SqliteItemStore

FIXED_NOW = datetime(2024, 4, 20, 8, 0, tzinfo=UTC)


def _candidate(external_id: int = 501, title: str = "HW1", **kwargs) -> ExternalCandidate:
    return ExternalCandidate(external_id=external_id, title=title, **kwargs)


class TestInsertAndUpdate:
    async def test_new_candidate_inserted(self, reconciler, item_store):
        result = await reconciler.reconcile([_candidate(due_at="2024-05-01T10:00:00Z")])
        assert (result.inserted, result.updated, result.skipped_archived) == (1, 0, 0)

        item = await item_store.find_by_origin(Origin.EXTERNAL, 501)
        assert item.title == "HW1"
        assert item.due_at == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)
        assert item.scheduled_time == "10:00"
        assert item.completed is False
        assert item.archived_reason is None

    async def test_resync_updates_fields(self, reconciler, item_store):
        await reconciler.reconcile([_candidate(due_at="2024-05-01T10:00:00Z")])
        original = await item_store.find_by_origin(Origin.EXTERNAL, 501)

        result = await reconciler.reconcile(
            [_candidate(title="HW1 (v2)", due_at="2024-05-02T10:00:00Z")]
        )
        assert (result.inserted, result.updated) == (0, 1)

        items = await item_store.list_active()
        assert len(items) == 1
        updated = items[0]
        assert updated.id == original.id
        assert updated.title == "HW1 (v2)"
        assert updated.due_at == datetime(2024, 5, 2, 10, 0, tzinfo=UTC)
        assert updated.scheduled_time == "10:00"
        assert updated.created_at == original.created_at

    async def test_idempotent(self, reconciler, item_store):
        batch = [
            _candidate(501, "HW1", due_at="2024-05-01T10:00:00Z"),
            _candidate(502, "HW2"),
        ]
        await reconciler.reconcile(batch)
        first = await item_store.list_active()

        await reconciler.reconcile(batch)
        assert await item_store.list_active() == first

    async def test_manual_items_untouched(self, reconciler, item_store):
        manual = await item_store.insert_manual("Study group")
        await reconciler.reconcile([_candidate()])

        assert await item_store.get_item(manual.id) == manual
        assert len(await item_store.list_active()) == 2

    async def test_vanished_upstream_item_kept(self, reconciler, item_store):
        await reconciler.reconcile([_candidate(501), _candidate(502, "HW2")])
        await reconciler.reconcile([_candidate(501)])

        assert {i.external_id for i in await item_store.list_active()} == {501, 502}

    async def test_empty_candidates(self, reconciler, item_store):
        result = await reconciler.reconcile([])
        assert result.inserted == result.updated == result.skipped_archived == 0
        assert await item_store.list_active() == []


class TestArchivedItems:
    @pytest.mark.parametrize("reason", [ArchiveReason.COMPLETED, ArchiveReason.DELETED])
    async def test_archived_not_resurrected(self, reconciler, item_store, reason):
        await reconciler.reconcile([_candidate(due_at="2024-05-01T10:00:00Z")])
        item = await item_store.find_by_origin(Origin.EXTERNAL, 501)
        await item_store.mark_archived(item.id, reason, FIXED_NOW)
        before = await item_store.get_item(item.id)

        result = await reconciler.reconcile(
            [_candidate(title="HW1 renamed", due_at="2024-06-01T10:00:00Z")]
        )
        assert result.skipped_archived == 1
        assert result.inserted == 0

        assert await item_store.get_item(item.id) == before
        assert await item_store.list_active() == []


class TestCandidateFields:
    async def test_unparseable_due_at_stored_as_null(self, reconciler, item_store):
        await reconciler.reconcile([_candidate(due_at="not a date")])

        item = await item_store.find_by_origin(Origin.EXTERNAL, 501)
        assert item.due_at is None
        assert item.scheduled_time is None

    async def test_due_at_cleared_upstream(self, reconciler, item_store):
        await reconciler.reconcile([_candidate(due_at="2024-05-01T10:00:00Z")])
        await reconciler.reconcile([_candidate(due_at=None)])

        item = await item_store.find_by_origin(Origin.EXTERNAL, 501)
        assert item.due_at is None
        assert item.scheduled_time is None

    async def test_created_at_from_upstream(self, reconciler, item_store):
        created = datetime(2024, 4, 1, 12, 0, tzinfo=UTC)
        await reconciler.reconcile([_candidate(created_at=created)])
        item = await item_store.find_by_origin(Origin.EXTERNAL, 501)
        assert item.created_at == created

    async def test_created_at_defaults_to_now(self, item_store):
        reconciler = Reconciler(item_store, tz=UTC, now=lambda: FIXED_NOW)
        await reconciler.reconcile([_candidate()])
        item = await item_store.find_by_origin(Origin.EXTERNAL, 501)
        assert item.created_at == FIXED_NOW

    async def test_scheduled_time_uses_local_zone(self, item_store):
        reconciler = Reconciler(item_store, tz=ZoneInfo("America/Los_Angeles"))
        await reconciler.reconcile([_candidate(due_at="2024-05-01T10:00:00Z")])
        item = await item_store.find_by_origin(Origin.EXTERNAL, 501)
        assert item.scheduled_time == "03:00"
        assert item.due_at == datetime(2024, 5, 1, 10, 0, tzinfo=UTC)


class _BlindItemStore(SqliteItemStore):
    """查不到已有行，模拟查重逻辑缺陷"""

    async def find_by_origin(self, origin, external_id):
        return None


class _RacingItemStore(SqliteItemStore):
    """查询返回活跃快照后，立即在库中归档该行"""

    async def find_by_origin(self, origin, external_id):
        item = await super().find_by_origin(origin, external_id)
        if item is not None and item.is_active:
            await self.mark_archived(item.id, ArchiveReason.COMPLETED, FIXED_NOW)
        return item


class TestConcurrency:
    async def test_conflict_propagates(self, store_group):
        blind = _BlindItemStore(store_group.conn, store_group.write_lock)
        reconciler = Reconciler(blind, tz=UTC)
        await reconciler.reconcile([_candidate()])

        with pytest.raises(ConflictError):
            await reconciler.reconcile([_candidate()])

    async def test_archived_during_pass_stays_archived(self, store_group):
        await Reconciler(store_group.item_store, tz=UTC).reconcile([_candidate()])

        racing = _RacingItemStore(store_group.conn, store_group.write_lock)
        result = await Reconciler(racing, tz=UTC).reconcile([_candidate(title="changed")])

        assert result.updated == 0
        assert result.skipped_archived == 1
        item = await store_group.item_store.find_by_origin(Origin.EXTERNAL, 501)
        assert item.title == "HW1"
        assert item.archived_reason == ArchiveReason.COMPLETED
