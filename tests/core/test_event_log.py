"""SqliteEventLog 测试

测试内容：
1. 事件写入与查询
2. metadata 结构化序列化
3. 写入失败不抛出
4. 条目删除时事件级联删除
"""

from datetime import UTC, datetime

from taskplanner.core.models import ArchiveEventMetadata, EventType, Origin


class TestRecord:
    async def test_record_and_list(self, item_store, event_log):
        item = await item_store.insert_manual("task")
        first = await event_log.record(item.id, EventType.COMPLETED, {"note": "done"})
        second = await event_log.record(item.id, EventType.RESTORED)

        assert first is not None and second is not None
        assert first.id != second.id

        events = await event_log.list_for_item(item.id)
        assert [e.event_type for e in events] == [EventType.COMPLETED, EventType.RESTORED]
        assert events[0].metadata == {"note": "done"}
        assert events[1].metadata == {}
        assert events[0].planner_item_id == item.id

    async def test_record_model_metadata(self, item_store, event_log):
        item = await item_store.insert_manual("task")
        archived_at = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
        await event_log.record(
            item.id,
            EventType.DELETED,
            ArchiveEventMetadata(archived_at=archived_at, origin=Origin.MANUAL),
        )

        (event,) = await event_log.list_for_item(item.id)
        assert event.metadata["origin"] == "manual"
        assert event.metadata["external_id"] is None
        assert event.metadata["archived_at"].startswith("2024-05-01T12:00:00")

    async def test_list_other_item_empty(self, item_store, event_log):
        item = await item_store.insert_manual("task")
        await event_log.record(item.id, EventType.COMPLETED)
        assert await event_log.list_for_item(item.id + 1) == []


class TestBestEffort:
    async def test_record_unknown_item_returns_none(self, item_store, event_log):
        """外键约束失败时返回 None，不抛出"""
        assert await event_log.record(999, EventType.COMPLETED) is None

        # 失败后同一连接上的写入仍正常
        item = await item_store.insert_manual("after failure")
        assert await event_log.record(item.id, EventType.COMPLETED) is not None

    async def test_record_when_table_missing(self, store_group):
        item = await store_group.item_store.insert_manual("task")
        await store_group.conn.execute("DROP TABLE planner_events")
        await store_group.conn.commit()

        assert await store_group.event_log.record(item.id, EventType.DELETED) is None


class TestCascade:
    async def test_hard_delete_removes_events(self, item_store, event_log):
        item = await item_store.insert_manual("task")
        await event_log.record(item.id, EventType.COMPLETED)
        await event_log.record(item.id, EventType.RESTORED)

        await item_store.hard_delete(item.id)
        assert await event_log.list_for_item(item.id) == []
