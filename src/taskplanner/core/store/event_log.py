"""EventLog SQLite 实现

事件表 append-only：只允许插入；条目被 purge 时由外键级联删除。
写入为 fire-and-forget：追加失败只记录日志，不回滚、不阻塞它所记录的状态流转。
Reconciler 从不读取事件表。
"""

import asyncio
import json
from typing import Any

import aiosqlite
import structlog
from pydantic import BaseModel
from ulid import ULID

from ..models.enums import EventType
from ..models.event import PlannerEvent
from ..timeutil import from_storage, to_storage, utc_now

log = structlog.get_logger()


class SqliteEventLog:
    """EventLog 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._write_lock = write_lock or asyncio.Lock()

    async def record(
        self,
        planner_item_id: int,
        event_type: EventType,
        metadata: BaseModel | dict[str, Any] | None = None,
    ) -> PlannerEvent | None:
        """追加审计事件（best-effort）

        Returns:
            写入的事件；写入失败时返回 None
        """
        if isinstance(metadata, BaseModel):
            metadata = metadata.model_dump(mode="json")
        event = PlannerEvent(
            id=str(ULID()),
            planner_item_id=planner_item_id,
            event_type=event_type,
            occurred_at=utc_now(),
            metadata=metadata or {},
        )
        try:
            await self._append(event)
        except Exception as e:
            log.error(
                "planner_event_record_failed",
                planner_item_id=planner_item_id,
                event_type=event_type.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        return event

    async def list_for_item(self, planner_item_id: int) -> list[PlannerEvent]:
        """查询指定条目的所有事件，按发生时间正序"""
        cursor = await self._conn.execute(
            """
            SELECT id, planner_item_id, event_type, occurred_at, metadata
            FROM planner_events
            WHERE planner_item_id = ?
            ORDER BY occurred_at ASC, id ASC
            """,
            (planner_item_id,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_event(row) for row in rows]

    async def _append(self, event: PlannerEvent) -> None:
        async with self._write_lock:
            try:
                await self._conn.execute(
                    """
                    INSERT INTO planner_events (id, planner_item_id, event_type,
                                                occurred_at, metadata)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        event.id,
                        event.planner_item_id,
                        event.event_type.value,
                        to_storage(event.occurred_at),
                        json.dumps(event.metadata, ensure_ascii=False),
                    ),
                )
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> PlannerEvent:
        """将数据库行转换为 PlannerEvent 模型"""
        metadata = json.loads(row[4]) if row[4] else {}
        return PlannerEvent(
            id=row[0],
            planner_item_id=row[1],
            event_type=EventType(row[2]),
            occurred_at=from_storage(row[3]),
            metadata=metadata,
        )
