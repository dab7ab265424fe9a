"""ItemStore SQLite 实现

planner_items 表的持久化与不变量维护。
(origin, external_id) 唯一约束由 schema 保证，其余不变量由调用方的代码路径保证：
归档字段只经 mark_archived / clear_archived 修改，外部字段更新不会触碰已归档行。
每个写操作是单条语句 + commit，与 EventLog 共享同一把写锁。
"""

import asyncio
import re
from datetime import datetime

import aiosqlite

from ..exceptions import ConflictError, NotFoundError, ValidationError
from ..models.enums import ArchiveReason, Origin
from ..models.item import SCHEDULED_TIME_PATTERN, PlannerItem
from ..timeutil import from_storage, to_storage, utc_now

_COLUMNS = (
    "id, external_id, origin, title, notes, due_at, scheduled_time, "
    "created_at, completed, archived_at, archived_reason"
)

# 有截止时间的在前按 due_at 升序，无截止时间的在后；同值按 created_at、id
_ACTIVE_ORDER = (
    "ORDER BY CASE WHEN due_at IS NULL THEN 1 ELSE 0 END, due_at, created_at, id"
)


class SqliteItemStore:
    """ItemStore 的 SQLite 实现"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        write_lock: asyncio.Lock | None = None,
    ) -> None:
        self._conn = conn
        self._write_lock = write_lock or asyncio.Lock()

    async def insert_manual(
        self,
        title: str,
        due_at: datetime | None = None,
        scheduled_time: str | None = None,
        notes: str | None = None,
    ) -> PlannerItem:
        """创建手动条目

        Raises:
            ValidationError: 去除首尾空白后标题为空，或 scheduled_time 不是 HH:MM
        """
        clean_title = (title or "").strip()
        if not clean_title:
            raise ValidationError("Manual tasks require a non-empty title")
        if scheduled_time is not None and not re.fullmatch(SCHEDULED_TIME_PATTERN, scheduled_time):
            raise ValidationError(f"Invalid scheduled_time {scheduled_time!r}, expected HH:MM")

        item_id = await self._insert(
            """
            INSERT INTO planner_items (origin, title, notes, due_at, scheduled_time,
                                       created_at, completed)
            VALUES (?, ?, ?, ?, ?, ?, 0)
            """,
            (
                Origin.MANUAL.value,
                clean_title,
                notes,
                to_storage(due_at),
                scheduled_time,
                to_storage(utc_now()),
            ),
        )
        return await self._require(item_id)

    async def insert_external(
        self,
        external_id: int,
        title: str,
        due_at: datetime | None,
        scheduled_time: str | None,
        created_at: datetime,
    ) -> PlannerItem:
        """创建外部条目

        Raises:
            ConflictError: (external, external_id) 已存在
        """
        try:
            item_id = await self._insert(
                """
                INSERT INTO planner_items (origin, external_id, title, due_at,
                                           scheduled_time, created_at, completed)
                VALUES (?, ?, ?, ?, ?, ?, 0)
                """,
                (
                    Origin.EXTERNAL.value,
                    external_id,
                    title,
                    to_storage(due_at),
                    scheduled_time,
                    to_storage(created_at),
                ),
            )
        except aiosqlite.IntegrityError as e:
            if self._is_external_conflict(e):
                raise ConflictError(external_id) from e
            raise
        return await self._require(item_id)

    async def update_external_fields(
        self,
        item_id: int,
        title: str,
        due_at: datetime | None,
        scheduled_time: str | None,
    ) -> bool:
        """仅覆盖 title / due_at / scheduled_time

        WHERE 条件限定活跃行：若读取后该行已被并发归档，则不做任何修改。

        Returns:
            True 如果有行被更新
        """
        return await self._write(
            """
            UPDATE planner_items
            SET title = ?, due_at = ?, scheduled_time = ?
            WHERE id = ? AND archived_reason IS NULL
            """,
            (title, to_storage(due_at), scheduled_time, item_id),
        )

    async def find_by_origin(self, origin: Origin, external_id: int) -> PlannerItem | None:
        """按去重键查询"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM planner_items WHERE origin = ? AND external_id = ?",
            (origin.value, external_id),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_item(row)

    async def get_item(self, item_id: int) -> PlannerItem | None:
        """根据 id 查询条目"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM planner_items WHERE id = ?",
            (item_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_item(row)

    async def list_active(self) -> list[PlannerItem]:
        """查询所有活跃条目"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM planner_items "
            f"WHERE archived_reason IS NULL {_ACTIVE_ORDER}"
        )
        rows = await cursor.fetchall()
        return [self._row_to_item(row) for row in rows]

    async def list_archived(self, reason: ArchiveReason) -> list[PlannerItem]:
        """查询指定分桶的归档条目，最近归档的在前"""
        cursor = await self._conn.execute(
            f"SELECT {_COLUMNS} FROM planner_items "
            "WHERE archived_reason = ? ORDER BY archived_at DESC, id DESC",
            (reason.value,),
        )
        rows = await cursor.fetchall()
        return [self._row_to_item(row) for row in rows]

    async def mark_archived(
        self,
        item_id: int,
        reason: ArchiveReason,
        archived_at: datetime,
    ) -> bool:
        """归档活跃条目（仅 LifecycleManager 调用）

        completed 仅在 reason = completed 时置 1，deleted 时保持原值。

        Returns:
            True 如果活跃行被归档
        """
        return await self._write(
            """
            UPDATE planner_items
            SET completed = CASE WHEN ? = 'completed' THEN 1 ELSE completed END,
                archived_at = ?,
                archived_reason = ?
            WHERE id = ? AND archived_reason IS NULL
            """,
            (reason.value, to_storage(archived_at), reason.value, item_id),
        )

    async def clear_archived(self, item_id: int) -> bool:
        """恢复已归档条目（仅 LifecycleManager 调用）

        Returns:
            True 如果已归档行被恢复
        """
        return await self._write(
            """
            UPDATE planner_items
            SET completed = 0, archived_at = NULL, archived_reason = NULL
            WHERE id = ? AND archived_reason IS NOT NULL
            """,
            (item_id,),
        )

    async def hard_delete(self, item_id: int) -> None:
        """物理删除条目，关联事件由外键级联删除

        Raises:
            NotFoundError: 条目不存在
        """
        deleted = await self._write("DELETE FROM planner_items WHERE id = ?", (item_id,))
        if not deleted:
            raise NotFoundError(item_id)

    async def _insert(self, sql: str, params: tuple) -> int:
        async with self._write_lock:
            try:
                cursor = await self._conn.execute(sql, params)
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise
            return cursor.lastrowid

    async def _write(self, sql: str, params: tuple) -> bool:
        async with self._write_lock:
            try:
                cursor = await self._conn.execute(sql, params)
                await self._conn.commit()
            except Exception:
                await self._conn.rollback()
                raise
            return cursor.rowcount > 0

    async def _require(self, item_id: int) -> PlannerItem:
        item = await self.get_item(item_id)
        if item is None:
            raise NotFoundError(item_id)
        return item

    @staticmethod
    def _is_external_conflict(error: Exception) -> bool:
        text = str(error)
        return (
            "idx_planner_items_origin_external" in text
            or "planner_items.origin, planner_items.external_id" in text
        )

    @staticmethod
    def _row_to_item(row: aiosqlite.Row) -> PlannerItem:
        """将数据库行转换为 PlannerItem 模型"""
        return PlannerItem(
            id=row[0],
            external_id=row[1],
            origin=Origin(row[2]),
            title=row[3],
            notes=row[4],
            due_at=from_storage(row[5]),
            scheduled_time=row[6],
            created_at=from_storage(row[7]),
            completed=bool(row[8]),
            archived_at=from_storage(row[9]),
            archived_reason=ArchiveReason(row[10]) if row[10] else None,
        )
