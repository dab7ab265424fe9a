"""Store Protocol 接口定义

定义 ItemStore、EventLog 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing），
Reconciler / LifecycleManager 只依赖这里的接口，便于单独测试。
"""

from datetime import datetime
from typing import Any, Protocol

from pydantic import BaseModel

from ..models.enums import ArchiveReason, EventType, Origin
from ..models.event import PlannerEvent
from ..models.item import PlannerItem


class ItemStore(Protocol):
    """PlannerItem 存储接口"""

    async def insert_manual(
        self,
        title: str,
        due_at: datetime | None = None,
        scheduled_time: str | None = None,
        notes: str | None = None,
    ) -> PlannerItem:
        """创建手动条目"""
        ...

    async def insert_external(
        self,
        external_id: int,
        title: str,
        due_at: datetime | None,
        scheduled_time: str | None,
        created_at: datetime,
    ) -> PlannerItem:
        """创建外部条目"""
        ...

    async def update_external_fields(
        self,
        item_id: int,
        title: str,
        due_at: datetime | None,
        scheduled_time: str | None,
    ) -> bool:
        """覆盖外部条目的 title / due_at / scheduled_time"""
        ...

    async def find_by_origin(self, origin: Origin, external_id: int) -> PlannerItem | None:
        """按去重键查询"""
        ...

    async def get_item(self, item_id: int) -> PlannerItem | None:
        """根据 id 查询条目"""
        ...

    async def list_active(self) -> list[PlannerItem]:
        """查询活跃条目（已排序）"""
        ...

    async def list_archived(self, reason: ArchiveReason) -> list[PlannerItem]:
        """查询归档分桶（已排序）"""
        ...

    async def mark_archived(
        self,
        item_id: int,
        reason: ArchiveReason,
        archived_at: datetime,
    ) -> bool:
        """归档活跃条目"""
        ...

    async def clear_archived(self, item_id: int) -> bool:
        """恢复已归档条目"""
        ...

    async def hard_delete(self, item_id: int) -> None:
        """物理删除条目"""
        ...


class EventLog(Protocol):
    """审计事件接口 -- append-only，写入失败不抛出"""

    async def record(
        self,
        planner_item_id: int,
        event_type: EventType,
        metadata: BaseModel | dict[str, Any] | None = None,
    ) -> PlannerEvent | None:
        """追加事件，失败时返回 None"""
        ...

    async def list_for_item(self, planner_item_id: int) -> list[PlannerEvent]:
        """查询指定条目的所有事件"""
        ...
