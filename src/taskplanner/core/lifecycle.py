"""LifecycleManager -- 唯一允许修改归档状态的组件

ACTIVE --archive(completed)--> COMPLETED
ACTIVE --archive(deleted)----> DELETED
COMPLETED / DELETED --restore--> ACTIVE
任意状态 --purge--> 删除（行与级联事件一并移除）

每次流转先提交条目更新，再 best-effort 追加审计事件。
"""

from collections.abc import Callable
from datetime import datetime

import structlog

from .exceptions import NotFoundError, ValidationError
from .models.enums import (
    ArchiveReason,
    EventType,
    LifecycleState,
    event_type_for,
    state_for,
    validate_transition,
)
from .models.item import PlannerItem
from .models.payloads import ArchiveEventMetadata, RestoreEventMetadata
from .store.protocols import EventLog, ItemStore
from .timeutil import utc_now

log = structlog.get_logger()


def parse_reason(reason: ArchiveReason | str) -> ArchiveReason:
    """校验归档原因

    Raises:
        ValidationError: 不是 completed / deleted
    """
    try:
        return ArchiveReason(reason)
    except ValueError as e:
        raise ValidationError(f"Invalid archive reason: {reason!r}") from e


class LifecycleManager:
    """条目生命周期管理"""

    def __init__(
        self,
        item_store: ItemStore,
        event_log: EventLog,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        self._items = item_store
        self._events = event_log
        self._now = now

    async def archive(self, item_id: int, reason: ArchiveReason | str) -> PlannerItem:
        """归档活跃条目

        Raises:
            ValidationError: 归档原因非法
            NotFoundError: 不存在 id 对应的活跃条目
        """
        archive_reason = parse_reason(reason)
        target = state_for(archive_reason)

        item = await self._items.get_item(item_id)
        if item is None or not validate_transition(item.state, target):
            raise NotFoundError(item_id, f"Active planner item {item_id} not found")

        archived_at = self._now()
        if not await self._items.mark_archived(item_id, archive_reason, archived_at):
            # 读取后被并发归档或删除
            raise NotFoundError(item_id, f"Active planner item {item_id} not found")

        await self._events.record(
            item_id,
            event_type_for(archive_reason),
            ArchiveEventMetadata(
                archived_at=archived_at,
                origin=item.origin,
                external_id=item.external_id,
            ),
        )
        log.info(
            "planner_item_archived",
            item_id=item_id,
            reason=archive_reason.value,
            origin=item.origin.value,
        )
        return await self._reload(item_id)

    async def restore(self, item_id: int) -> PlannerItem:
        """恢复已归档条目；external 条目恢复后重新参与同步

        Raises:
            NotFoundError: 不存在 id 对应的已归档条目
        """
        item = await self._items.get_item(item_id)
        if item is None or not validate_transition(item.state, LifecycleState.ACTIVE):
            raise NotFoundError(item_id, f"Archived planner item {item_id} not found")

        if not await self._items.clear_archived(item_id):
            raise NotFoundError(item_id, f"Archived planner item {item_id} not found")

        await self._events.record(
            item_id,
            EventType.RESTORED,
            RestoreEventMetadata(
                previous_reason=item.archived_reason,
                previous_archived_at=item.archived_at,
                origin=item.origin,
            ),
        )
        log.info(
            "planner_item_restored",
            item_id=item_id,
            previous_reason=item.archived_reason.value,
        )
        return await self._reload(item_id)

    async def purge(self, item_id: int) -> None:
        """永久删除条目（任意状态），关联事件级联删除

        Raises:
            NotFoundError: 条目不存在
        """
        await self._items.hard_delete(item_id)
        log.info("planner_item_purged", item_id=item_id)

    async def _reload(self, item_id: int) -> PlannerItem:
        item = await self._items.get_item(item_id)
        if item is None:
            # 流转后、重新读取前被并发 purge
            raise NotFoundError(item_id)
        return item
