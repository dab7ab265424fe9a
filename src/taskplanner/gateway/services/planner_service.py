"""PlannerService -- 刷新/同步/手动创建/归档/恢复/删除业务逻辑

刷新流程：
1. 可选：拉取外部作业源全部分页 -> Reconciler 合并
2. 总是：State Projection 构建快照

同步失败（UpstreamFetchError）只体现在 SyncReport 中，不影响刷新本身，
也不影响手动创建、归档、恢复、删除等其他操作。
"""

from datetime import datetime, tzinfo
from typing import Literal

import structlog
from pydantic import BaseModel, Field
from taskplanner.core.lifecycle import LifecycleManager
from taskplanner.core.models import PlannerEvent, PlannerItem, PlannerState
from taskplanner.core.projection import build_state
from taskplanner.core.reconciler import Reconciler
from taskplanner.core.store import StoreGroup
from taskplanner.core.timeutil import ensure_utc
from taskplanner.feed import CanvasFeedClient, UpstreamFetchError

log = structlog.get_logger()


class SyncReport(BaseModel):
    """一次同步请求的结果"""

    status: Literal["ok", "failed", "skipped"]
    inserted: int = 0
    updated: int = 0
    skipped_archived: int = 0
    error: str | None = Field(default=None, description="失败原因")


class PlannerService:
    """规划器业务服务"""

    def __init__(
        self,
        store_group: StoreGroup,
        feed_client: CanvasFeedClient | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self._stores = store_group
        self._feed = feed_client
        self._tz = tz
        self._lifecycle = LifecycleManager(store_group.item_store, store_group.event_log)

    async def get_state(self) -> PlannerState:
        """构建当前状态快照"""
        return await build_state(self._stores.item_store)

    async def refresh(self, sync: bool = False) -> tuple[PlannerState, SyncReport | None]:
        """刷新：可选先同步，再构建快照"""
        report = await self.sync() if sync else None
        return await self.get_state(), report

    async def sync(self) -> SyncReport:
        """拉取外部作业并合并

        未配置作业源时返回 skipped；拉取失败返回 failed，本地状态保持不变。
        """
        if self._feed is None:
            return SyncReport(status="skipped")

        async with self._stores.sync_lock:
            try:
                candidates = await self._feed.fetch_candidates()
            except UpstreamFetchError as e:
                log.warning("planner_sync_failed", error=str(e))
                return SyncReport(status="failed", error=str(e))

            reconciler = Reconciler(self._stores.item_store, tz=self._tz)
            result = await reconciler.reconcile(candidates)

        return SyncReport(
            status="ok",
            inserted=result.inserted,
            updated=result.updated,
            skipped_archived=result.skipped_archived,
        )

    async def create_manual(
        self,
        title: str,
        due_at: datetime | None = None,
        scheduled_time: str | None = None,
        notes: str | None = None,
    ) -> PlannerState:
        """创建手动条目

        Raises:
            ValidationError: 标题为空或 scheduled_time 非法
        """
        item = await self._stores.item_store.insert_manual(
            title,
            due_at=ensure_utc(due_at, self._tz) if due_at else None,
            scheduled_time=scheduled_time,
            notes=notes,
        )
        log.info("planner_item_created", item_id=item.id, origin=item.origin.value)
        return await self.get_state()

    async def archive(self, item_id: int, reason: str) -> PlannerState:
        """归档（completed / deleted）"""
        await self._lifecycle.archive(item_id, reason)
        return await self.get_state()

    async def restore(self, item_id: int) -> PlannerState:
        """从归档恢复"""
        await self._lifecycle.restore(item_id)
        return await self.get_state()

    async def purge(self, item_id: int) -> PlannerState:
        """永久删除"""
        await self._lifecycle.purge(item_id)
        return await self.get_state()

    async def get_item_detail(
        self, item_id: int
    ) -> tuple[PlannerItem, list[PlannerEvent]] | None:
        """查询条目详情与其审计事件；条目不存在返回 None"""
        item = await self._stores.item_store.get_item(item_id)
        if item is None:
            return None
        events = await self._stores.event_log.list_for_item(item_id)
        return item, events
