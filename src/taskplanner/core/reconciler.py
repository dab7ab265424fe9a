"""Reconciler -- 将外部候选条目合并进 ItemStore

每个候选条目：
1. 由 due_at 推导本地 HH:MM 作为 scheduled_time（解析失败则为空）
2. 按 (external, external_id) 查找已有行
3. 不存在 -> 新建，created_at 取外部创建时间（缺省为当前时间）
4. 已归档 -> 跳过，不修改、不恢复、不记事件
5. 活跃 -> 仅覆盖 title / due_at / scheduled_time

Reconciler 不做删除；上游消失的条目保留在本地，直到用户归档。
每个候选条目单独提交，中途失败会留下已合并的前缀，整体重跑是幂等的。
"""

from collections.abc import Callable, Iterable
from datetime import datetime, tzinfo

import structlog
from pydantic import BaseModel

from .exceptions import ConflictError
from .models.candidate import ExternalCandidate
from .models.enums import Origin
from .store.protocols import ItemStore
from .timeutil import local_hhmm, parse_instant, utc_now

log = structlog.get_logger()


class ReconcileResult(BaseModel):
    """一次同步过程的统计"""

    inserted: int = 0
    updated: int = 0
    skipped_archived: int = 0


def derive_scheduled_time(
    due_at: datetime | None,
    tz: tzinfo | None = None,
) -> str | None:
    """由截止时间推导本地 HH:MM；与时区相关，tz 为 None 时使用系统本地时区"""
    if due_at is None:
        return None
    return local_hhmm(due_at, tz)


class Reconciler:
    """外部条目合并器"""

    def __init__(
        self,
        item_store: ItemStore,
        tz: tzinfo | None = None,
        now: Callable[[], datetime] = utc_now,
    ) -> None:
        """
        Args:
            item_store: ItemStore 实例
            tz: 推导 scheduled_time 的本地时区，None 为系统本地时区
            now: 当前时间来源（外部条目缺少 created_at 时使用）
        """
        self._items = item_store
        self._tz = tz
        self._now = now

    async def reconcile(self, candidates: Iterable[ExternalCandidate]) -> ReconcileResult:
        """合并一批候选条目

        Raises:
            ConflictError: 先查后插之间出现重复插入（逻辑缺陷，记录后向上抛出）
        """
        result = ReconcileResult()
        for candidate in candidates:
            await self._merge_one(candidate, result)

        await log.ainfo(
            "reconcile_completed",
            inserted=result.inserted,
            updated=result.updated,
            skipped_archived=result.skipped_archived,
        )
        return result

    async def _merge_one(self, candidate: ExternalCandidate, result: ReconcileResult) -> None:
        due_at = parse_instant(candidate.due_at, self._tz)
        if candidate.due_at and due_at is None:
            log.warning(
                "reconcile_unparseable_due_at",
                external_id=candidate.external_id,
                due_at=candidate.due_at,
            )
        scheduled_time = derive_scheduled_time(due_at, self._tz)

        existing = await self._items.find_by_origin(Origin.EXTERNAL, candidate.external_id)

        if existing is None:
            try:
                await self._items.insert_external(
                    external_id=candidate.external_id,
                    title=candidate.title,
                    due_at=due_at,
                    scheduled_time=scheduled_time,
                    created_at=candidate.created_at or self._now(),
                )
            except ConflictError:
                log.error("reconcile_conflict", external_id=candidate.external_id)
                raise
            result.inserted += 1
            return

        if not existing.is_active:
            # 已归档条目对 Reconciler 不可变
            result.skipped_archived += 1
            return

        updated = await self._items.update_external_fields(
            existing.id,
            title=candidate.title,
            due_at=due_at,
            scheduled_time=scheduled_time,
        )
        if updated:
            result.updated += 1
        else:
            # 查询后被并发归档，保持归档状态
            log.info(
                "reconcile_skip_archived_during_pass",
                item_id=existing.id,
                external_id=candidate.external_id,
            )
            result.skipped_archived += 1
