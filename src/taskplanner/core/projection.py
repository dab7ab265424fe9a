"""State Projection -- 组装对外可见的状态快照

活跃列表：有截止时间的在前按 due_at 升序，无截止时间的在后；同值按 created_at 升序。
归档分桶（completed / deleted）：按 archived_at 倒序，最近归档的在前。
排序由 ItemStore 查询完成，这里只负责组装。
"""

import structlog

from .models.enums import ArchiveReason
from .models.state import ArchiveBuckets, PlannerState
from .store.protocols import ItemStore

log = structlog.get_logger()


async def build_state(item_store: ItemStore) -> PlannerState:
    """从当前 ItemStore 内容构建 PlannerState

    Args:
        item_store: ItemStore 实例

    Returns:
        PlannerState 快照
    """
    active = await item_store.list_active()
    completed = await item_store.list_archived(ArchiveReason.COMPLETED)
    deleted = await item_store.list_archived(ArchiveReason.DELETED)

    log.debug(
        "planner_state_built",
        active=len(active),
        completed=len(completed),
        deleted=len(deleted),
    )
    return PlannerState(
        active=active,
        archive=ArchiveBuckets(completed=completed, deleted=deleted),
    )
