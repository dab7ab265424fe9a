"""枚举定义 -- 条目来源、归档原因、审计事件类型与生命周期状态机

包含 Origin、ArchiveReason、EventType、LifecycleState 枚举，
以及 VALID_TRANSITIONS 合法流转映射和 event_type_for() 归档原因到事件类型的映射。
"""

from enum import StrEnum
from typing import assert_never


class Origin(StrEnum):
    """条目来源"""

    EXTERNAL = "external"
    MANUAL = "manual"


class ArchiveReason(StrEnum):
    """归档原因（即归档分桶）"""

    COMPLETED = "completed"
    DELETED = "deleted"


class EventType(StrEnum):
    """审计事件类型"""

    COMPLETED = "completed"
    DELETED = "deleted"
    RESTORED = "restored"


class LifecycleState(StrEnum):
    """条目生命周期状态（由 archived_reason 推导，不单独落库）"""

    ACTIVE = "active"
    COMPLETED = "completed"
    DELETED = "deleted"


# 合法状态流转；purge 不是流转，任何状态都允许
VALID_TRANSITIONS: dict[LifecycleState, set[LifecycleState]] = {
    LifecycleState.ACTIVE: {LifecycleState.COMPLETED, LifecycleState.DELETED},
    LifecycleState.COMPLETED: {LifecycleState.ACTIVE},
    LifecycleState.DELETED: {LifecycleState.ACTIVE},
}


def validate_transition(from_state: LifecycleState, to_state: LifecycleState) -> bool:
    """验证状态流转是否合法

    Args:
        from_state: 当前状态
        to_state: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_state, set())
    return to_state in allowed


def state_for(reason: ArchiveReason | None) -> LifecycleState:
    """根据 archived_reason 推导生命周期状态"""
    match reason:
        case None:
            return LifecycleState.ACTIVE
        case ArchiveReason.COMPLETED:
            return LifecycleState.COMPLETED
        case ArchiveReason.DELETED:
            return LifecycleState.DELETED
        case _:
            assert_never(reason)


def event_type_for(reason: ArchiveReason) -> EventType:
    """归档原因对应的审计事件类型"""
    match reason:
        case ArchiveReason.COMPLETED:
            return EventType.COMPLETED
        case ArchiveReason.DELETED:
            return EventType.DELETED
        case _:
            assert_never(reason)
