"""TaskPlanner Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .candidate import ExternalCandidate
from .enums import (
    VALID_TRANSITIONS,
    ArchiveReason,
    EventType,
    LifecycleState,
    Origin,
    event_type_for,
    state_for,
    validate_transition,
)
from .event import PlannerEvent
from .item import SCHEDULED_TIME_PATTERN, PlannerItem
from .payloads import ArchiveEventMetadata, RestoreEventMetadata
from .state import ArchiveBuckets, PlannerState

__all__ = [
    # 枚举
    "Origin",
    "ArchiveReason",
    "EventType",
    "LifecycleState",
    # 状态机
    "VALID_TRANSITIONS",
    "validate_transition",
    "state_for",
    "event_type_for",
    # Item
    "PlannerItem",
    "SCHEDULED_TIME_PATTERN",
    # Event
    "PlannerEvent",
    # Candidate
    "ExternalCandidate",
    # Payloads
    "ArchiveEventMetadata",
    "RestoreEventMetadata",
    # State
    "PlannerState",
    "ArchiveBuckets",
]
