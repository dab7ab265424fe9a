"""PlannerItem Domain Model

一行一个任务，无论手动创建还是外部同步而来。
archived_at / archived_reason 同时为空表示活跃，同时非空表示已归档；
completed 仅在 archived_reason = completed 时为 True。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import ArchiveReason, LifecycleState, Origin, state_for

# "HH:MM" 24 小时制
SCHEDULED_TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class PlannerItem(BaseModel):
    """PlannerItem 数据模型

    origin、created_at 创建后不可变；
    归档状态只能由 LifecycleManager 修改。
    """

    id: int = Field(description="进程分配的自增 ID，永不复用")
    external_id: int | None = Field(default=None, description="外部来源 ID，仅 external 条目有值")
    origin: Origin = Field(description="来源")
    title: str = Field(min_length=1, description="显示文本")
    notes: str | None = Field(default=None, description="备注")
    due_at: datetime | None = Field(default=None, description="截止时间")
    scheduled_time: str | None = Field(
        default=None,
        pattern=SCHEDULED_TIME_PATTERN,
        description="计划时刻 HH:MM，与 due_at 的日期无关",
    )
    created_at: datetime = Field(description="首次本地落库时间，只写一次")
    completed: bool = Field(default=False, description="是否以 completed 原因归档")
    archived_at: datetime | None = Field(default=None, description="归档时间")
    archived_reason: ArchiveReason | None = Field(default=None, description="归档原因")

    @property
    def state(self) -> LifecycleState:
        return state_for(self.archived_reason)

    @property
    def is_active(self) -> bool:
        return self.archived_reason is None
