"""PlannerEvent Domain Model

事件表 append-only，不允许更新；条目被 purge 时随之级联删除。
id 使用 ULID 格式，时间有序。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import EventType


class PlannerEvent(BaseModel):
    """PlannerEvent 数据模型 -- 一次生命周期流转一条"""

    id: str = Field(description="唯一标识，ULID 格式，时间有序")
    planner_item_id: int = Field(description="关联的 PlannerItem ID")
    event_type: EventType = Field(description="事件类型")
    occurred_at: datetime = Field(description="发生时间")
    metadata: dict[str, Any] = Field(default_factory=dict, description="诊断信息")
