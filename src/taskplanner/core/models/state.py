"""PlannerState -- 对外可见的快照结构

{ active: [...], archive: { completed: [...], deleted: [...] } }
"""

from pydantic import BaseModel, Field

from .item import PlannerItem


class ArchiveBuckets(BaseModel):
    """归档分桶，按 archived_at 倒序"""

    completed: list[PlannerItem] = Field(default_factory=list)
    deleted: list[PlannerItem] = Field(default_factory=list)


class PlannerState(BaseModel):
    """规划器状态快照"""

    active: list[PlannerItem] = Field(default_factory=list)
    archive: ArchiveBuckets = Field(default_factory=ArchiveBuckets)
