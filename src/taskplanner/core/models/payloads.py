"""Event metadata 子类型

审计事件 metadata 的结构化定义；落库时以 JSON 保存，
新增字段须带默认值，保证旧事件可正常反序列化。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import ArchiveReason, Origin


class ArchiveEventMetadata(BaseModel):
    """completed / deleted 事件 metadata"""

    archived_at: datetime
    origin: Origin
    external_id: int | None = Field(default=None)


class RestoreEventMetadata(BaseModel):
    """restored 事件 metadata"""

    previous_reason: ArchiveReason
    previous_archived_at: datetime | None = Field(default=None)
    origin: Origin
