"""ExternalCandidate -- 外部作业源的一条候选记录

调用方已过滤掉用户无法操作的记录（如 locked_for_user），
Reconciler 只消费扁平化后的候选序列。
"""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints


class ExternalCandidate(BaseModel):
    """外部候选条目"""

    external_id: int = Field(description="外部来源 ID")
    title: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(
        description="作业标题，去除首尾空白后不能为空"
    )
    due_at: str | None = Field(
        default=None,
        description="截止时间原始字符串；无法解析时按无截止时间处理",
    )
    created_at: datetime | None = Field(default=None, description="外部创建时间")
