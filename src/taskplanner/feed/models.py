"""Canvas todo 接口返回结构（只声明用到的字段）"""

from typing import Annotated

from pydantic import BaseModel, ConfigDict, StringConstraints


class CanvasAssignment(BaseModel):
    """todo 条目中的 assignment"""

    model_config = ConfigDict(extra="allow")

    id: int
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
    due_at: str | None = None
    created_at: str | None = None
    locked_for_user: bool = False


class CanvasTodo(BaseModel):
    """/users/self/todo 返回的一项"""

    model_config = ConfigDict(extra="allow")

    assignment: CanvasAssignment | None = None
