"""Core 异常体系

ValidationError / NotFoundError 直接返回给调用方且不产生任何写入；
ConflictError 表示 Reconciler 查重逻辑缺陷，必须记录日志并向上抛出。
"""


class PlannerError(Exception):
    """Core 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 调用方修正输入后是否可重试
        """
        super().__init__(message)
        self.recoverable = recoverable


class ValidationError(PlannerError):
    """输入非法（空标题、非法归档原因等）"""


class NotFoundError(PlannerError):
    """目标条目不存在，或不处于操作要求的状态"""

    def __init__(self, item_id: int, message: str | None = None) -> None:
        super().__init__(message or f"Planner item {item_id} not found")
        self.item_id = item_id


class ConflictError(PlannerError):
    """(origin, external_id) 唯一约束冲突

    正常的先查后插流程下不应出现。
    """

    def __init__(self, external_id: int) -> None:
        super().__init__(
            f"External item {external_id} already exists",
            recoverable=False,
        )
        self.external_id = external_id
