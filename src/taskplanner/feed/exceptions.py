"""Feed 异常体系"""


class FeedError(Exception):
    """Feed 包基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class UpstreamFetchError(FeedError):
    """外部作业源不可达或返回内容非法

    只中止本次同步，不影响已有本地状态，也不影响其他操作。
    """

    def __init__(self, url: str, reason: str, original_error: Exception | None = None) -> None:
        """
        Args:
            url: 请求地址
            reason: 失败原因
            original_error: 原始异常
        """
        super().__init__(f"Upstream fetch failed: {url} -- {reason}", recoverable=True)
        self.url = url
        self.reason = reason
        self.original_error = original_error
