"""TaskPlanner Feed -- 外部作业源接入层

feed 包的公开接口导出。
"""

from .client import CanvasFeedClient
from .config import FeedConfig, load_feed_config
from .exceptions import FeedError, UpstreamFetchError
from .models import CanvasAssignment, CanvasTodo

__all__ = [
    "CanvasFeedClient",
    "FeedConfig",
    "load_feed_config",
    "FeedError",
    "UpstreamFetchError",
    "CanvasAssignment",
    "CanvasTodo",
]
