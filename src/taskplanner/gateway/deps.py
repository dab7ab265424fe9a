"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store 实例与业务服务

Store、作业源客户端通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Depends, Request
from taskplanner.core.store import StoreGroup
from taskplanner.feed import CanvasFeedClient

from .services.planner_service import PlannerService


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_feed_client(request: Request) -> CanvasFeedClient | None:
    """从 app.state 获取作业源客户端；未配置时为 None"""
    return getattr(request.app.state, "feed_client", None)


def get_planner_service(
    request: Request,
    store_group: StoreGroup = Depends(get_store_group),
    feed_client: CanvasFeedClient | None = Depends(get_feed_client),
) -> PlannerService:
    """为每个请求构建 PlannerService"""
    tz = getattr(request.app.state, "local_timezone", None)
    return PlannerService(store_group, feed_client, tz)
