"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + 作业源客户端初始化/关闭 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from taskplanner.core.config import get_db_path, get_local_timezone
from taskplanner.core.store import create_store_group
from taskplanner.feed import CanvasFeedClient, load_feed_config

from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import feed, health, planner

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 和作业源客户端，关闭时清理连接"""
    # 启动：初始化 Store
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group
    app.state.local_timezone = get_local_timezone()

    # 作业源：未配置 token 时同步请求返回 skipped
    feed_config = load_feed_config()
    if feed_config.enabled:
        app.state.feed_client = CanvasFeedClient.from_config(feed_config)
        log.info(
            "feed_client_initialized",
            base_url=feed_config.base_url,
            timeout_s=feed_config.timeout_s,
        )
    else:
        app.state.feed_client = None
        log.info("feed_client_disabled", reason="CANVAS_TOKEN not configured")

    yield

    # 关闭：清理作业源客户端与数据库连接
    if getattr(app.state, "feed_client", None) is not None:
        await app.state.feed_client.aclose()
    if hasattr(app.state, "store_group") and app.state.store_group:
        await app.state.store_group.conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="TaskPlanner Gateway",
        version="0.1.0",
        description="Planner item lifecycle & external assignment sync API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging，Logging 在最外层）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()

    # 注册路由
    app.include_router(planner.router, tags=["planner"])
    app.include_router(feed.router, tags=["feed"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口：uvicorn taskplanner.gateway.main:app）
app = create_app()
