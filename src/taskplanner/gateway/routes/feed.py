"""作业源预览路由

GET /api/feed/todos: 直接返回作业源中可操作的原始 todo 条目（按截止时间排序），不写入本地。
- 503: 未配置作业源
- 502: 作业源拉取失败
"""

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse
from taskplanner.feed import CanvasFeedClient, UpstreamFetchError

from ..deps import get_feed_client

router = APIRouter()


@router.get("/api/feed/todos")
async def list_feed_todos(
    feed_client: CanvasFeedClient | None = Depends(get_feed_client),
):
    """预览作业源中的待办"""
    if feed_client is None:
        return JSONResponse(
            status_code=503,
            content={
                "error": {
                    "code": "FEED_NOT_CONFIGURED",
                    "message": "CANVAS_TOKEN not configured",
                }
            },
        )

    try:
        todos = await feed_client.fetch_todo_list()
    except UpstreamFetchError as e:
        return JSONResponse(
            status_code=502,
            content={
                "error": {
                    "code": "UPSTREAM_FETCH_FAILED",
                    "message": str(e),
                }
            },
        )

    return {"todos": todos}
