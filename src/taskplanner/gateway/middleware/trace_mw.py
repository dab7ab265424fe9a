"""TraceMiddleware

为条目操作绑定 item_id，贯穿该请求内的生命周期日志。
item_id 从 /api/planner/{item_id}[/...] 路径中提取。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response


def extract_item_id(path: str) -> int | None:
    """从路径中提取条目 id；非条目路由返回 None"""
    parts = [part for part in path.split("/") if part]
    # ["api", "planner", "{item_id}", ...]
    if len(parts) < 3 or parts[0] != "api" or parts[1] != "planner":
        return None
    # 只接受 ASCII 数字，isdigit 对 "²" 等字符也为 True
    segment = parts[2]
    if segment.isascii() and segment.isdigit():
        return int(segment)
    return None


class TraceMiddleware(BaseHTTPMiddleware):
    """条目级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        item_id = extract_item_id(request.url.path)
        if item_id is not None:
            structlog.contextvars.bind_contextvars(item_id=item_id)

        return await call_next(request)
