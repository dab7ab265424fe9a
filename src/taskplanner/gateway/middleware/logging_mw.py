"""LoggingMiddleware

每个请求绑定 request_id（沿用合法的入站 X-Request-ID，否则生成 ULID），
记录请求耗时；未处理异常记录 request_failed 后继续抛出。
"""

import re
import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"

# 入站 request_id 只接受短的安全字符，避免日志注入
_INBOUND_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def resolve_request_id(inbound: str | None) -> str:
    """合法的入站 request_id 原样使用，否则生成新的 ULID"""
    if inbound and _INBOUND_ID.fullmatch(inbound):
        return inbound
    return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        log = structlog.get_logger()
        start_time = time.monotonic()

        try:
            response = await call_next(request)
        except Exception as e:
            await log.aerror(
                "request_failed",
                error_type=type(e).__name__,
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )
            raise

        await log.ainfo(
            "request_completed",
            status_code=response.status_code,
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
