"""健康检查路由

/health 只说明进程存活；/ready 检查本地存储是否可用。
作业源不做网络探测，未配置时只是同步被跳过，不影响就绪状态。
"""

import aiosqlite
import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse
from taskplanner.core.store import verify_foreign_keys

log = structlog.get_logger()

router = APIRouter()

_REQUIRED_TABLES = ("planner_items", "planner_events")


async def _check_storage(conn: aiosqlite.Connection) -> dict[str, str]:
    """SQLite 连通性、表结构、外键（purge 级联依赖外键）"""
    try:
        cursor = await conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name IN (?, ?)",
            _REQUIRED_TABLES,
        )
        tables = {row[0] for row in await cursor.fetchall()}
        fk_enabled = await verify_foreign_keys(conn)
    except Exception as e:
        log.warning("readiness_sqlite_error", error=str(e), error_type=type(e).__name__)
        return {"sqlite": f"error: {e}"}

    missing = [t for t in _REQUIRED_TABLES if t not in tables]
    return {
        "sqlite": "ok",
        "schema": "ok" if not missing else f"missing: {', '.join(missing)}",
        "foreign_keys": "ok" if fk_enabled else "disabled",
    }


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """就绪检查：存储各项均为 ok 时返回 200，否则 503"""
    checks = await _check_storage(request.app.state.store_group.conn)
    ok = all(value == "ok" for value in checks.values())

    feed_client = getattr(request.app.state, "feed_client", None)
    checks["feed"] = "configured" if feed_client is not None else "disabled"

    return JSONResponse(
        status_code=200 if ok else 503,
        content={"status": "ready" if ok else "not_ready", "checks": checks},
    )
