"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、本地时区等可配置项。
"""

import os
from datetime import tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("PLANNER_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "PLANNER_DB_PATH",
        str(_get_base_dir() / "sqlite" / "planner.sqlite3"),
    )


def get_local_timezone() -> tzinfo | None:
    """获取推导 scheduled_time 使用的本地时区

    PLANNER_TIMEZONE 为 IANA 时区名（如 "America/Los_Angeles"）；
    未设置或无法识别时返回 None，表示使用系统本地时区。
    """
    name = os.environ.get("PLANNER_TIMEZONE")
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        log.warning("invalid_timezone_config", env_var="PLANNER_TIMEZONE", value=name)
        return None
