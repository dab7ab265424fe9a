"""structlog 配置模块

dev 模式：pretty print 可读输出
json 模式：结构化 JSON 输出

作业源访问令牌不得出现在日志中：redact_secrets 处理器对敏感字段打码。
"""

import logging
import os
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog

# 需要打码的日志字段（小写比较）
SECRET_KEYS = frozenset({"token", "canvas_token", "authorization", "access_token"})

# 第三方库日志降级：httpx 每次请求都打 INFO，且包含完整 URL
_NOISY_LOGGERS = ("httpx", "httpcore")


def redact_secrets(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """将敏感字段替换为 ***"""
    for key in event_dict:
        if key.lower() in SECRET_KEYS and event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog 配置

    Args:
        log_format: "json" 或 "dev"，默认读取 PLANNER_LOG_FORMAT（未设置为 dev）
        log_level: 日志级别，默认读取 PLANNER_LOG_LEVEL（未设置为 INFO）
    """
    log_format = log_format or os.environ.get("PLANNER_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("PLANNER_LOG_LEVEL", "INFO")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(
            ensure_ascii=False
        )
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # 标准库 logging（uvicorn 等）走同一渲染器，输出到 stderr
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
