"""FeedConfig -- 外部作业源配置加载

从环境变量加载配置；未配置 token 时同步功能整体关闭。
"""

import os

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

DEFAULT_BASE_URL = "https://canvas.instructure.com/api/v1"


class FeedConfig(BaseModel):
    """外部作业源配置 -- 从环境变量加载

    环境变量:
        CANVAS_API_URL: API 基础地址（默认 https://canvas.instructure.com/api/v1）
        CANVAS_TOKEN: 访问令牌，为空时关闭同步
        PLANNER_FEED_TIMEOUT_S: 请求超时（秒，默认 30）
        PLANNER_FEED_PER_PAGE: 每页条数（默认 100）
    """

    base_url: str = Field(default=DEFAULT_BASE_URL, description="API 基础 URL")
    token: SecretStr = Field(default=SecretStr(""), description="Bearer 访问令牌")
    timeout_s: int = Field(default=30, ge=1, description="请求超时（秒）")
    per_page: int = Field(default=100, ge=1, le=100, description="每页条数")

    @property
    def enabled(self) -> bool:
        return bool(self.token.get_secret_value())


def _int_env(name: str, fallback: int) -> int | None:
    val = os.environ.get(name)
    if not val:
        return None
    try:
        return int(val)
    except ValueError:
        log.warning(
            "invalid_feed_config",
            env_var=name,
            value=val,
            fallback=fallback,
        )
        # 使用默认值，不阻塞启动
        return None


def load_feed_config() -> FeedConfig:
    """从环境变量加载 FeedConfig

    Returns:
        FeedConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("CANVAS_API_URL"):
        kwargs["base_url"] = val

    if val := os.environ.get("CANVAS_TOKEN"):
        kwargs["token"] = SecretStr(val)

    if (timeout_s := _int_env("PLANNER_FEED_TIMEOUT_S", 30)) is not None:
        kwargs["timeout_s"] = timeout_s

    if (per_page := _int_env("PLANNER_FEED_PER_PAGE", 100)) is not None:
        kwargs["per_page"] = per_page

    return FeedConfig(**kwargs)
