"""CanvasFeedClient -- 外部作业源 HTTP 客户端

GET {base_url}/users/self/todo?per_page=N，沿 Link rel="next" 取完所有页，
过滤掉没有 assignment 或 locked_for_user 的条目，再映射为 ExternalCandidate。
传输错误、非 2xx、非 JSON、结构非法一律抛出 UpstreamFetchError。
"""

import time
from typing import Any

import httpx
import structlog
from pydantic import ValidationError
from taskplanner.core.models import ExternalCandidate
from taskplanner.core.timeutil import parse_instant

from .config import FeedConfig
from .exceptions import UpstreamFetchError
from .models import CanvasTodo

log = structlog.get_logger()

# 错误信息中保留的响应体长度
_ERROR_BODY_PREVIEW = 200


class CanvasFeedClient:
    """Canvas todo 接口客户端"""

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout_s: int = 30,
        per_page: int = 100,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: API 基础 URL
            token: Bearer 访问令牌
            timeout_s: 单次请求超时（秒）
            per_page: 每页条数
            transport: 自定义 transport（测试时注入 MockTransport）
        """
        self._base_url = base_url.rstrip("/")
        self._per_page = per_page
        self._http = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
            timeout=timeout_s,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: FeedConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "CanvasFeedClient":
        return cls(
            base_url=config.base_url,
            token=config.token.get_secret_value(),
            timeout_s=config.timeout_s,
            per_page=config.per_page,
            transport=transport,
        )

    @property
    def todo_url(self) -> str:
        return f"{self._base_url}/users/self/todo?per_page={self._per_page}"

    async def aclose(self) -> None:
        await self._http.aclose()

    async def fetch_todos(self) -> list[CanvasTodo]:
        """拉取所有分页的 todo 条目

        Raises:
            UpstreamFetchError: 任意一页失败
        """
        start_time = time.monotonic()
        todos: list[CanvasTodo] = []
        next_url: str | None = self.todo_url
        seen: set[str] = set()
        pages = 0

        while next_url and next_url not in seen:
            seen.add(next_url)
            response = await self._get(next_url)
            todos.extend(self._parse_page(next_url, response))
            pages += 1

            link = response.links.get("next", {}).get("url")
            next_url = str(response.url.join(link)) if link else None

        await log.ainfo(
            "feed_fetch_completed",
            pages=pages,
            todo_count=len(todos),
            duration_ms=int((time.monotonic() - start_time) * 1000),
        )
        return todos

    async def fetch_candidates(self) -> list[ExternalCandidate]:
        """拉取并转换为 Reconciler 候选条目（已过滤不可操作的条目）"""
        candidates = []
        for todo in self._actionable(await self.fetch_todos()):
            assignment = todo.assignment
            candidates.append(
                ExternalCandidate(
                    external_id=assignment.id,
                    title=assignment.name,
                    due_at=assignment.due_at or None,
                    created_at=parse_instant(assignment.created_at),
                )
            )
        return candidates

    async def fetch_todo_list(self) -> list[dict[str, Any]]:
        """拉取原始 todo 条目供预览，按截止时间排序（无截止时间的在后）

        只去掉锁定的 assignment；非 assignment 条目（如待批改）保留，排在末尾。
        """
        todos = [
            todo
            for todo in await self.fetch_todos()
            if todo.assignment is None or not todo.assignment.locked_for_user
        ]

        def due_key(todo: CanvasTodo) -> tuple[int, float]:
            due = parse_instant(todo.assignment.due_at) if todo.assignment else None
            if due is None:
                return (1, 0.0)
            return (0, due.timestamp())

        return [todo.model_dump(mode="json") for todo in sorted(todos, key=due_key)]

    async def _get(self, url: str) -> httpx.Response:
        try:
            response = await self._http.get(url)
        except httpx.HTTPError as e:
            log.warning("feed_request_failed", url=url, error_type=type(e).__name__)
            raise UpstreamFetchError(url, f"{type(e).__name__}: {e}", e) from e

        if not response.is_success:
            body = response.text[:_ERROR_BODY_PREVIEW]
            log.warning("feed_bad_status", url=url, status_code=response.status_code)
            raise UpstreamFetchError(url, f"status {response.status_code}: {body}")
        return response

    @staticmethod
    def _parse_page(url: str, response: httpx.Response) -> list[CanvasTodo]:
        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamFetchError(url, "response is not valid JSON", e) from e

        if not isinstance(data, list):
            raise UpstreamFetchError(url, f"expected a JSON array, got {type(data).__name__}")

        try:
            return [CanvasTodo.model_validate(entry) for entry in data]
        except ValidationError as e:
            raise UpstreamFetchError(url, f"malformed todo entry: {e.error_count()} errors", e) from e

    @staticmethod
    def _actionable(todos: list[CanvasTodo]) -> list[CanvasTodo]:
        return [
            todo
            for todo in todos
            if todo.assignment is not None and not todo.assignment.locked_for_user
        ]
