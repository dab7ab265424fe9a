"""集成测试共享 fixture -- 可变的模拟作业源"""

from collections.abc import AsyncGenerator
from datetime import UTC
from pathlib import Path

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskplanner.core.store import create_store_group
from taskplanner.feed import CanvasFeedClient


class FakeCanvas:
    """内存中的 todo 接口，测试可随时修改 todos 或让其失败"""

    def __init__(self) -> None:
        self.todos: list[dict] = []
        self.fail_with: int | None = None
        self.requests = 0

    def put(self, assignment_id: int, name: str, due_at: str | None = None, **extra) -> None:
        self.remove(assignment_id)
        self.todos.append(
            {"assignment": {"id": assignment_id, "name": name, "due_at": due_at, **extra}}
        )

    def remove(self, assignment_id: int) -> None:
        self.todos = [t for t in self.todos if t["assignment"]["id"] != assignment_id]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests += 1
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, text="upstream unavailable")
        return httpx.Response(200, json=self.todos)


@pytest_asyncio.fixture
async def upstream() -> FakeCanvas:
    return FakeCanvas()


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, monkeypatch, upstream: FakeCanvas):
    """集成测试用 FastAPI app"""
    monkeypatch.setenv("PLANNER_DB_PATH", str(tmp_path / "test.db"))

    from taskplanner.gateway.main import create_app

    app = create_app()

    store_group = await create_store_group(str(tmp_path / "test.db"))
    app.state.store_group = store_group
    app.state.local_timezone = UTC
    app.state.feed_client = CanvasFeedClient(
        base_url="https://canvas.test/api/v1",
        token="integration-token",
        transport=httpx.MockTransport(upstream.handler),
    )

    yield app

    await app.state.feed_client.aclose()
    await store_group.conn.close()


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
