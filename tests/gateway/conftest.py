"""gateway 测试配置 -- FastAPI app + httpx AsyncClient + 模拟作业源"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC
from pathlib import Path

import httpx
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskplanner.core.store import create_store_group
from taskplanner.feed import CanvasFeedClient

FEED_BASE_URL = "https://canvas.test/api/v1"


@pytest_asyncio.fixture
async def test_app(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("PLANNER_DB_PATH", str(tmp_path / "sqlite" / "test.db"))
    monkeypatch.delenv("CANVAS_TOKEN", raising=False)

    from taskplanner.gateway.main import create_app

    app = create_app()

    # 手动初始化（绕过 lifespan）
    store_group = await create_store_group(str(tmp_path / "sqlite" / "test.db"))
    app.state.store_group = store_group
    app.state.feed_client = None
    app.state.local_timezone = UTC

    yield app

    if app.state.feed_client is not None:
        await app.state.feed_client.aclose()
    await store_group.conn.close()


@pytest_asyncio.fixture
async def install_feed(test_app) -> Callable[[Callable[[httpx.Request], httpx.Response]], None]:
    """为 app 安装使用 MockTransport 的作业源客户端"""

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> None:
        test_app.state.feed_client = CanvasFeedClient(
            base_url=FEED_BASE_URL,
            token="test-token",
            transport=httpx.MockTransport(handler),
        )

    return install


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac
