"""core 测试配置 -- StoreGroup 与组件 fixture"""

from datetime import UTC
from pathlib import Path

import pytest_asyncio
from taskplanner.core.lifecycle import LifecycleManager
from taskplanner.core.reconciler import Reconciler
from taskplanner.core.store import create_store_group


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path):
    """创建测试用 StoreGroup"""
    sg = await create_store_group(str(tmp_db_path))
    yield sg
    await sg.conn.close()


@pytest_asyncio.fixture
async def item_store(store_group):
    return store_group.item_store


@pytest_asyncio.fixture
async def event_log(store_group):
    return store_group.event_log


@pytest_asyncio.fixture
async def reconciler(item_store) -> Reconciler:
    """UTC 时区下的 Reconciler，scheduled_time 推导结果与机器时区无关"""
    return Reconciler(item_store, tz=UTC)


@pytest_asyncio.fixture
async def lifecycle(item_store, event_log) -> LifecycleManager:
    return LifecycleManager(item_store, event_log)
