"""TaskPlanner Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

import asyncio
from pathlib import Path

import aiosqlite

from .event_log import SqliteEventLog
from .item_store import SqliteItemStore
from .protocols import EventLog, ItemStore
from .sqlite_init import init_db, verify_foreign_keys


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接与写锁"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        # 单连接上的写操作串行化，避免不同请求的 commit/rollback 互相穿插
        self.write_lock = asyncio.Lock()
        # 同一时刻只允许一个同步过程
        self.sync_lock = asyncio.Lock()
        self.item_store = SqliteItemStore(conn, self.write_lock)
        self.event_log = SqliteEventLog(conn, self.write_lock)


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteItemStore",
    "SqliteEventLog",
    "ItemStore",
    "EventLog",
    "init_db",
    "verify_foreign_keys",
]
