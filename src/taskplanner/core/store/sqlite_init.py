"""SQLite 数据库初始化

PRAGMA 配置 + 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# planner_items 表 DDL
_ITEMS_DDL = """
CREATE TABLE IF NOT EXISTS planner_items (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    external_id     INTEGER,
    origin          TEXT NOT NULL CHECK (origin IN ('external', 'manual')),
    title           TEXT NOT NULL,
    notes           TEXT,
    due_at          TEXT,
    scheduled_time  TEXT,
    created_at      TEXT NOT NULL,
    completed       INTEGER NOT NULL DEFAULT 0,
    archived_at     TEXT,
    archived_reason TEXT CHECK (archived_reason IN ('completed', 'deleted'))
);
"""

_ITEMS_INDEXES = [
    # 外部条目去重键（external_id 为 NULL 的手动条目不受约束）
    (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_planner_items_origin_external "
        "ON planner_items(origin, external_id);"
    ),
    "CREATE INDEX IF NOT EXISTS idx_planner_items_archived_reason ON planner_items(archived_reason);",
]

# planner_events 表 DDL
_EVENTS_DDL = """
CREATE TABLE IF NOT EXISTS planner_events (
    id              TEXT PRIMARY KEY,
    planner_item_id INTEGER NOT NULL,
    event_type      TEXT NOT NULL CHECK (event_type IN ('completed', 'deleted', 'restored')),
    occurred_at     TEXT NOT NULL,
    metadata        TEXT NOT NULL DEFAULT '{}',

    FOREIGN KEY (planner_item_id) REFERENCES planner_items(id) ON DELETE CASCADE
);
"""

_EVENTS_INDEXES = [
    (
        "CREATE INDEX IF NOT EXISTS idx_planner_events_item "
        "ON planner_events(planner_item_id, occurred_at DESC);"
    ),
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA（foreign_keys 为连接级设置，级联删除依赖它）
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_ITEMS_DDL)
    await conn.execute(_EVENTS_DDL)

    # 创建索引
    for idx_sql in _ITEMS_INDEXES + _EVENTS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_foreign_keys(conn: aiosqlite.Connection) -> bool:
    """验证外键约束是否生效

    Returns:
        True 如果 foreign_keys 已启用
    """
    cursor = await conn.execute("PRAGMA foreign_keys;")
    row = await cursor.fetchone()
    return row is not None and row[0] == 1
