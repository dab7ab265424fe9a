"""CLI 入口模块 -- python -m taskplanner.core <command>

支持的命令：
  init-db  初始化数据库表结构
  sync     拉取外部作业并执行一次同步
  show     输出当前状态快照（JSON）
"""

import asyncio
import sys

from .config import get_db_path, get_local_timezone

_USAGE = [
    "用法: python -m taskplanner.core <command>",
    "命令:",
    "  init-db  初始化数据库表结构",
    "  sync     拉取外部作业并执行一次同步",
    "  show     输出当前状态快照（JSON）",
]


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("\n".join(_USAGE))
        sys.exit(1)

    command = sys.argv[1]

    if command == "init-db":
        asyncio.run(init_database())
    elif command == "sync":
        sys.exit(asyncio.run(run_sync()))
    elif command == "show":
        asyncio.run(show_state())
    else:
        print(f"未知命令: {command}")
        print("可用命令: init-db, sync, show")
        sys.exit(1)


async def init_database() -> None:
    """创建数据库并初始化表结构"""
    from .store import create_store_group

    db_path = get_db_path()
    store_group = await create_store_group(db_path)
    await store_group.conn.close()
    print(f"数据库已初始化: {db_path}")


async def run_sync() -> int:
    """执行一次同步，返回进程退出码"""
    from taskplanner.feed import CanvasFeedClient, UpstreamFetchError, load_feed_config

    from .reconciler import Reconciler
    from .store import create_store_group

    feed_config = load_feed_config()
    if not feed_config.enabled:
        print("未配置 CANVAS_TOKEN，跳过同步")
        return 1

    store_group = await create_store_group(get_db_path())
    client = CanvasFeedClient.from_config(feed_config)
    try:
        candidates = await client.fetch_candidates()
        reconciler = Reconciler(store_group.item_store, tz=get_local_timezone())
        result = await reconciler.reconcile(candidates)
    except UpstreamFetchError as e:
        print(f"同步失败: {e}")
        return 1
    finally:
        await client.aclose()
        await store_group.conn.close()

    print(
        f"同步完成：新增 {result.inserted}，更新 {result.updated}，"
        f"跳过已归档 {result.skipped_archived}"
    )
    return 0


async def show_state() -> None:
    """打印当前状态快照"""
    from .projection import build_state
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        state = await build_state(store_group.item_store)
        print(state.model_dump_json(indent=2))
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
