import argparse
import getpass
import sys
import traceback
from typing import List, Optional

from weread_sync.config import load_settings, save_secrets
from weread_sync.errors import ConfigurationError
from weread_sync.health import run_health_check
from weread_sync.logger import LogLevel, logger
from weread_sync.notion import NotionClient
from weread_sync.sync import BookSyncManager, SyncStateStore
from weread_sync.weread import WeReadClient

EXIT_OK = 0
EXIT_SYNC_FAILED = 1
EXIT_CONFIG_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="weread-sync",
        description="WeRead Sync: 将微信读书的划线和想法同步到 Notion",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog="""
示例:
  1. 保存凭证到系统 keyring:
     weread-sync login --notion-key secret_xxx --cookie "wr_skey=..."

  2. 增量同步指定书籍:
     weread-sync sync 3300064831 695233

  3. 使用配置文件中的书籍列表 (默认读取 sync_config.json):
     weread-sync sync

  4. 全量同步并重写书籍页面内容 (按章节分组):
     weread-sync sync 3300064831 --full --page-content --by-chapter

  5. 检查配置与连接:
     weread-sync check
"""
    )
    parser.add_argument("--debug", action="store_true", help="输出调试日志")

    subparsers = parser.add_subparsers(dest="command", help="命令")

    sync_parser = subparsers.add_parser("sync", help="同步书籍的划线和想法")
    sync_parser.add_argument("book_ids", nargs="*", help="微信读书书籍 ID (留空则使用配置文件中的 books)")
    sync_parser.add_argument("--full", action="store_true", help="全量同步（忽略上次的 synckey）")
    sync_parser.add_argument("--by-chapter", action="store_true", help="页面内容按章节分组")
    sync_parser.add_argument("--page-content", action="store_true", help="同时重写书籍页面中的划线/想法区域")
    sync_parser.add_argument("--config", help="配置文件路径 (默认: sync_config.json 或 WEREAD_SYNC_CONFIG)")

    login_parser = subparsers.add_parser("login", help="保存 Notion 密钥和微信读书 Cookie 到 keyring")
    login_parser.add_argument("--notion-key", help="Notion 集成密钥")
    login_parser.add_argument("--cookie", help="微信读书网页版 Cookie")

    check_parser = subparsers.add_parser("check", help="检查配置、Notion 数据库和微信读书登录状态")
    check_parser.add_argument("--config", help="配置文件路径")

    reset_parser = subparsers.add_parser("reset", help="清除书籍的同步状态（下次全量同步）")
    reset_parser.add_argument("book_id", help="微信读书书籍 ID")
    reset_parser.add_argument("--config", help="配置文件路径")

    return parser


def run_sync(args) -> int:
    settings = load_settings(args.config)
    book_ids = args.book_ids or settings.books
    if not book_ids:
        logger.warning("未指定书籍 ID，配置文件中也没有 books")
        print("用法: weread-sync sync <book_id> [<book_id> ...]")
        return EXIT_CONFIG_ERROR

    missing = settings.missing()
    if missing:
        logger.error(f"缺少必要配置: {', '.join(missing)}")
        logger.info("运行 weread-sync login 保存凭证，或在 .env 中设置这些变量", icon="💡")
        return EXIT_CONFIG_ERROR

    manager = BookSyncManager(
        reader=WeReadClient(settings.weread_cookie),
        notion=NotionClient(settings.notion_api_key),
        state_store=SyncStateStore(settings.state_path),
        books_database_id=settings.books_database_id,
        readnote_database_id=settings.readnote_database_id,
        use_incremental=settings.incremental and not args.full,
        organize_by_chapter=settings.organize_by_chapter or args.by_chapter,
        write_page_content=settings.write_page_content or args.page_content,
    )

    results = []
    try:
        with logger.progress(len(book_ids), "同步书籍") as update:
            for book_id in book_ids:
                results.append(manager.sync_book(book_id))
                update(1)
    except ConfigurationError as e:
        logger.error(f"同步中止: {e}")
        return EXIT_CONFIG_ERROR

    failed = [r for r in results if not r.success]

    logger.rule("同步结果")
    logger.sync_summary(results)
    logger.info(f"共 {len(results)} 本书，失败 {len(failed)} 本，"
                f"新增读书笔记 {sum(r.records_written for r in results)} 条", icon="📊")
    return EXIT_SYNC_FAILED if failed else EXIT_OK


def run_login(args) -> int:
    notion_key = args.notion_key
    cookie = args.cookie
    if not notion_key and not cookie:
        if not sys.stdin.isatty():
            logger.error("请通过 --notion-key 或 --cookie 提供凭证")
            return EXIT_CONFIG_ERROR
        try:
            notion_key = getpass.getpass("Notion 集成密钥 (留空跳过): ").strip()
            cookie = getpass.getpass("微信读书 Cookie (留空跳过): ").strip()
        except (KeyboardInterrupt, EOFError):
            logger.info("\n操作取消")
            return EXIT_CONFIG_ERROR

    if not notion_key and not cookie:
        logger.warning("没有提供任何凭证")
        return EXIT_CONFIG_ERROR

    if not save_secrets(notion_api_key=notion_key, weread_cookie=cookie):
        logger.error("保存凭证到 keyring 失败，可以改为在 .env 中设置 NOTION_API_KEY / WEREAD_COOKIE")
        return EXIT_CONFIG_ERROR

    logger.success("凭证已保存到系统 keyring")
    return EXIT_OK


def run_check(args) -> int:
    settings = load_settings(args.config)
    notion = NotionClient(settings.notion_api_key)
    reader = WeReadClient(settings.weread_cookie)
    all_passed, _ = run_health_check(settings, notion, reader)
    return EXIT_OK if all_passed else EXIT_SYNC_FAILED


def run_reset(args) -> int:
    settings = load_settings(args.config)
    store = SyncStateStore(settings.state_path)
    if store.remove(args.book_id):
        logger.success(f"已清除书籍 {args.book_id} 的同步状态")
    else:
        logger.warning(f"书籍 {args.book_id} 没有同步状态")
    return EXIT_OK


COMMANDS = {
    "sync": run_sync,
    "login": run_login,
    "check": run_check,
    "reset": run_reset,
}


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logger.set_level(LogLevel.DEBUG)

    if not args.command:
        parser.print_help()
        return EXIT_OK

    try:
        return COMMANDS[args.command](args)
    except KeyboardInterrupt:
        logger.info("\n操作取消")
        return EXIT_SYNC_FAILED
    except ConfigurationError as e:
        logger.error(str(e))
        return EXIT_CONFIG_ERROR
    except Exception as e:
        logger.error(f"发生错误: {e}")
        traceback.print_exc()
        return EXIT_SYNC_FAILED


if __name__ == "__main__":
    sys.exit(main())
