"""
WeRead Sync 健康检查 - Health Check
检查配置、Notion 数据库和微信读书登录状态是否正常
"""

from typing import List, Tuple

from weread_sync.config import Settings
from weread_sync.constants import REQUIRED_BOOK_PROPERTIES, REQUIRED_READNOTE_PROPERTIES
from weread_sync.logger import logger as default_logger


def print_header(title, logger=None):
    """打印标题"""
    (logger or default_logger).rule(title)


def print_check(name, status, message="", logger=None):
    """打印检查结果"""
    log = logger or default_logger
    text = f"{name} ({message})" if message else name
    if status:
        log.success(text)
    else:
        log.error(text)


def check_settings(settings: Settings, logger=None) -> bool:
    """检查必要配置"""
    print_header("1. 配置检查", logger)

    missing = settings.missing()
    for name in ("NOTION_API_KEY", "WEREAD_COOKIE", "NOTION_DATABASE_ID"):
        print_check(name, name not in missing, "已配置" if name not in missing else "未配置", logger)

    print_check(
        "READNOTE_DATABASE_ID",
        bool(settings.readnote_database_id),
        "已配置" if settings.readnote_database_id else "未配置（有新内容时同步会中止）",
        logger,
    )
    print_check("同步书籍数量", bool(settings.books), f"{len(settings.books)} 本", logger)
    return not missing


def _check_database(notion, database_id: str, label: str, required: List[str], logger=None) -> bool:
    missing = notion.check_database_properties(database_id, required)
    if missing is None:
        print_check(f"{label}可访问", False, database_id, logger)
        return False
    print_check(f"{label}可访问", True, database_id, logger)
    print_check(f"{label}字段完整", not missing,
                f"缺少: {', '.join(missing)}" if missing else "已包含必要字段", logger)
    return not missing


def check_notion(settings: Settings, notion, logger=None) -> bool:
    """检查 Notion 数据库"""
    print_header("2. Notion 连接检查", logger)

    if not settings.notion_api_key or not settings.books_database_id:
        print_check("跳过连接检查", False, "NOTION_API_KEY 或 NOTION_DATABASE_ID 未配置", logger)
        return False

    ok = _check_database(notion, settings.books_database_id, "书籍数据库", REQUIRED_BOOK_PROPERTIES, logger)
    if settings.readnote_database_id:
        ok = _check_database(notion, settings.readnote_database_id, "读书笔记数据库",
                             REQUIRED_READNOTE_PROPERTIES, logger) and ok
    return ok


def check_weread(settings: Settings, reader, logger=None) -> bool:
    """检查微信读书登录状态"""
    print_header("3. 微信读书登录检查", logger)

    if not settings.weread_cookie:
        print_check("跳过登录检查", False, "WEREAD_COOKIE 未配置", logger)
        return False

    ok = reader.check_login()
    print_check("微信读书 Cookie", ok, "有效" if ok else "无效或已过期", logger)
    return ok


def run_health_check(settings: Settings, notion, reader, logger=None) -> Tuple[bool, List[Tuple[str, bool]]]:
    """Run every check.

    Returns:
        (all passed, [(check name, passed), ...])
    """
    log = logger or default_logger
    log.header("WeRead Sync 健康检查", icon="🩺")

    results = [
        ("配置", check_settings(settings, log)),
        ("Notion 数据库", check_notion(settings, notion, log)),
        ("微信读书登录", check_weread(settings, reader, log)),
    ]

    print_header("检查总结", log)
    for name, passed in results:
        print_check(name, passed, logger=log)

    all_passed = all(passed for _, passed in results)
    if all_passed:
        log.success("所有检查通过！可以开始同步了。", icon="🎉")
    else:
        log.warning("有一些问题需要解决。")
        if not results[0][1]:
            log.info("  - 运行: weread-sync login --notion-key ... --cookie ...，并在 .env 中设置 NOTION_DATABASE_ID")
        if not results[1][1]:
            log.info("  - 确认数据库已共享给 Notion 集成，且包含必要字段")
        if not results[2][1]:
            log.info("  - 重新登录微信读书网页版并更新 Cookie")
    return all_passed, results
