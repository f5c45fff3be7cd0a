import os
import threading
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

LOG_LEVEL_ENV = "WEREAD_SYNC_LOG_LEVEL"


class LogLevel(Enum):
    """日志级别"""
    DEBUG = 0
    INFO = 1
    SUCCESS = 2
    WARNING = 3
    ERROR = 4


_LEVEL_STYLES = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "blue",
    LogLevel.SUCCESS: "green",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red bold",
}


def level_from_env(default: LogLevel = LogLevel.INFO) -> LogLevel:
    """读取 WEREAD_SYNC_LOG_LEVEL，无效值时使用默认级别"""
    name = os.getenv(LOG_LEVEL_ENV, "").strip().upper()
    return LogLevel[name] if name in LogLevel.__members__ else default


class Logger:
    """
    同步日志记录器（rich 控制台输出，线程安全）

    - 每行带时间戳和图标
    - 书名等用户内容按原样输出，不解析 rich 标记
    - 书籍同步进度条与结果汇总表

    同步组件都接受 logger 参数，默认使用模块级的 ``logger``；测试可以传入
    写到 StringIO 的 Console。
    """

    def __init__(self, name: str = "WeReadSync", level: Optional[LogLevel] = None,
                 console: Optional[Console] = None):
        self.name = name
        self.level = level if level is not None else level_from_env()
        self.console = console or Console()
        self._lock = threading.Lock()

    def set_level(self, level: LogLevel):
        self.level = level

    def enabled_for(self, level: LogLevel) -> bool:
        return level.value >= self.level.value

    def _emit(self, level: LogLevel, icon: str, message: str):
        if not self.enabled_for(level):
            return

        stamp = datetime.now().strftime("%H:%M:%S")
        line = f"{icon} {message}" if icon else str(message)
        with self._lock:
            self.console.print(f"[{stamp}]", style="cyan", end=" ", markup=False, highlight=False)
            self.console.print(line, style=_LEVEL_STYLES[level], markup=False, highlight=False)

    def debug(self, message, icon="🔧"):
        """调试信息，仅 DEBUG 级别可见"""
        self._emit(LogLevel.DEBUG, icon, message)

    def info(self, message, icon="ℹ️ "):
        self._emit(LogLevel.INFO, icon, message)

    def success(self, message, icon="✅"):
        self._emit(LogLevel.SUCCESS, icon, message)

    def warning(self, message, icon="⚠️ "):
        self._emit(LogLevel.WARNING, icon, message)

    def error(self, message, icon="❌"):
        self._emit(LogLevel.ERROR, icon, message)

    def header(self, message, icon=""):
        """以面板形式打印一本书或一个阶段的标题"""
        if not self.enabled_for(LogLevel.INFO):
            return
        title = f"{icon} {message}" if icon else message
        with self._lock:
            self.console.print(Panel(title, style="bold magenta", width=60))

    def rule(self, message=""):
        if not self.enabled_for(LogLevel.INFO):
            return
        with self._lock:
            self.console.rule(message)

    @contextmanager
    def progress(self, total: int, description: str = "同步书籍"):
        """书籍级进度条

        Usage:
            with logger.progress(len(book_ids)) as advance:
                for book_id in book_ids:
                    manager.sync_book(book_id)
                    advance()
        """
        columns = (
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=30),
            TaskProgressColumn(),
            TimeElapsedColumn(),
        )
        with Progress(*columns, console=self.console, disable=not self.enabled_for(LogLevel.INFO)) as bar:
            task_id = bar.add_task(description, total=total)

            def advance(step: int = 1):
                bar.update(task_id, advance=step)

            yield advance

    def sync_summary(self, results: Iterable, title: str = "同步汇总"):
        """打印每本书的同步结果

        Args:
            results: BookSyncResult 列表
            title: 表格标题
        """
        if not self.enabled_for(LogLevel.INFO):
            return

        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("书籍")
        table.add_column("状态")
        table.add_column("新增笔记", justify="right")
        table.add_column("说明", style="dim")

        for result in results:
            name = result.title or result.book_id
            if not result.success:
                status = "[red]失败[/red]"
            elif not result.has_update:
                status = "[yellow]无更新[/yellow]"
            else:
                status = "[green]成功[/green]"
            table.add_row(name, status, str(result.records_written), result.error or "")

        with self._lock:
            self.console.print(table)


# 全局日志实例
logger = Logger()
