"""
Pytest configuration and shared fixtures.
"""

import io
import itertools
import os
import shutil
import tempfile
from typing import Any, Dict, Generator, List, Optional

import pytest
from rich.console import Console

from weread_sync.constants import ReadnoteProperty
from weread_sync.core.rate_limit import RateGate
from weread_sync.logger import LogLevel, Logger
from weread_sync.models import (
    BookInfo, HighlightChapter, HighlightItem, HighlightsPage, ThoughtItem, ThoughtsPage,
)
from weread_sync.sync.blocks import divider_block, heading_block, paragraph_block


class FakeWorkspace:
    """In-memory stand-in for NotionClient.

    Keeps one list of top-level blocks per page and one list of rows per
    database. ``fail_*`` sets/flags inject failures; ``calls`` records every
    write call as (method, target).
    """

    def __init__(self):
        self.pages: Dict[str, List[Dict[str, Any]]] = {}
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.book_pages: Dict[str, str] = {}
        self.calls: List[tuple] = []
        self.queries: List[Dict[str, Any]] = []
        self.fail_list = False
        self.fail_delete = set()
        self.fail_append_at: Optional[int] = None
        self.fail_create_for = set()
        self.fail_query = False
        self.fail_find = False
        self.append_count = 0
        self._ids = itertools.count(1)

    # --- helpers -----------------------------------------------------------

    def new_id(self, prefix: str = "blk") -> str:
        return f"{prefix}-{next(self._ids)}"

    def add_blocks(self, page_id: str, blocks: List[Dict[str, Any]]) -> List[str]:
        stored = []
        for block in blocks:
            block = dict(block)
            block.setdefault("id", self.new_id())
            stored.append(block)
        self.pages.setdefault(page_id, []).extend(stored)
        return [b["id"] for b in stored]

    @property
    def write_calls(self) -> List[tuple]:
        return list(self.calls)

    # --- block operations --------------------------------------------------

    def list_child_blocks(self, page_id: str):
        if self.fail_list:
            return None
        return [dict(b) for b in self.pages.get(page_id, [])]

    def delete_block(self, block_id: str) -> bool:
        self.calls.append(("delete_block", block_id))
        if block_id in self.fail_delete:
            return False
        for blocks in self.pages.values():
            for index, block in enumerate(blocks):
                if block["id"] == block_id:
                    del blocks[index]
                    return True
        return False

    def append_blocks(self, page_id: str, children: List[Dict[str, Any]]) -> bool:
        self.calls.append(("append_blocks", page_id))
        assert len(children) <= 100
        self.append_count += 1
        if self.fail_append_at is not None and self.append_count == self.fail_append_at:
            return False
        self.add_blocks(page_id, children)
        return True

    # --- page operations ---------------------------------------------------

    def find_book_page(self, database_id, title, author=None, book_id=None):
        if self.fail_find:
            return None
        page_id = self.book_pages.get(str(book_id))
        return (True, page_id) if page_id else (False, None)

    def create_or_update_book_page(self, database_id, book, page_id=None):
        self.calls.append(("create_or_update_book_page", page_id))
        if page_id:
            return page_id
        page_id = self.new_id("page")
        self.book_pages[book.book_id] = page_id
        self.pages[page_id] = []
        return page_id

    # --- database operations -----------------------------------------------

    def query_database(self, database_id, filter=None, page_size=100, paginate=True):
        self.queries.append(filter)
        if self.fail_query:
            return None
        wanted = {clause["rich_text"]["equals"] for clause in (filter or {}).get("or", [])}
        return [row for row in self.rows.get(database_id, [])
                if _row_weid(row) in wanted]

    def create_row(self, database_id, properties, icon=None):
        weid = properties[ReadnoteProperty.WEID]["rich_text"][0]["text"]["content"]
        self.calls.append(("create_row", weid))
        if weid in self.fail_create_for:
            return None
        row = {"id": self.new_id("row"), "properties": properties}
        self.rows.setdefault(database_id, []).append(row)
        return row["id"]

    def weids_in(self, database_id: str) -> List[str]:
        return [_row_weid(row) for row in self.rows.get(database_id, [])]


def _row_weid(row: Dict[str, Any]) -> str:
    items = row["properties"][ReadnoteProperty.WEID]["rich_text"]
    return items[0]["text"]["content"] if items else ""


class FakeClock:
    """Clock whose time only moves when sleep is called."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: List[float] = []

    def time(self) -> float:
        return self.now

    def sleep(self, seconds: float):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def quiet_logger() -> Logger:
    """Logger writing into memory."""
    return Logger(level=LogLevel.DEBUG, console=Console(file=io.StringIO(), width=120))


@pytest.fixture
def temp_state_dir() -> Generator[str, None, None]:
    """Create a temporary directory for sync state files."""
    state_dir = tempfile.mkdtemp(prefix="test_state_")
    yield state_dir
    shutil.rmtree(state_dir, ignore_errors=True)


@pytest.fixture
def state_path(temp_state_dir: str) -> str:
    return os.path.join(temp_state_dir, "sync_state.json")


@pytest.fixture
def workspace() -> FakeWorkspace:
    return FakeWorkspace()


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gate_factory(fake_clock: FakeClock):
    """Build RateGates driven by the fake clock."""
    def make(interval: float) -> RateGate:
        return RateGate(interval, sleep=fake_clock.sleep, clock=fake_clock.time)
    return make


@pytest.fixture
def sample_book() -> BookInfo:
    return BookInfo(
        book_id="3300064831",
        title="置身事内",
        author="兰小欢",
        cover="https://cdn.weread.qq.com/cover.jpg",
        category="经济理财-财经",
        progress={"progress": 45, "startReadingTime": 1700000000, "updateTime": 1700600000, "readingTime": 7200},
    )


@pytest.fixture
def sample_highlights() -> List[HighlightChapter]:
    return [
        HighlightChapter(2, "第一章 地方政府的权力与事务", [
            HighlightItem("政府不仅影响经济，而且深度参与经济。", bookmark_id="bm-1", created=1700000100, chapter_uid=2),
            HighlightItem("  ", bookmark_id="bm-blank", created=1700000150, chapter_uid=2),
        ]),
        HighlightChapter(5, "第二章 财税与政府行为", [
            HighlightItem("分税制改革", bookmark_id="bm-2", created=1700000200, chapter_uid=5),
        ]),
    ]


@pytest.fixture
def sample_thoughts() -> List[ThoughtItem]:
    return [
        ThoughtItem(review_id="rv-1", chapter_uid=5, chapter_title="第二章 财税与政府行为",
                    abstract="分税制改革", content="这一段很关键", create_time=1700000300),
        ThoughtItem(review_id="rv-2", chapter_uid=2, chapter_title="第一章 地方政府的权力与事务",
                    abstract="", content="整体框架清晰", create_time=1700000400),
    ]


@pytest.fixture
def sample_bookmark_payload() -> Dict[str, Any]:
    """Raw /book/bookmarklist response."""
    return {
        "synckey": 1700000500,
        "updated": [
            {"bookmarkId": "bm-2", "chapterUid": 5, "markText": "分税制改革", "createTime": 1700000200},
            {"bookmarkId": "bm-1", "chapterUid": 2, "markText": "政府不仅影响经济，而且深度参与经济。",
             "createTime": 1700000100},
            {"bookmarkId": "bm-3", "chapterUid": 9, "markText": "不在章节列表里", "createTime": 1700000250},
        ],
        "chapters": [
            {"chapterUid": 2, "title": "第一章 地方政府的权力与事务"},
            {"chapterUid": 5, "title": "第二章 财税与政府行为"},
        ],
    }


@pytest.fixture
def sample_review_payload() -> Dict[str, Any]:
    """Raw /review/list response."""
    return {
        "synckey": 1700000600,
        "reviews": [
            {"reviewId": "rv-1", "review": {
                "reviewId": "rv-1", "chapterUid": 5, "chapterName": "第二章 财税与政府行为",
                "abstract": "分税制改革", "content": "这一段很关键", "createTime": 1700000300}},
            {"reviewId": "rv-2", "review": {
                "reviewId": "rv-2", "chapterUid": 2, "content": "整体框架清晰", "createTime": 1700000400}},
        ],
    }


class FakeReader:
    """Reading-service stand-in returning configured pages."""

    def __init__(self, book: Optional[BookInfo], highlights: HighlightsPage, thoughts: ThoughtsPage):
        self.book = book
        self.highlights = highlights
        self.thoughts = thoughts
        self.cursors: List[tuple] = []

    def get_book_info(self, book_id):
        return self.book

    def get_highlights(self, book_id, cursor=None):
        self.cursors.append(("highlights", cursor))
        return self.highlights

    def get_thoughts(self, book_id, cursor=None):
        self.cursors.append(("thoughts", cursor))
        return self.thoughts


@pytest.fixture
def reader(sample_book, sample_highlights, sample_thoughts) -> FakeReader:
    return FakeReader(
        sample_book,
        HighlightsPage(sample_highlights, cursor="h-2", has_update=True),
        ThoughtsPage(sample_thoughts, cursor="t-2", has_update=True),
    )


def marker(text: str) -> Dict[str, Any]:
    return heading_block(text, level=1)


def paragraph(text: str) -> Dict[str, Any]:
    return paragraph_block(text)


def divider() -> Dict[str, Any]:
    return divider_block()
