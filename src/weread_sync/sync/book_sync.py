"""
Book Sync Manager Module

Sequences the sync of one book:

    resolve page -> fetch streams -> short-circuit when nothing changed
    -> merge -> write readnote records -> replace page regions -> save state

Steps never run out of order or in parallel: the saved cursors always belong
to the fetch that produced the written data, and they are only saved when
every write succeeded, so a failed run is retried from the last good cursor.
"""

from typing import Dict, List, Optional

from weread_sync.constants import RegionKind
from weread_sync.core.outcome import BatchResult
from weread_sync.core.rate_limit import RateGate
from weread_sync.errors import MissingDestinationError
from weread_sync.logger import logger as default_logger
from weread_sync.models import BookInfo
from weread_sync.sync.blocks import build_highlight_blocks, build_thought_blocks
from weread_sync.sync.fetch import FetchResult, IncrementalFetcher
from weread_sync.sync.merge import merge
from weread_sync.sync.readnotes import ReadnoteWriter
from weread_sync.sync.region import RegionReplaceResult, RegionReplacer
from weread_sync.sync.state import SyncStateStore


class BookSyncResult:
    """Result of syncing one book."""

    def __init__(self, book_id: str):
        self.book_id = str(book_id)
        self.title: Optional[str] = None
        self.page_id: Optional[str] = None
        self.success: bool = False
        self.has_update: bool = False
        self.highlights_synckey: Optional[str] = None
        self.thoughts_synckey: Optional[str] = None
        self.records_total: int = 0
        self.readnotes = BatchResult()
        self.regions: Dict[str, RegionReplaceResult] = {}
        self.state_saved: bool = False
        self.error: Optional[str] = None

    @property
    def records_written(self) -> int:
        return len(self.readnotes.succeeded)

    @property
    def records_failed(self) -> int:
        return len(self.readnotes.failed)

    def fail(self, error: str) -> "BookSyncResult":
        self.success = False
        self.error = error
        return self

    def __str__(self):
        name = f"《{self.title}》" if self.title else self.book_id
        if not self.success:
            return f"❌ {name} 同步失败: {self.error}"
        if not self.has_update:
            return f"✅ {name} 无新内容"
        return f"✅ {name} 同步成功: 新增读书笔记 {self.records_written} 条（共 {self.records_total} 条）"


class BookSyncManager:
    """Synchronizes the annotations of WeRead books into Notion."""

    def __init__(self, reader, notion, state_store: SyncStateStore, books_database_id: str,
                 readnote_database_id: Optional[str] = None, use_incremental: bool = True,
                 organize_by_chapter: bool = False, write_page_content: bool = False,
                 insert_gate: RateGate = None, delete_gate: RateGate = None,
                 query_gate: RateGate = None, logger=None):
        """
        Args:
            reader: Reading-service client (WeReadClient)
            notion: Workspace client (NotionClient)
            state_store: Per-book cursor store
            books_database_id: Notion database holding one page per book
            readnote_database_id: Notion database receiving annotation records
            use_incremental: Resume from stored cursors and skip unchanged books
            organize_by_chapter: Group page regions under chapter headings
            write_page_content: Also rewrite the highlights/notes regions of the book page
            insert_gate: Gate between append batches of a region
            delete_gate: Gate between block deletions of a region
            query_gate: Gate between weid existence queries
        """
        self.reader = reader
        self.notion = notion
        self.state_store = state_store
        self.books_database_id = books_database_id
        self.readnote_database_id = readnote_database_id
        self.use_incremental = use_incremental
        self.organize_by_chapter = organize_by_chapter
        self.write_page_content = write_page_content
        self.logger = logger or default_logger

        self.fetcher = IncrementalFetcher(reader, state_store, logger=self.logger)
        self.region_replacer = RegionReplacer(notion, insert_gate=insert_gate, delete_gate=delete_gate,
                                              logger=self.logger)
        self.query_gate = query_gate

    # =========================================================================
    # Entry Points
    # =========================================================================

    def sync_books(self, book_ids: List[str]) -> List[BookSyncResult]:
        """Sync books one after another."""
        results = []
        for book_id in book_ids:
            results.append(self.sync_book(book_id))
        return results

    def sync_book(self, book_id: str) -> BookSyncResult:
        """Sync one book.

        Raises:
            MissingDestinationError: new content exists but no readnote database is configured
        """
        result = BookSyncResult(book_id)
        mode = "增量" if self.use_incremental else "全量"
        self.logger.header(f"开始{mode}同步书籍 (ID: {book_id})", icon="📚")

        book = self.reader.get_book_info(book_id)
        if not book:
            return result.fail(f"未能获取到书籍 {book_id} 的信息")
        result.title = book.title

        lookup = self.notion.find_book_page(self.books_database_id, book.title, book.author, book.book_id)
        if lookup is None:
            return result.fail(f"查询书籍《{book.title}》的 Notion 页面失败")
        exists, page_id = lookup
        if not exists:
            page_id = self.notion.create_or_update_book_page(self.books_database_id, book)
            if not page_id:
                return result.fail(f"写入书籍《{book.title}》到 Notion 失败")
        result.page_id = page_id

        fetched = self.fetcher.fetch(book.book_id, self.use_incremental)
        if not fetched.ok:
            return result.fail("获取划线或想法失败")

        if not fetched.has_updates:
            return self._finish_without_updates(book, fetched, result)

        self._require_readnote_database()
        if exists and not self.notion.create_or_update_book_page(self.books_database_id, book, page_id=page_id):
            return result.fail(f"刷新书籍《{book.title}》信息失败")

        self.sync_content(book, page_id, fetched, result)
        if not result.success:
            self.logger.warning(f"《{book.title}》同步未完成，保留上次的同步状态")
            return result

        self._save_state(book.book_id, fetched.highlights_synckey, fetched.thoughts_synckey, result)
        self.logger.success(str(result))
        return result

    # =========================================================================
    # Steps
    # =========================================================================

    def sync_content(self, book: BookInfo, page_id: str, fetched: FetchResult,
                     result: BookSyncResult) -> BookSyncResult:
        """Merge the fetched streams and write them to Notion."""
        self._require_readnote_database()

        result.has_update = True
        result.highlights_synckey = fetched.highlights_synckey
        result.thoughts_synckey = fetched.thoughts_synckey

        records = merge(fetched.thoughts, fetched.highlights, book.book_id, page_id)
        result.records_total = len(records)
        thought_count = sum(1 for r in records if r.is_thought)
        if records:
            self.logger.info(f"准备写入 {len(records)} 条读书笔记（想法 {thought_count} 条，"
                             f"摘要 {len(records) - thought_count} 条）", icon="📋")
        else:
            self.logger.info("没有需要写入的读书笔记内容")

        writer = ReadnoteWriter(self.notion, self.readnote_database_id, query_gate=self.query_gate,
                                logger=self.logger)
        result.readnotes = writer.write(records, book.title)

        regions_ok = True
        if self.write_page_content:
            regions_ok = self.write_page_regions(page_id, fetched, result)

        result.success = result.readnotes.success and regions_ok
        if not result.readnotes.success:
            result.error = f"{result.records_failed} 条读书笔记写入失败"
        elif not regions_ok:
            result.error = "页面内容区域写入失败"
        return result

    def write_page_regions(self, page_id: str, fetched: FetchResult, result: BookSyncResult) -> bool:
        """Rewrite the highlights region, then the notes region, of the book page.

        A region is only rewritten when its stream changed (or on a full
        sync); an unchanged stream carries no items to write.
        """
        ok = True
        if fetched.has_highlight_update or not fetched.use_incremental:
            region = self.region_replacer.replace_region(
                page_id, RegionKind.HIGHLIGHTS,
                build_highlight_blocks(fetched.highlights, self.organize_by_chapter))
            result.regions[RegionKind.HIGHLIGHTS] = region
            ok = ok and region.success

        if fetched.has_thought_update or not fetched.use_incremental:
            region = self.region_replacer.replace_region(
                page_id, RegionKind.THOUGHTS,
                build_thought_blocks(fetched.thoughts, self.organize_by_chapter))
            result.regions[RegionKind.THOUGHTS] = region
            ok = ok and region.success
        return ok

    def _require_readnote_database(self):
        if not self.readnote_database_id:
            raise MissingDestinationError("缺少 READNOTE_DATABASE_ID，无法写入读书笔记数据库")

    def _finish_without_updates(self, book: BookInfo, fetched: FetchResult,
                                result: BookSyncResult) -> BookSyncResult:
        previous = fetched.previous
        result.success = True
        result.has_update = False
        result.highlights_synckey = previous.highlights_synckey if previous else fetched.highlights_synckey
        result.thoughts_synckey = previous.thoughts_synckey if previous else fetched.thoughts_synckey
        self.logger.info(f"《{book.title}》没有检测到新内容，跳过内容同步", icon="⏭️ ")
        self._save_state(book.book_id, result.highlights_synckey, result.thoughts_synckey, result)
        return result

    def _save_state(self, book_id: str, highlights_synckey: Optional[str], thoughts_synckey: Optional[str],
                    result: BookSyncResult):
        if not self.use_incremental:
            return
        record = self.state_store.update(book_id, highlights_synckey, thoughts_synckey)
        result.state_saved = record is not None
        if record:
            self.logger.debug(f"已保存同步状态，highlightsSynckey: {highlights_synckey}, "
                              f"thoughtsSynckey: {thoughts_synckey}")
