"""
Incremental Fetch Module

Fetches both annotation streams of a book, resuming from the synckeys stored
by the previous successful run, and tells whether anything changed.
"""

from typing import List, Optional

from weread_sync.logger import logger as default_logger
from weread_sync.models import HighlightChapter, SyncStateRecord, ThoughtItem
from weread_sync.sync.state import SyncStateStore


class FetchResult:
    """Both streams of one book plus their new cursors."""

    def __init__(self, highlights: List[HighlightChapter], highlights_synckey: Optional[str],
                 has_highlight_update: bool, thoughts: List[ThoughtItem], thoughts_synckey: Optional[str],
                 has_thought_update: bool, use_incremental: bool = True,
                 previous: Optional[SyncStateRecord] = None, ok: bool = True):
        self.highlights = highlights
        self.highlights_synckey = highlights_synckey
        self.has_highlight_update = has_highlight_update
        self.thoughts = thoughts
        self.thoughts_synckey = thoughts_synckey
        self.has_thought_update = has_thought_update
        self.use_incremental = use_incremental
        self.previous = previous
        self.ok = ok

    @property
    def has_updates(self) -> bool:
        """A full refetch always counts as an update."""
        return self.has_highlight_update or self.has_thought_update or not self.use_incremental

    @property
    def highlight_count(self) -> int:
        return sum(len(c.highlights) for c in self.highlights)


class IncrementalFetcher:
    """Fetches highlights and notes through the reading-service client."""

    def __init__(self, reader, state_store: SyncStateStore, logger=None):
        """
        Args:
            reader: Reading-service client providing get_highlights and get_thoughts
            state_store: Source of the previously stored cursors
        """
        self.reader = reader
        self.state_store = state_store
        self.logger = logger or default_logger

    def fetch(self, book_id: str, use_incremental: bool = True) -> FetchResult:
        """Fetch both streams of a book.

        With ``use_incremental`` the stored synckeys are submitted; otherwise
        both streams are refetched from scratch.
        """
        previous = self.state_store.get(book_id) if use_incremental else None
        highlights_cursor = previous.highlights_synckey if previous else None
        thoughts_cursor = previous.thoughts_synckey if previous else None

        if previous:
            self.logger.debug(f"使用上次同步的 synckey: 划线 {highlights_cursor}, 想法 {thoughts_cursor}")

        highlights = self.reader.get_highlights(book_id, highlights_cursor)
        thoughts = self.reader.get_thoughts(book_id, thoughts_cursor)

        result = FetchResult(
            highlights=highlights.chapters,
            highlights_synckey=highlights.cursor,
            has_highlight_update=highlights.has_update,
            thoughts=thoughts.items,
            thoughts_synckey=thoughts.cursor,
            has_thought_update=thoughts.has_update,
            use_incremental=use_incremental,
            previous=previous,
            ok=highlights.ok and thoughts.ok,
        )
        self.logger.info(
            f"获取到划线 {result.highlight_count} 条（{'有' if result.has_highlight_update else '无'}更新），"
            f"想法 {len(result.thoughts)} 条（{'有' if result.has_thought_update else '无'}更新）",
            icon="📥",
        )
        return result
