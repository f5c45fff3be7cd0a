"""
Data Models

Explicit shapes for the loosely-typed WeRead JSON, validated at the
collaborator boundary, and the records written to Notion.
"""

from typing import Any, Dict, List, Optional, Union

from weread_sync.constants import (
    READNOTE_TYPE_SUMMARY, READNOTE_TYPE_THOUGHT, UNTITLED_BOOK, UNTITLED_CHAPTER, WEREAD_BOOK_URL_TEMPLATE,
)

Timestamp = Union[int, str, None]


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class HighlightItem:
    """A passage the reader marked (划线)."""

    def __init__(self, text: str, bookmark_id: Optional[str] = None, created: Timestamp = None,
                 chapter_uid: int = 0, chapter_title: Optional[str] = None):
        self.text = text or ""
        self.bookmark_id = _optional_str(bookmark_id)
        self.created = created
        self.chapter_uid = chapter_uid
        self.chapter_title = chapter_title

    @classmethod
    def from_api(cls, data: Dict[str, Any], chapter_title: Optional[str] = None) -> "HighlightItem":
        """Build from a /book/bookmarklist ``updated`` entry."""
        if not isinstance(data, dict):
            raise ValueError(f"bookmark entry must be an object, got {type(data).__name__}")
        return cls(
            text=data.get("markText") or data.get("text") or "",
            bookmark_id=data.get("bookmarkId"),
            created=data.get("createTime", data.get("created")),
            chapter_uid=_as_int(data.get("chapterUid")),
            chapter_title=chapter_title or data.get("chapterName") or data.get("chapterTitle"),
        )

    def __repr__(self):
        return f"HighlightItem(bookmark_id={self.bookmark_id!r}, text={self.text[:20]!r})"


class HighlightChapter:
    """Highlights of one chapter, in reading order."""

    def __init__(self, chapter_uid: int, chapter_title: Optional[str], highlights: List[HighlightItem] = None):
        self.chapter_uid = chapter_uid
        self.chapter_title = chapter_title
        self.highlights: List[HighlightItem] = list(highlights or [])

    @property
    def display_title(self) -> str:
        return self.chapter_title or f"章节 {self.chapter_uid}"

    def __repr__(self):
        return f"HighlightChapter({self.chapter_uid}, {self.chapter_title!r}, {len(self.highlights)} items)"


class ThoughtItem:
    """A note (想法) the reader wrote, optionally anchored to quoted text."""

    def __init__(self, review_id: Optional[str] = None, chapter_uid: int = 0, chapter_title: Optional[str] = None,
                 abstract: Optional[str] = None, content: Optional[str] = None, create_time: Timestamp = None):
        self.review_id = _optional_str(review_id)
        self.chapter_uid = chapter_uid
        self.chapter_title = chapter_title
        self.abstract = abstract or ""
        self.content = content or ""
        self.create_time = create_time

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ThoughtItem":
        """Build from a /review/list entry (either the wrapper or the inner ``review``)."""
        if not isinstance(data, dict):
            raise ValueError(f"review entry must be an object, got {type(data).__name__}")
        review = data.get("review", data)
        if not isinstance(review, dict):
            raise ValueError("review entry has no review object")
        return cls(
            review_id=review.get("reviewId", data.get("reviewId")),
            chapter_uid=_as_int(review.get("chapterUid")),
            chapter_title=review.get("chapterName") or review.get("chapterTitle"),
            abstract=review.get("abstract"),
            content=review.get("content"),
            create_time=review.get("createTime"),
        )

    def __repr__(self):
        return f"ThoughtItem(review_id={self.review_id!r}, content={self.content[:20]!r})"


class AnnotationRecord:
    """A canonical row of the readnote database. Never mutated after creation."""

    __slots__ = ("weid", "type", "content", "note", "chapter_title", "created_at", "book_page_id")

    def __init__(self, weid: str, type: str, content: str, book_page_id: str,
                 note: Optional[str] = None, chapter_title: Optional[str] = None,
                 created_at: Optional[int] = None):
        if type not in (READNOTE_TYPE_THOUGHT, READNOTE_TYPE_SUMMARY):
            raise ValueError(f"unknown readnote type: {type!r}")
        if not content or not content.strip():
            raise ValueError("readnote content must not be empty")
        if note and type != READNOTE_TYPE_THOUGHT:
            raise ValueError("only thoughts carry a note")
        self.weid = weid
        self.type = type
        self.content = content
        self.note = note or None
        self.chapter_title = chapter_title or UNTITLED_CHAPTER
        self.created_at = created_at
        self.book_page_id = book_page_id

    @property
    def is_thought(self) -> bool:
        return self.type == READNOTE_TYPE_THOUGHT

    def __eq__(self, other):
        if not isinstance(other, AnnotationRecord):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in self.__slots__)

    def __hash__(self):
        return hash(self.weid)

    def __repr__(self):
        return f"AnnotationRecord({self.weid!r}, {self.type}, {self.content[:20]!r})"


class BookInfo:
    """Book metadata used for the book page."""

    def __init__(self, book_id: str, title: str = "", author: str = "", cover: str = "",
                 intro: str = "", isbn: str = "", publisher: str = "", category: str = "",
                 finish_reading: bool = False, progress: Dict[str, Any] = None,
                 latest_chapter: str = ""):
        self.book_id = str(book_id)
        self.title = title or UNTITLED_BOOK
        self.author = author or ""
        self.cover = cover or ""
        self.intro = intro or ""
        self.isbn = isbn or ""
        self.publisher = publisher or ""
        self.category = category or ""
        self.finish_reading = bool(finish_reading)
        self.progress: Dict[str, Any] = dict(progress or {})
        self.latest_chapter = latest_chapter or ""

    @property
    def url(self) -> str:
        return WEREAD_BOOK_URL_TEMPLATE.format(book_id=self.book_id)

    @classmethod
    def from_api(cls, data: Dict[str, Any], progress: Dict[str, Any] = None) -> "BookInfo":
        """Build from /book/info and the optional /book/readinfo payload."""
        book_id = data.get("bookId") or data.get("id")
        if not book_id:
            raise ValueError("book info has no bookId")
        return cls(
            book_id=book_id,
            title=data.get("title", ""),
            author=data.get("author", ""),
            cover=data.get("cover", ""),
            intro=data.get("intro", ""),
            isbn=data.get("isbn", ""),
            publisher=data.get("publisher", ""),
            category=data.get("category", ""),
            finish_reading=bool(data.get("finishReading")),
            progress=progress,
            latest_chapter=data.get("latestChapterTitle") or data.get("latestChapter") or "",
        )

    def __repr__(self):
        return f"BookInfo({self.book_id!r}, {self.title!r})"


class HighlightsPage:
    """Result of fetching the highlights stream."""

    def __init__(self, chapters: List[HighlightChapter] = None, cursor: Optional[str] = None,
                 has_update: bool = False, ok: bool = True):
        self.chapters: List[HighlightChapter] = list(chapters or [])
        self.cursor = cursor
        self.has_update = has_update
        self.ok = ok

    @property
    def count(self) -> int:
        return sum(len(c.highlights) for c in self.chapters)


class ThoughtsPage:
    """Result of fetching the notes stream."""

    def __init__(self, items: List[ThoughtItem] = None, cursor: Optional[str] = None,
                 has_update: bool = False, ok: bool = True):
        self.items: List[ThoughtItem] = list(items or [])
        self.cursor = cursor
        self.has_update = has_update
        self.ok = ok

    @property
    def count(self) -> int:
        return len(self.items)


class SyncStateRecord:
    """Persisted resumption state of one book."""

    def __init__(self, book_id: str, last_sync_time: int = 0,
                 highlights_synckey: Optional[str] = None, thoughts_synckey: Optional[str] = None):
        self.book_id = str(book_id)
        self.last_sync_time = last_sync_time
        self.highlights_synckey = highlights_synckey
        self.thoughts_synckey = thoughts_synckey

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bookId": self.book_id,
            "lastSyncTime": self.last_sync_time,
            "highlightsSynckey": self.highlights_synckey,
            "thoughtsSynckey": self.thoughts_synckey,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncStateRecord":
        return cls(
            book_id=data["bookId"],
            last_sync_time=_as_int(data.get("lastSyncTime")),
            highlights_synckey=_optional_str(data.get("highlightsSynckey")),
            thoughts_synckey=_optional_str(data.get("thoughtsSynckey")),
        )

    def __eq__(self, other):
        if not isinstance(other, SyncStateRecord):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return (f"SyncStateRecord({self.book_id!r}, highlights={self.highlights_synckey!r}, "
                f"thoughts={self.thoughts_synckey!r})")
