"""
Notion Property Builders

Turns BookInfo and AnnotationRecords into Notion page property payloads.
Data-quality gaps (missing title, author, content) are filled with
placeholders here instead of failing the sync.
"""

import re
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from weread_sync.constants import (
    MISSING_CONTENT, RICH_TEXT_MAX_LENGTH, STALLED_AFTER_SECONDS, UNTITLED_BOOK,
    BookProperty, ReadingStatus, ReadnoteProperty,
)
from weread_sync.models import AnnotationRecord, BookInfo

_AUTHOR_SEPARATORS = re.compile(r"[,，/&、；;｜|]")
_CATEGORY_SEPARATORS = re.compile(r"[,，;；\\/|、]+")


def sanitize_rich_text(value: Optional[str], max_length: int = RICH_TEXT_MAX_LENGTH) -> str:
    if not value:
        return ""
    return value.strip()[:max_length]


def extract_primary_author(author: Optional[str]) -> Optional[str]:
    """First author of a combined author string such as "张三, 李四 译"."""
    if not author:
        return None
    candidates = [item.strip() for item in _AUTHOR_SEPARATORS.split(author) if item.strip()]
    return candidates[0] if candidates else None


def extract_category_tags(category: Optional[str]) -> List[str]:
    if not category:
        return []
    return [tag.strip() for tag in _CATEGORY_SEPARATORS.split(category) if tag.strip()]


def title_property(content: Optional[str], placeholder: str = UNTITLED_BOOK) -> Dict[str, Any]:
    return {"title": [{"type": "text", "text": {"content": content or placeholder}}]}


def rich_text_property(content: Optional[str]) -> Dict[str, Any]:
    if not content:
        return {"rich_text": []}
    return {"rich_text": [{"type": "text", "text": {"content": content}}]}


def cover_property(title: Optional[str], cover_url: Optional[str]) -> Dict[str, Any]:
    if not cover_url:
        return {"files": []}
    return {"files": [{"type": "external", "name": f"{title or '封面'}-封面", "external": {"url": cover_url}}]}


def to_number(value: Any) -> Optional[float]:
    """Parse numbers out of ints, floats and strings like "45%"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if value != value else float(value)
    if isinstance(value, str):
        cleaned = re.sub(r"[^\d.-]", "", value.strip())
        if not cleaned:
            return None
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


def clamp_percent(value: Optional[float]) -> float:
    if value is None or value in (float("inf"), float("-inf")) or value != value:
        return 0
    return min(100, max(0, round(value, 2)))


def _iso(seconds: Optional[float]) -> Optional[str]:
    if not seconds:
        return None
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def reading_status(book: BookInfo, now: Optional[float] = None) -> Dict[str, Any]:
    """Derive reading status, progress and durations from WeRead progress data.

    Returns:
        Dict with status, progress (0-1 ratio kept as Notion percent number),
        reading_time, reading_days, start_iso, last_iso
    """
    progress = book.progress
    now = now if now is not None else time.time()

    raw_progress = to_number(progress.get("progress")) or 0
    progress_percent = clamp_percent(raw_progress / 100)

    start_seconds = to_number(progress.get("startReadingTime"))
    last_seconds = (to_number(progress.get("updateTime")) or to_number(progress.get("finishTime"))
                    or start_seconds)
    reading_time = to_number(progress.get("readingTime")) or 0
    reading_time = reading_time if reading_time > 0 else 0

    has_started = bool(start_seconds) or reading_time > 0
    reading_days = None
    if has_started and start_seconds and last_seconds:
        reading_days = max(1, -(-int(last_seconds - start_seconds) // (24 * 60 * 60)))

    is_finished = book.finish_reading or progress_percent >= 0.995
    is_stalled = (has_started and not is_finished and last_seconds is not None
                  and now - last_seconds > STALLED_AFTER_SECONDS)

    if is_finished:
        status = ReadingStatus.FINISHED
    elif not has_started:
        status = ReadingStatus.UNREAD
    elif is_stalled:
        status = ReadingStatus.STALLED
    else:
        status = ReadingStatus.READING

    return {
        "status": status,
        "progress": progress_percent,
        "reading_time": 0 if status == ReadingStatus.UNREAD else int(reading_time),
        "reading_days": reading_days,
        "start_iso": _iso(start_seconds),
        "last_iso": _iso(last_seconds) if has_started else None,
    }


def build_book_properties(book: BookInfo, now: Optional[float] = None) -> Dict[str, Any]:
    """Properties of a book page in the books database."""
    derived = reading_status(book, now=now)
    author = extract_primary_author(book.author)
    latest_chapter = sanitize_rich_text(book.progress.get("summary") or book.latest_chapter, 500)

    return {
        BookProperty.TITLE: title_property(book.title),
        BookProperty.BOOK_ID: rich_text_property(book.book_id),
        BookProperty.ISBN: rich_text_property(book.isbn),
        BookProperty.AUTHOR: {"select": {"name": author} if author else None},
        BookProperty.CATEGORY: {"multi_select": [{"name": tag} for tag in extract_category_tags(book.category)]},
        BookProperty.COVER: cover_property(book.title, book.cover),
        BookProperty.START_READING: {"date": {"start": derived["start_iso"]} if derived["start_iso"] else None},
        BookProperty.LAST_READING: {"date": {"start": derived["last_iso"]} if derived["last_iso"] else None},
        BookProperty.INTRO: rich_text_property(sanitize_rich_text(book.intro)),
        BookProperty.PROGRESS: {"number": derived["progress"]},
        BookProperty.READING_TIME: {"number": derived["reading_time"]},
        BookProperty.READING_DAYS: {"number": derived["reading_days"]},
        BookProperty.LINK: {"url": book.url},
        BookProperty.STATUS: {"status": {"name": derived["status"]}},
        BookProperty.LATEST_CHAPTER: rich_text_property(latest_chapter),
        BookProperty.PUBLISHER: rich_text_property(book.publisher),
    }


def build_book_filter(title: str, author: Optional[str], book_id: Optional[str]) -> Dict[str, Any]:
    """Match a book page by id, or by title plus primary author."""
    title_filter = {"property": BookProperty.TITLE, "title": {"contains": title}}
    primary_author = extract_primary_author(author)
    if primary_author:
        title_filter = {"and": [
            title_filter,
            {"property": BookProperty.AUTHOR, "select": {"equals": primary_author}},
        ]}
    if not book_id:
        return title_filter
    return {"or": [
        {"property": BookProperty.BOOK_ID, "rich_text": {"equals": str(book_id)}},
        title_filter,
    ]}


def build_readnote_properties(record: AnnotationRecord) -> Dict[str, Any]:
    """Properties of a row in the readnote database."""
    created = None
    if record.created_at:
        created = {"start": datetime.fromtimestamp(record.created_at / 1000, tz=timezone.utc).isoformat()}

    return {
        ReadnoteProperty.CONTENT: title_property(sanitize_rich_text(record.content), MISSING_CONTENT),
        ReadnoteProperty.NOTE: rich_text_property(sanitize_rich_text(record.note)),
        ReadnoteProperty.TYPE: {"select": {"name": record.type}},
        ReadnoteProperty.CHAPTER_TITLE: rich_text_property(record.chapter_title),
        ReadnoteProperty.CREATED_AT: {"date": created},
        ReadnoteProperty.BOOK: {"relation": [{"id": record.book_page_id}] if record.book_page_id else []},
        ReadnoteProperty.WEID: rich_text_property(record.weid),
    }


def build_weid_filter(weids: List[str]) -> Dict[str, Any]:
    return {"or": [{"property": ReadnoteProperty.WEID, "rich_text": {"equals": weid}} for weid in weids]}


def plain_text_of(prop: Optional[Dict[str, Any]]) -> str:
    """Concatenated plain text of a title or rich_text property value."""
    if not prop:
        return ""
    items = prop.get("rich_text") or prop.get("title") or []
    return "".join(item.get("plain_text") or (item.get("text") or {}).get("content", "") for item in items)
