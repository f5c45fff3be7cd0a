"""
Readnote Merge Module

Combines the notes stream and the highlights stream of one book into a single
ordered list of AnnotationRecords:

- notes come first (input order), then highlights (chapter order, item order);
- an item whose trimmed text is empty is dropped;
- the first occurrence of a weid wins;
- a highlight whose text is quoted by a note's abstract is dropped, the note
  already represents that passage.
"""

from typing import Iterable, List, Optional, Set, Tuple

from weread_sync.constants import KIND_HIGHLIGHT, KIND_THOUGHT, READNOTE_TYPE_SUMMARY, READNOTE_TYPE_THOUGHT
from weread_sync.models import AnnotationRecord, HighlightChapter, HighlightItem, ThoughtItem
from weread_sync.sync.identity import content_key, ensure_milliseconds, identity


def flatten_highlights(chapters: Optional[Iterable[HighlightChapter]]) -> List[Tuple[HighlightItem, Optional[str]]]:
    """(highlight, chapter title) pairs in chapter order, then item order."""
    flattened = []
    for chapter in chapters or []:
        for highlight in chapter.highlights:
            flattened.append((highlight, highlight.chapter_title or chapter.chapter_title))
    return flattened


def merge(thoughts: Optional[Iterable[ThoughtItem]],
          highlights: Optional[Iterable[HighlightChapter]],
          book_id: str, book_page_id: str) -> List[AnnotationRecord]:
    """Merge notes and highlights into de-duplicated readnote records.

    Args:
        thoughts: Notes in the order WeRead returned them
        highlights: Highlight chapters in the order WeRead returned them
        book_id: WeRead book id, part of fallback identities and content keys
        book_page_id: Notion page of the book, referenced by every record

    Returns:
        Records with unique weids and non-empty content
    """
    book_id = str(book_id or "")
    records: List[AnnotationRecord] = []
    seen_weids: Set[str] = set()
    quoted_keys: Set[str] = set()

    for thought in thoughts or []:
        abstract_text = (thought.abstract or "").strip()
        note_text = (thought.content or "").strip()
        content_text = abstract_text or note_text
        if not content_text:
            continue

        weid = identity(KIND_THOUGHT, thought.review_id, book_id, content_text, thought.create_time)
        if weid in seen_weids:
            continue
        seen_weids.add(weid)

        if abstract_text:
            quoted_keys.add(content_key(book_id, abstract_text))

        records.append(AnnotationRecord(
            weid=weid,
            type=READNOTE_TYPE_THOUGHT,
            content=content_text,
            note=note_text or None,
            chapter_title=thought.chapter_title,
            created_at=ensure_milliseconds(thought.create_time),
            book_page_id=book_page_id,
        ))

    for highlight, chapter_title in flatten_highlights(highlights):
        text = (highlight.text or "").strip()
        if not text:
            continue

        if content_key(book_id, text) in quoted_keys:
            continue

        weid = identity(KIND_HIGHLIGHT, highlight.bookmark_id, book_id, text, highlight.created)
        if weid in seen_weids:
            continue
        seen_weids.add(weid)

        records.append(AnnotationRecord(
            weid=weid,
            type=READNOTE_TYPE_SUMMARY,
            content=text,
            chapter_title=chapter_title,
            created_at=ensure_milliseconds(highlight.created),
            book_page_id=book_page_id,
        ))

    return records
