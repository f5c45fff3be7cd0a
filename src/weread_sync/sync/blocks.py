"""
Region Content Builders

Notion block payloads for the highlights (划线) and notes (想法) regions of a
book page. The region heading itself is added by the RegionReplacer.
"""

from typing import Any, Dict, Iterable, List

from weread_sync.constants import REGION_EMPTY_PLACEHOLDERS, REGION_MARKERS
from weread_sync.models import HighlightChapter, ThoughtItem

Block = Dict[str, Any]


def _text(content: str, **annotations) -> Dict[str, Any]:
    item: Dict[str, Any] = {"type": "text", "text": {"content": content}}
    if annotations:
        item["annotations"] = annotations
    return item


def heading_block(content: str, level: int = 1) -> Block:
    key = f"heading_{level}"
    return {"object": "block", "type": key, key: {"rich_text": [_text(content)]}}


def divider_block() -> Block:
    return {"object": "block", "type": "divider", "divider": {}}


def quote_block(content: str) -> Block:
    return {"object": "block", "type": "quote", "quote": {"rich_text": [_text(content)]}}


def paragraph_block(content: str, **annotations) -> Block:
    return {"object": "block", "type": "paragraph", "paragraph": {"rich_text": [_text(content, **annotations)]}}


def region_header(region_kind: str) -> List[Block]:
    """Marker heading followed by a divider."""
    return [heading_block(REGION_MARKERS[region_kind]), divider_block()]


def placeholder_block(region_kind: str) -> Block:
    return paragraph_block(REGION_EMPTY_PLACEHOLDERS[region_kind], italic=True)


def build_highlight_blocks(chapters: Iterable[HighlightChapter], organize_by_chapter: bool = False) -> List[Block]:
    """Quote blocks for every highlight, chapters ordered by chapter uid.

    Empty highlights are skipped. Returns an empty list when there is nothing
    to show; the replacer then writes the placeholder.
    """
    blocks: List[Block] = []
    for chapter in sorted(chapters or [], key=lambda c: c.chapter_uid):
        texts = [h.text.strip() for h in chapter.highlights if h.text and h.text.strip()]
        if not texts:
            continue

        if organize_by_chapter:
            blocks.append(heading_block(chapter.display_title, level=2))

        for text in texts:
            blocks.append(quote_block(text))
            if not organize_by_chapter:
                blocks.append(divider_block())

        if organize_by_chapter:
            blocks.append(divider_block())
    return blocks


def build_thought_blocks(thoughts: Iterable[ThoughtItem], organize_by_chapter: bool = False) -> List[Block]:
    """Quote (abstract) plus bold paragraph (note) for every note, grouped by chapter uid."""
    by_chapter: Dict[int, List[ThoughtItem]] = {}
    titles: Dict[int, str] = {}
    for thought in thoughts or []:
        if not (thought.abstract or "").strip() and not (thought.content or "").strip():
            continue
        uid = thought.chapter_uid or 0
        by_chapter.setdefault(uid, []).append(thought)
        titles.setdefault(uid, thought.chapter_title or f"章节 {uid}")

    blocks: List[Block] = []
    for uid in sorted(by_chapter):
        if organize_by_chapter:
            blocks.append(heading_block(titles[uid], level=2))

        for thought in by_chapter[uid]:
            if thought.abstract and thought.abstract.strip():
                blocks.append(quote_block(thought.abstract.strip()))
            if thought.content and thought.content.strip():
                blocks.append(paragraph_block(f"💭 {thought.content.strip()}", bold=True, color="blue"))
            if not organize_by_chapter:
                blocks.append(divider_block())

        if organize_by_chapter:
            blocks.append(divider_block())
    return blocks


def build_region_blocks(region_kind: str, content: List[Block]) -> List[Block]:
    """Full region: header, then content or a single placeholder."""
    return region_header(region_kind) + (list(content) if content else [placeholder_block(region_kind)])

