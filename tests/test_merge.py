from weread_sync.constants import READNOTE_TYPE_SUMMARY, READNOTE_TYPE_THOUGHT, UNTITLED_CHAPTER
from weread_sync.models import HighlightChapter, HighlightItem, ThoughtItem
from weread_sync.sync.merge import flatten_highlights, merge


def test_merge_notes_first_then_highlights(sample_thoughts, sample_highlights):
    records = merge(sample_thoughts, sample_highlights, "3300064831", "page-1")

    assert [r.weid for r in records] == ["rv-1", "rv-2", "bm-1"]
    assert [r.type for r in records] == [READNOTE_TYPE_THOUGHT, READNOTE_TYPE_THOUGHT, READNOTE_TYPE_SUMMARY]
    assert all(r.book_page_id == "page-1" for r in records)


def test_highlight_quoted_by_note_is_subsumed():
    thoughts = [ThoughtItem(review_id="r1", abstract="Hello World", content="note")]
    highlights = [HighlightChapter(1, "Ch1", [HighlightItem("hello   world", bookmark_id="h1", chapter_uid=1)])]

    records = merge(thoughts, highlights, "b1", "p1")

    assert len(records) == 1
    record = records[0]
    assert record.type == READNOTE_TYPE_THOUGHT
    assert record.content == "Hello World"
    assert record.note == "note"


def test_note_content_does_not_subsume_highlight():
    thoughts = [ThoughtItem(review_id="r1", abstract="", content="same text")]
    highlights = [HighlightChapter(1, "Ch1", [HighlightItem("same text", bookmark_id="h1", chapter_uid=1)])]

    records = merge(thoughts, highlights, "b1", "p1")

    assert [r.weid for r in records] == ["r1", "h1"]


def test_note_without_abstract_uses_content():
    thoughts = [ThoughtItem(review_id="r1", content="  only a note  ")]

    record = merge(thoughts, [], "b1", "p1")[0]

    assert record.content == "only a note"
    assert record.note == "only a note"


def test_empty_items_dropped():
    thoughts = [ThoughtItem(review_id="r1", abstract="  ", content="\n")]
    highlights = [HighlightChapter(1, "Ch1", [HighlightItem("   ", bookmark_id="h1", chapter_uid=1)])]

    assert merge(thoughts, highlights, "b1", "p1") == []


def test_duplicate_weids_first_wins():
    thoughts = [
        ThoughtItem(review_id="r1", content="first"),
        ThoughtItem(review_id="r1", content="second"),
    ]
    highlights = [HighlightChapter(1, "Ch1", [
        HighlightItem("a", bookmark_id="h1", chapter_uid=1),
        HighlightItem("b", bookmark_id="h1", chapter_uid=1),
    ])]

    records = merge(thoughts, highlights, "b1", "p1")

    assert [(r.weid, r.content) for r in records] == [("r1", "first"), ("h1", "a")]


def test_missing_ids_get_stable_fallback_identity():
    thoughts = [ThoughtItem(content="note", create_time=1700000000)]
    highlights = [HighlightChapter(1, "Ch1", [HighlightItem("passage", created=1700000001, chapter_uid=1)])]

    first = merge(thoughts, highlights, "b1", "p1")
    second = merge(thoughts, highlights, "b1", "p1")

    assert [r.weid for r in first] == [r.weid for r in second]
    assert first[0].weid.startswith("thought-")
    assert first[1].weid.startswith("highlight-")


def test_highlights_flattened_in_chapter_then_item_order():
    chapters = [
        HighlightChapter(3, "C", [HighlightItem("c1", bookmark_id="c1", chapter_uid=3)]),
        HighlightChapter(1, "A", [
            HighlightItem("a1", bookmark_id="a1", chapter_uid=1),
            HighlightItem("a2", bookmark_id="a2", chapter_uid=1, chapter_title="Own title"),
        ]),
    ]

    flattened = flatten_highlights(chapters)
    records = merge([], chapters, "b1", "p1")

    assert [(item.bookmark_id, title) for item, title in flattened] == [
        ("c1", "C"), ("a1", "A"), ("a2", "Own title")]
    assert [r.weid for r in records] == ["c1", "a1", "a2"]


def test_record_fields():
    thoughts = [ThoughtItem(review_id="r1", abstract="quote", content="", create_time=1700000000)]
    highlights = [HighlightChapter(1, None, [HighlightItem("passage", bookmark_id="h1", created="1700000001")])]

    thought, highlight = merge(thoughts, highlights, "b1", "p1")

    assert thought.note is None
    assert thought.chapter_title == UNTITLED_CHAPTER
    assert thought.created_at == 1700000000000
    assert highlight.note is None
    assert highlight.created_at == 1700000001000
    assert highlight.chapter_title == UNTITLED_CHAPTER


def test_none_inputs():
    assert merge(None, None, "b1", "p1") == []
