"""
Tests for the per-book sync sequence.
"""

import pytest

from conftest import FakeReader, marker, paragraph

from weread_sync.constants import REGION_MARKERS, RegionKind
from weread_sync.errors import MissingDestinationError
from weread_sync.models import HighlightsPage, ThoughtsPage
from weread_sync.notion.blocks import block_text
from weread_sync.sync.book_sync import BookSyncManager
from weread_sync.sync.state import SyncStateStore

BOOKS_DB = "books-db"
READNOTE_DB = "readnote-db"


@pytest.fixture
def store(state_path, quiet_logger):
    return SyncStateStore(state_path, logger=quiet_logger)


@pytest.fixture
def make_manager(workspace, store, gate_factory, quiet_logger):
    def make(reader, **kwargs):
        kwargs.setdefault("readnote_database_id", READNOTE_DB)
        return BookSyncManager(
            reader, workspace, store, BOOKS_DB,
            insert_gate=gate_factory(0.5), delete_gate=gate_factory(0.1), query_gate=gate_factory(0),
            logger=quiet_logger, **kwargs)
    return make


def _unchanged_reader(book, cursor_h="h-1", cursor_t="t-1"):
    return FakeReader(book, HighlightsPage([], cursor=cursor_h, has_update=False),
                      ThoughtsPage([], cursor=cursor_t, has_update=False))


def test_first_sync_writes_records_and_state(reader, make_manager, workspace, store):
    result = make_manager(reader).sync_book("3300064831")

    assert result.success
    assert result.has_update
    assert result.records_written == 3
    assert workspace.weids_in(READNOTE_DB) == ["rv-1", "rv-2", "bm-1"]
    state = store.get("3300064831")
    assert (state.highlights_synckey, state.thoughts_synckey) == ("h-2", "t-2")
    assert result.page_id == workspace.book_pages["3300064831"]


def test_second_sync_does_not_duplicate_rows(reader, make_manager, workspace):
    manager = make_manager(reader)

    manager.sync_book("3300064831")
    result = manager.sync_book("3300064831")

    assert result.success
    assert result.records_written == 0
    assert workspace.weids_in(READNOTE_DB) == ["rv-1", "rv-2", "bm-1"]


def test_no_update_short_circuit(sample_book, make_manager, workspace, store):
    workspace.book_pages[sample_book.book_id] = "page-existing"
    store.update(sample_book.book_id, "h-1", "t-1", last_sync_time=1)
    reader = _unchanged_reader(sample_book)

    result = make_manager(reader).sync_book(sample_book.book_id)

    assert result.success
    assert not result.has_update
    assert (result.highlights_synckey, result.thoughts_synckey) == ("h-1", "t-1")
    assert workspace.calls == []
    assert reader.cursors == [("highlights", "h-1"), ("thoughts", "t-1")]
    state = store.get(sample_book.book_id)
    assert (state.highlights_synckey, state.thoughts_synckey) == ("h-1", "t-1")
    assert state.last_sync_time > 1


def test_no_update_short_circuit_without_readnote_database(sample_book, make_manager, workspace, store):
    workspace.book_pages[sample_book.book_id] = "page-existing"
    store.update(sample_book.book_id, "h-1", "t-1")

    result = make_manager(_unchanged_reader(sample_book), readnote_database_id="").sync_book(sample_book.book_id)

    assert result.success


def test_missing_readnote_database_raises(reader, make_manager, store):
    manager = make_manager(reader, readnote_database_id=None)

    with pytest.raises(MissingDestinationError):
        manager.sync_book("3300064831")

    assert store.get("3300064831") is None


def test_missing_readnote_database_leaves_existing_page_untouched(reader, make_manager, workspace):
    workspace.book_pages["3300064831"] = "page-existing"
    manager = make_manager(reader, readnote_database_id=None)

    with pytest.raises(MissingDestinationError):
        manager.sync_book("3300064831")

    assert workspace.calls == []


def test_failed_page_lookup_does_not_create_page(reader, make_manager, workspace, store):
    workspace.fail_find = True

    result = make_manager(reader).sync_book("3300064831")

    assert not result.success
    assert result.error
    assert workspace.calls == []
    assert workspace.book_pages == {}
    assert reader.cursors == []
    assert store.get("3300064831") is None


def test_failed_record_write_keeps_previous_state(reader, make_manager, workspace, store):
    store.update("3300064831", "h-1", "t-1")
    workspace.fail_create_for.add("rv-2")

    result = make_manager(reader).sync_book("3300064831")

    assert not result.success
    assert result.records_failed == 1
    assert result.error
    assert store.get("3300064831").highlights_synckey == "h-1"


def test_failed_fetch_writes_nothing(sample_book, make_manager, workspace, store):
    workspace.book_pages[sample_book.book_id] = "page-existing"
    reader = FakeReader(sample_book, HighlightsPage(ok=False), ThoughtsPage([], cursor="t-9", has_update=True))

    result = make_manager(reader).sync_book(sample_book.book_id)

    assert not result.success
    assert workspace.calls == []
    assert store.get(sample_book.book_id) is None


def test_missing_book_fails(make_manager):
    reader = FakeReader(None, HighlightsPage(), ThoughtsPage())

    result = make_manager(reader).sync_book("nope")

    assert not result.success
    assert "nope" in result.error


def test_existing_page_is_refreshed_when_updated(reader, make_manager, workspace):
    workspace.book_pages["3300064831"] = "page-existing"

    result = make_manager(reader).sync_book("3300064831")

    assert result.page_id == "page-existing"
    assert ("create_or_update_book_page", "page-existing") in workspace.calls
    assert all(row["properties"]["书籍"]["relation"] == [{"id": "page-existing"}]
               for row in workspace.rows[READNOTE_DB])


def test_full_sync_does_not_touch_state(reader, make_manager, store):
    store.update("3300064831", "h-1", "t-1", last_sync_time=1)

    result = make_manager(reader, use_incremental=False).sync_book("3300064831")

    assert result.success
    assert reader.cursors == [("highlights", None), ("thoughts", None)]
    assert store.get("3300064831").last_sync_time == 1


def test_page_content_regions_written(reader, make_manager, workspace):
    workspace.book_pages["3300064831"] = "page-1"
    workspace.add_blocks("page-1", [paragraph("我的书评"), marker(REGION_MARKERS[RegionKind.HIGHLIGHTS]),
                                    paragraph("旧划线")])

    result = make_manager(reader, write_page_content=True).sync_book("3300064831")

    assert result.success
    assert set(result.regions) == {RegionKind.HIGHLIGHTS, RegionKind.THOUGHTS}
    texts = [block_text(b) for b in workspace.pages["page-1"]]
    assert texts[0] == "我的书评"
    assert "旧划线" not in texts
    assert texts.index(REGION_MARKERS[RegionKind.HIGHLIGHTS]) < texts.index(REGION_MARKERS[RegionKind.THOUGHTS])


def test_failed_region_fails_sync(reader, make_manager, workspace, store):
    workspace.book_pages["3300064831"] = "page-1"
    workspace.fail_append_at = 1

    result = make_manager(reader, write_page_content=True).sync_book("3300064831")

    assert not result.success
    assert not result.regions[RegionKind.HIGHLIGHTS]
    assert store.get("3300064831") is None


def test_unchanged_stream_region_is_left_alone(sample_book, sample_thoughts, make_manager, workspace, store):
    workspace.book_pages[sample_book.book_id] = "page-1"
    store.update(sample_book.book_id, "h-1", "t-1")
    reader = FakeReader(sample_book, HighlightsPage([], cursor="h-1", has_update=False),
                        ThoughtsPage(sample_thoughts, cursor="t-2", has_update=True))

    result = make_manager(reader, write_page_content=True).sync_book(sample_book.book_id)

    assert result.success
    assert list(result.regions) == [RegionKind.THOUGHTS]


def test_sync_books_runs_each_book(sample_book, make_manager, workspace, store):
    workspace.book_pages[sample_book.book_id] = "page-1"
    store.update(sample_book.book_id, "h-1", "t-1")

    results = make_manager(_unchanged_reader(sample_book)).sync_books([sample_book.book_id, sample_book.book_id])

    assert len(results) == 2
    assert all(r.success and not r.has_update for r in results)
