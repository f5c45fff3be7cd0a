from weread_sync.constants import READNOTE_TYPE_SUMMARY, READNOTE_TYPE_THOUGHT
from weread_sync.models import AnnotationRecord
from weread_sync.sync.readnotes import ReadnoteWriter, chunked

DB = "readnote-db"


def _record(weid, type=READNOTE_TYPE_SUMMARY, content="text"):
    return AnnotationRecord(weid=weid, type=type, content=content, book_page_id="page-1")


def test_chunked():
    assert chunked(list(range(5)), 2) == [[0, 1], [2, 3], [4]]
    assert chunked([], 3) == []


def test_write_creates_one_row_per_record(workspace, quiet_logger):
    writer = ReadnoteWriter(workspace, DB, logger=quiet_logger)

    result = writer.write([_record("a"), _record("b", READNOTE_TYPE_THOUGHT)], "置身事内")

    assert result.success
    assert len(result.succeeded) == 2
    assert workspace.weids_in(DB) == ["a", "b"]


def test_second_run_creates_nothing(workspace, quiet_logger):
    writer = ReadnoteWriter(workspace, DB, logger=quiet_logger)
    records = [_record("a"), _record("b")]

    writer.write(records)
    result = writer.write(records)

    assert len(result) == 0
    assert result.success
    assert workspace.weids_in(DB) == ["a", "b"]


def test_in_batch_duplicates_written_once(workspace, quiet_logger):
    writer = ReadnoteWriter(workspace, DB, logger=quiet_logger)

    writer.write([_record("a", content="first"), _record("a", content="second")])

    assert workspace.weids_in(DB) == ["a"]
    assert workspace.rows[DB][0]["properties"]["内容"]["title"][0]["text"]["content"] == "first"


def test_existence_queries_are_chunked(workspace, quiet_logger):
    writer = ReadnoteWriter(workspace, DB, query_chunk_size=20, logger=quiet_logger)

    writer.write([_record(f"w{i}") for i in range(45)])

    assert [len(q["or"]) for q in workspace.queries] == [20, 20, 5]


def test_failed_row_recorded_and_others_written(workspace, quiet_logger):
    workspace.fail_create_for.add("b")
    writer = ReadnoteWriter(workspace, DB, logger=quiet_logger)

    result = writer.write([_record("a"), _record("b"), _record("c")])

    assert not result.success
    assert result.failed[0].weid == "b"
    assert workspace.weids_in(DB) == ["a", "c"]


def test_failed_existence_query_still_writes(workspace, quiet_logger):
    workspace.fail_query = True
    writer = ReadnoteWriter(workspace, DB, logger=quiet_logger)

    assert writer.fetch_existing_weids(["a"]) == set()
    assert writer.write([_record("a")]).success


def test_query_gate_spaces_chunks(workspace, quiet_logger, gate_factory, fake_clock):
    writer = ReadnoteWriter(workspace, DB, query_gate=gate_factory(0.34), query_chunk_size=1, logger=quiet_logger)

    writer.fetch_existing_weids(["a", "b", "c"])

    assert fake_clock.sleeps == [0.34, 0.34]


def test_empty_input(workspace, quiet_logger):
    result = ReadnoteWriter(workspace, DB, logger=quiet_logger).write([])

    assert result.success
    assert workspace.calls == []
    assert workspace.queries == []
