"""
Readnote Writer Module

Writes merged AnnotationRecords to the readnote database. Records whose weid
already exists in the database (written by an earlier run) are skipped, so a
re-sync never creates duplicate rows.
"""

from typing import Iterable, List, Set

from weread_sync.config import READNOTE_WRITE_CHUNK_SIZE, WEID_QUERY_CHUNK_SIZE
from weread_sync.constants import READNOTE_ICON, ReadnoteProperty
from weread_sync.core.outcome import BatchResult
from weread_sync.core.rate_limit import RateGate
from weread_sync.logger import logger as default_logger
from weread_sync.models import AnnotationRecord
from weread_sync.notion.properties import build_readnote_properties, build_weid_filter, plain_text_of


def chunked(items: List, size: int) -> List[List]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class ReadnoteWriter:
    """Creates readnote rows for records not yet present in the database."""

    def __init__(self, client, database_id: str, query_gate: RateGate = None,
                 query_chunk_size: int = WEID_QUERY_CHUNK_SIZE,
                 write_chunk_size: int = READNOTE_WRITE_CHUNK_SIZE, logger=None):
        """
        Args:
            client: Workspace client providing query_database and create_row
            database_id: Readnote database
            query_gate: Gate passed before every existence query
            query_chunk_size: WEID clauses per existence query
            write_chunk_size: Rows created between progress log lines
        """
        self.client = client
        self.database_id = database_id
        self.query_gate = query_gate or RateGate(0)
        self.query_chunk_size = query_chunk_size
        self.write_chunk_size = write_chunk_size
        self.logger = logger or default_logger

    def fetch_existing_weids(self, weids: Iterable[str]) -> Set[str]:
        """Weids already present in the database.

        A failed query chunk is logged and treated as "none exist"; the
        database then may get a duplicate row rather than losing a record.
        """
        clean = [weid for weid in weids if weid]
        existing: Set[str] = set()

        for chunk in chunked(clean, self.query_chunk_size):
            self.query_gate.wait()
            rows = self.client.query_database(self.database_id, build_weid_filter(chunk))
            if rows is None:
                self.logger.error("查询已存在读书笔记失败")
                continue
            for row in rows:
                value = plain_text_of((row.get("properties") or {}).get(ReadnoteProperty.WEID))
                if value:
                    existing.add(value)
        return existing

    def write(self, records: List[AnnotationRecord], book_title: str = "") -> BatchResult:
        """Create rows for the records that do not exist yet.

        Returns:
            One outcome per attempted record; skipped records are not listed
        """
        result = BatchResult()
        label = f"《{book_title}》" if book_title else "当前书籍"
        if not records:
            self.logger.info("没有新的读书笔记需要写入")
            return result

        unique: List[AnnotationRecord] = []
        seen: Set[str] = set()
        for record in records:
            if record.weid not in seen:
                seen.add(record.weid)
                unique.append(record)

        existing = self.fetch_existing_weids(record.weid for record in unique)
        pending = [record for record in unique if record.weid not in existing]

        if not pending:
            self.logger.info(f"{label}的读书笔记无需写入（已存在）")
            return result

        self.logger.info(f"{label}有 {len(pending)} 条新读书笔记（已存在 {len(unique) - len(pending)} 条）", icon="✏️ ")
        for chunk in chunked(pending, self.write_chunk_size):
            for record in chunk:
                row_id = self.client.create_row(self.database_id, build_readnote_properties(record), icon=READNOTE_ICON)
                if row_id:
                    result.record(record, True)
                else:
                    self.logger.error(f"写入读书笔记失败（WEID: {record.weid}）")
                    result.record(record, False, "create failed")
            self.logger.debug(f"已处理 {len(result)}/{len(pending)} 条读书笔记")

        if result.success:
            self.logger.success(f"{label}的读书笔记已写入 {len(result.succeeded)} 条")
        else:
            self.logger.warning(f"{label}的读书笔记写入 {len(result.succeeded)} 条，失败 {len(result.failed)} 条")
        return result
