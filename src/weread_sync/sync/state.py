import json
import os
import tempfile
import time
from typing import Dict, Optional

from weread_sync.logger import logger as default_logger
from weread_sync.models import SyncStateRecord


class SyncStateStore:
    """
    Persists per-book resumption cursors (synckeys) and the last sync time.

    The state file is a JSON object keyed by book id. Saving a book replaces
    only that book's entry; other books' entries are left as they were read
    from disk at save time.
    """

    def __init__(self, state_path: str, logger=None):
        self.state_path = os.path.abspath(os.path.expanduser(state_path))
        self.logger = logger or default_logger
        self.data: Dict[str, Dict] = {}
        self._load()

    def _load(self):
        self.data = self._read_file()

    def _read_file(self) -> Dict[str, Dict]:
        if not os.path.exists(self.state_path):
            return {}
        try:
            with open(self.state_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            self.logger.warning(f"读取同步状态失败: {e}")
            return {}
        if not isinstance(data, dict):
            self.logger.warning(f"同步状态文件格式错误，已忽略: {self.state_path}")
            return {}
        return data

    def _write_file(self, data: Dict[str, Dict]) -> bool:
        directory = os.path.dirname(self.state_path)
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".sync_state_", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self.state_path)
            except BaseException:
                os.unlink(tmp_path)
                raise
            return True
        except OSError as e:
            self.logger.error(f"保存同步状态失败: {e}")
            return False

    def get(self, book_id: str) -> Optional[SyncStateRecord]:
        entry = self.data.get(str(book_id))
        if not entry:
            return None
        try:
            return SyncStateRecord.from_dict(entry)
        except (KeyError, TypeError) as e:
            self.logger.warning(f"书籍 {book_id} 的同步状态无效，按首次同步处理: {e}")
            return None

    def save(self, record: SyncStateRecord) -> bool:
        """Replace the entry of ``record.book_id`` and write the file.

        The file is re-read right before writing so entries written by other
        runs for other books are kept.
        """
        current = self._read_file()
        current[record.book_id] = record.to_dict()
        if not self._write_file(current):
            return False
        self.data = current
        return True

    def update(self, book_id: str, highlights_synckey: Optional[str], thoughts_synckey: Optional[str],
               last_sync_time: Optional[int] = None) -> Optional[SyncStateRecord]:
        """Save new cursors for a book; returns the record, or None if writing failed."""
        record = SyncStateRecord(
            book_id=book_id,
            last_sync_time=last_sync_time if last_sync_time is not None else int(time.time() * 1000),
            highlights_synckey=highlights_synckey,
            thoughts_synckey=thoughts_synckey,
        )
        return record if self.save(record) else None

    def remove(self, book_id: str) -> bool:
        current = self._read_file()
        if str(book_id) not in current:
            return False
        del current[str(book_id)]
        if not self._write_file(current):
            return False
        self.data = current
        return True
