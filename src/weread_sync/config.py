import json
import os
from typing import Any, Dict, List, Optional

import keyring
from dotenv import load_dotenv
from keyring.errors import KeyringError

from weread_sync.logger import logger

load_dotenv()

KEYRING_SERVICE = "weread-sync"

# ============================================================
# Application Constants
# ============================================================
# Notion append-children accepts at most 100 blocks per call
BLOCK_BATCH_SIZE: int = 100

# Pause between append batches / single block deletions (seconds)
BLOCK_BATCH_DELAY: float = 0.5
BLOCK_DELETE_DELAY: float = 0.1

# Number of OR clauses per WEID existence query
WEID_QUERY_CHUNK_SIZE: int = 20

# Readnote rows are created in chunks of this size
READNOTE_WRITE_CHUNK_SIZE: int = 10

# API retry settings
API_MAX_RETRIES: int = 3
API_RETRY_BASE_DELAY: float = 1.0
REQUEST_TIMEOUT: int = 30

DEFAULT_CONFIG_FILE = "sync_config.json"
DEFAULT_STATE_PATH = os.path.join(os.path.expanduser("~"), ".weread_sync", "sync_state.json")


# ============================================================
# Secure Token Storage (keyring)
# ============================================================
def _load_secret_from_keyring(key: str) -> Optional[str]:
    try:
        return keyring.get_password(KEYRING_SERVICE, key)
    except KeyringError as e:
        logger.debug(f"读取 keyring 失败 ({key}): {e}")
        return None


def _save_secret_to_keyring(key: str, value: str) -> bool:
    if not value:
        return False
    try:
        keyring.set_password(KEYRING_SERVICE, key, value)
        return True
    except KeyringError as e:
        logger.warning(f"写入 keyring 失败 ({key}): {e}")
        return False


def save_secrets(notion_api_key: str = None, weread_cookie: str = None) -> bool:
    """Store secrets in the system keyring.

    Returns:
        True if every provided secret was stored
    """
    ok = True
    if notion_api_key:
        ok = _save_secret_to_keyring("notion_api_key", notion_api_key) and ok
    if weread_cookie:
        ok = _save_secret_to_keyring("weread_cookie", weread_cookie) and ok
    return ok


# ============================================================
# Configuration Loading
# ============================================================
def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config_file(config_path: str) -> Dict[str, Any]:
    """Load the optional JSON config file.

    Returns:
        Config dict, empty if the file is missing or invalid
    """
    if not config_path or not os.path.exists(config_path):
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"配置文件 JSON 格式错误: {e}")
        return {}
    except IOError as e:
        logger.error(f"读取配置文件失败: {e}")
        return {}

    if isinstance(data, list):
        # A bare list is treated as the list of book ids
        return {"books": data}
    if isinstance(data, dict):
        return data
    return {}


class Settings:
    """Process-wide settings, read once at startup."""

    def __init__(self, notion_api_key: str = "", weread_cookie: str = "",
                 books_database_id: str = "", readnote_database_id: str = "",
                 state_path: str = DEFAULT_STATE_PATH, books: List[str] = None,
                 incremental: bool = True, organize_by_chapter: bool = False,
                 write_page_content: bool = False):
        self.notion_api_key = notion_api_key
        self.weread_cookie = weread_cookie
        self.books_database_id = books_database_id
        self.readnote_database_id = readnote_database_id
        self.state_path = state_path
        self.books = list(books or [])
        self.incremental = incremental
        self.organize_by_chapter = organize_by_chapter
        self.write_page_content = write_page_content

    def missing(self) -> List[str]:
        """Names of required settings that are empty."""
        required = {
            "NOTION_API_KEY": self.notion_api_key,
            "WEREAD_COOKIE": self.weread_cookie,
            "NOTION_DATABASE_ID": self.books_database_id,
        }
        return [name for name, value in required.items() if not value]


def load_settings(config_path: str = None) -> Settings:
    """Build settings from keyring, environment (.env) and the JSON config file.

    Secrets prefer keyring over the environment; the JSON file only carries
    non-secret options.
    """
    config_path = config_path or os.getenv("WEREAD_SYNC_CONFIG", DEFAULT_CONFIG_FILE)
    data = load_config_file(config_path)

    return Settings(
        notion_api_key=_load_secret_from_keyring("notion_api_key") or os.getenv("NOTION_API_KEY", ""),
        weread_cookie=_load_secret_from_keyring("weread_cookie") or os.getenv("WEREAD_COOKIE", ""),
        books_database_id=os.getenv("NOTION_DATABASE_ID", "") or data.get("notion_database_id", ""),
        readnote_database_id=os.getenv("READNOTE_DATABASE_ID", "") or data.get("readnote_database_id", ""),
        state_path=os.path.expanduser(os.getenv("SYNC_STATE_PATH", "") or data.get("state_path") or DEFAULT_STATE_PATH),
        books=[str(b) for b in data.get("books", [])],
        incremental=_env_flag("WEREAD_SYNC_INCREMENTAL", data.get("incremental", True)),
        organize_by_chapter=_env_flag("WEREAD_SYNC_BY_CHAPTER", data.get("organize_by_chapter", False)),
        write_page_content=_env_flag("WEREAD_SYNC_PAGE_CONTENT", data.get("write_page_content", False)),
    )
