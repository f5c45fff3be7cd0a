"""
Notion Page Operations Module

Book pages in the books database:
- find_book_page: lookup by book id, or title + primary author
- create_or_update_book_page: create the page, or refresh its properties in place
"""

from typing import Optional, Tuple

from weread_sync.constants import BOOK_PAGE_ICON
from weread_sync.models import BookInfo
from weread_sync.notion.properties import build_book_filter, build_book_properties


class PageOperationsMixin:
    """Mixin class providing book page methods for NotionClient."""

    def find_book_page(self, database_id: str, title: str, author: str = None,
                       book_id: str = None) -> Optional[Tuple[bool, Optional[str]]]:
        """Check whether a book already has a page.

        Returns:
            (exists, page_id), or None if the query itself failed
        """
        self.logger.debug(f"检查书籍《{title}》是否已存在于 Notion 数据库...")
        payload = {"filter": build_book_filter(title, author, book_id), "page_size": 1}
        data = self._request("POST", f"/databases/{database_id}/query", "检查书籍存在性", payload=payload)
        if data is None:
            return None
        results = data.get("results") or []
        if results:
            page_id = results[0].get("id")
            self.logger.debug(f"书籍已存在于 Notion，页面ID: {page_id}")
            return True, page_id
        return False, None

    def create_or_update_book_page(self, database_id: str, book: BookInfo,
                                   page_id: str = None) -> Optional[str]:
        """Write book metadata to Notion.

        Args:
            database_id: Books database
            book: Book metadata
            page_id: Existing page to refresh; a new page is created when None

        Returns:
            Page ID, or None if the write failed
        """
        properties = build_book_properties(book)

        if page_id:
            data = self._request("PATCH", f"/pages/{page_id}", f"更新书籍《{book.title}》",
                                 payload={"properties": properties})
            if data is None:
                return None
            self.logger.info(f"书籍《{book.title}》的基础信息已刷新", icon="🔄")
            return page_id

        payload = {
            "parent": {"database_id": database_id},
            "icon": {"type": "emoji", "emoji": BOOK_PAGE_ICON},
            "properties": properties,
        }
        data = self._request("POST", "/pages", f"创建书籍《{book.title}》", payload=payload)
        if not data or not data.get("id"):
            return None
        self.logger.success(f"已创建书籍页面《{book.title}》: {data['id']}")
        return data["id"]
