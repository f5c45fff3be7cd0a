"""
Notion Database Operations Module

Contains methods for database access:
- get_database_properties / check_database_properties
- query_database (optionally paginated)
- create_row
"""

from typing import Any, Dict, List, Optional


class DatabaseOperationsMixin:
    """Mixin class providing database methods for NotionClient."""

    def get_database_properties(self, database_id: str) -> Optional[List[str]]:
        """Names of the properties defined on a database, or None if unreachable."""
        data = self._request("GET", f"/databases/{database_id}", f"获取数据库 {database_id}")
        if data is None:
            return None
        return list((data.get("properties") or {}).keys())

    def check_database_properties(self, database_id: str, required: List[str]) -> Optional[List[str]]:
        """Required properties missing from a database.

        Returns:
            Missing property names, or None if the database could not be read
        """
        existing = self.get_database_properties(database_id)
        if existing is None:
            return None
        return [name for name in required if name not in existing]

    def query_database(self, database_id: str, filter: Dict[str, Any] = None,
                       page_size: int = 100, paginate: bool = True) -> Optional[List[Dict[str, Any]]]:
        """Query a database.

        Returns:
            Matching pages, or None if any request failed
        """
        rows: List[Dict[str, Any]] = []
        cursor = None

        while True:
            payload: Dict[str, Any] = {"page_size": min(page_size, 100)}
            if filter:
                payload["filter"] = filter
            if cursor:
                payload["start_cursor"] = cursor

            data = self._request("POST", f"/databases/{database_id}/query", "查询数据库", payload=payload)
            if data is None:
                return None

            rows.extend(data.get("results") or [])
            if not paginate or not data.get("has_more") or not data.get("next_cursor"):
                break
            cursor = data["next_cursor"]

        return rows

    def create_row(self, database_id: str, properties: Dict[str, Any], icon: str = None) -> Optional[str]:
        """Create a page in a database.

        Returns:
            ID of the new page, or None if creation failed
        """
        payload: Dict[str, Any] = {
            "parent": {"database_id": database_id},
            "properties": properties,
        }
        if icon:
            payload["icon"] = {"type": "emoji", "emoji": icon}

        data = self._request("POST", "/pages", "创建数据库记录", payload=payload)
        if not data or not data.get("id"):
            return None
        return data["id"]
