"""
Notion Block Operations Module

Contains methods for block manipulation:
- list_child_blocks (paginated)
- delete_block (one block per call)
- append_blocks (at most MAX_APPEND_BLOCKS per call)
"""

from typing import Any, Dict, List, Optional

# Hard limit of the append-children endpoint
MAX_APPEND_BLOCKS = 100


def block_text(block: Dict[str, Any]) -> str:
    """Plain text of a text-bearing block (empty for dividers and the like)."""
    block_type = block.get("type")
    body = block.get(block_type) if block_type else None
    if not isinstance(body, dict):
        return ""
    parts = []
    for item in body.get("rich_text") or []:
        if item.get("plain_text") is not None:
            parts.append(item["plain_text"])
        else:
            parts.append((item.get("text") or {}).get("content", ""))
    return "".join(parts)


class BlockOperationsMixin:
    """Mixin class providing block operation methods for NotionClient."""

    def list_child_blocks(self, block_id: str, page_size: int = 100) -> Optional[List[Dict[str, Any]]]:
        """Get all top-level children of a block or page, in document order.

        Handles pagination automatically.

        Returns:
            List of block dicts, or None if any page failed
        """
        children: List[Dict[str, Any]] = []
        cursor = None

        while True:
            params = {"page_size": min(page_size, 100)}
            if cursor:
                params["start_cursor"] = cursor

            data = self._request("GET", f"/blocks/{block_id}/children", "获取子区块", params=params)
            if data is None:
                return None

            children.extend(data.get("results") or [])
            if not data.get("has_more"):
                break
            cursor = data.get("next_cursor")
            if not cursor:
                break

        self.logger.debug(f"获取到 {len(children)} 个顶级区块")
        return children

    def delete_block(self, block_id: str) -> bool:
        """Archive a single block."""
        data = self._request("DELETE", f"/blocks/{block_id}", f"删除区块 {block_id}")
        return data is not None

    def append_blocks(self, block_id: str, children: List[Dict[str, Any]]) -> bool:
        """Append blocks to the end of a page or block in one call.

        Raises:
            ValueError: if more than MAX_APPEND_BLOCKS blocks are given
        """
        if len(children) > MAX_APPEND_BLOCKS:
            raise ValueError(f"at most {MAX_APPEND_BLOCKS} blocks per append, got {len(children)}")
        if not children:
            return True

        data = self._request("PATCH", f"/blocks/{block_id}/children", "添加区块", payload={"children": children})
        return data is not None
