"""
Region Replacer Module

A book page carries up to two regions, each starting at a ``heading_1`` whose
text is a region marker ("📌 划线" / "💭 想法") and ending right before the
next marker heading (or the end of the page). Replacing a region deletes its
blocks one by one and appends a freshly built region at the end of the page.
Blocks outside the region are never touched.

Deletion is best effort: a block that fails to delete is logged and the
remaining deletions go on. Insertion is all or nothing from the caller's
point of view: any failed batch fails the call. Deleted blocks are not
restored in that case; the next successful run rewrites the region.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from weread_sync.config import BLOCK_BATCH_DELAY, BLOCK_BATCH_SIZE, BLOCK_DELETE_DELAY
from weread_sync.constants import ALL_REGION_MARKERS, REGION_LABELS, REGION_MARKERS
from weread_sync.core.outcome import BatchResult
from weread_sync.core.rate_limit import RateGate
from weread_sync.logger import logger as default_logger
from weread_sync.notion.blocks import MAX_APPEND_BLOCKS, block_text
from weread_sync.sync.blocks import build_region_blocks

MARKER_HEADING_TYPE = "heading_1"


class ScanState(Enum):
    SEARCHING = "searching"
    COLLECTING = "collecting"


def marker_of(block: Dict[str, Any]) -> Optional[str]:
    """The region marker a block carries, if it is a marker heading."""
    if block.get("type") != MARKER_HEADING_TYPE:
        return None
    text = block_text(block)
    return text if text in ALL_REGION_MARKERS else None


def plan_region_deletion(blocks: List[Dict[str, Any]], region_kind: str) -> List[str]:
    """IDs of the blocks belonging to a region, in document order.

    Scans the top-level blocks once. While collecting, any marker heading
    (of either region) ends the run and is itself left alone.
    """
    marker = REGION_MARKERS[region_kind]
    state = ScanState.SEARCHING
    to_delete: List[str] = []

    for block in blocks:
        found = marker_of(block)
        if state is ScanState.SEARCHING:
            if found == marker:
                state = ScanState.COLLECTING
                to_delete.append(block["id"])
        elif found is not None:
            state = ScanState.SEARCHING
        else:
            to_delete.append(block["id"])

    return to_delete


class RegionReplaceResult:
    """Outcome of one replace_region call."""

    def __init__(self, region_kind: str):
        self.region_kind = region_kind
        self.success: bool = False
        self.deletions = BatchResult()
        self.blocks_written: int = 0
        self.batches_written: int = 0
        self.batches_total: int = 0
        self.error: Optional[str] = None

    def __bool__(self):
        return self.success

    def __str__(self):
        label = REGION_LABELS[self.region_kind]
        if not self.success:
            return f"❌ {label}区域写入失败: {self.error}"
        return (f"✅ {label}区域已更新: 删除 {len(self.deletions.succeeded)} 个旧区块，"
                f"写入 {self.blocks_written} 个区块")


class RegionReplacer:
    """Deletes and rewrites one marker-delimited region of a page."""

    def __init__(self, client, insert_gate: RateGate = None, delete_gate: RateGate = None,
                 batch_size: int = BLOCK_BATCH_SIZE, logger=None):
        """
        Args:
            client: Workspace client providing list_child_blocks, delete_block, append_blocks
            insert_gate: Gate passed between append batches
            delete_gate: Gate passed between single block deletions
            batch_size: Blocks per append call (capped by the API limit)
            logger: Logger for progress and failures
        """
        self.client = client
        self.insert_gate = insert_gate or RateGate(BLOCK_BATCH_DELAY)
        self.delete_gate = delete_gate or RateGate(BLOCK_DELETE_DELAY)
        self.batch_size = max(1, min(batch_size, MAX_APPEND_BLOCKS))
        self.logger = logger or default_logger

    def delete_region(self, page_id: str, region_kind: str) -> Optional[BatchResult]:
        """Delete every block of a region.

        Returns:
            Per-block outcomes, or None if the page could not be read
        """
        label = REGION_LABELS[region_kind]
        blocks = self.client.list_child_blocks(page_id)
        if blocks is None:
            self.logger.error(f"无法读取页面 {page_id} 的区块，跳过{label}区域")
            return None

        block_ids = plan_region_deletion(blocks, region_kind)
        result = BatchResult()
        if not block_ids:
            self.logger.debug(f"未找到需要删除的{label}区块")
            return result

        self.logger.info(f"将删除 {len(block_ids)} 个与{label}相关的区块", icon="🗑️ ")
        self.delete_gate.reset()
        for block_id in block_ids:
            self.delete_gate.wait()
            if self.client.delete_block(block_id):
                result.record(block_id, True)
            else:
                self.logger.warning(f"删除区块 {block_id} 失败，继续删除其它区块")
                result.record(block_id, False, "delete failed")

        if not result.success:
            self.logger.warning(f"{len(result.failed)} 个旧{label}区块未能删除，可能会导致内容重复")
        return result

    def append_in_batches(self, page_id: str, blocks: List[Dict[str, Any]], result: RegionReplaceResult) -> bool:
        """Append blocks in batches of at most ``batch_size``, stopping at the first failure."""
        batches = [blocks[i:i + self.batch_size] for i in range(0, len(blocks), self.batch_size)]
        result.batches_total = len(batches)

        self.insert_gate.reset()
        for index, batch in enumerate(batches):
            self.insert_gate.wait()
            start = index * self.batch_size
            self.logger.debug(f"添加第 {start + 1} 到 {start + len(batch)} 个区块...")
            if not self.client.append_blocks(page_id, batch):
                result.error = f"第 {index + 1}/{len(batches)} 批区块写入失败"
                return False
            result.batches_written += 1
            result.blocks_written += len(batch)
        return True

    def replace_region(self, page_id: str, region_kind: str,
                       content_blocks: List[Dict[str, Any]]) -> RegionReplaceResult:
        """Replace a region of a page with new content.

        Args:
            page_id: Notion page of the book
            region_kind: RegionKind.HIGHLIGHTS or RegionKind.THOUGHTS
            content_blocks: Blocks below the region header; empty writes a placeholder

        Returns:
            RegionReplaceResult, truthy on success
        """
        result = RegionReplaceResult(region_kind)
        label = REGION_LABELS[region_kind]
        self.logger.info(f"写入{label}数据到页面 {page_id}...", icon="📝")

        deletions = self.delete_region(page_id, region_kind)
        if deletions is None:
            result.error = "无法读取页面区块"
            return result
        result.deletions = deletions

        blocks = build_region_blocks(region_kind, content_blocks)
        self.logger.debug(f"共准备了 {len(blocks)} 个区块")
        if not self.append_in_batches(page_id, blocks, result):
            self.logger.error(f"写入{label}区块失败: {result.error}")
            return result

        result.success = True
        self.logger.success(str(result))
        return result
