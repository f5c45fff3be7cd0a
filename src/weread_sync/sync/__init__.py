"""
Sync Module Package

Incremental synchronization of WeRead annotations into Notion.

Structure:
    - identity.py: weids, content keys, timestamp normalization
    - merge.py: merge notes and highlights into readnote records
    - fetch.py: IncrementalFetcher - cursor-based change detection
    - region.py: RegionReplacer - marker-delimited page regions
    - blocks.py: block payloads of the page regions
    - readnotes.py: ReadnoteWriter - cross-run deduplicated row creation
    - state.py: SyncStateStore - per-book cursors on disk
    - book_sync.py: BookSyncManager - sequencing of one book's sync

Usage:
    from weread_sync.sync import BookSyncManager, SyncStateStore
"""

from weread_sync.sync.book_sync import BookSyncManager, BookSyncResult
from weread_sync.sync.fetch import FetchResult, IncrementalFetcher
from weread_sync.sync.identity import content_key, ensure_milliseconds, identity
from weread_sync.sync.merge import merge
from weread_sync.sync.readnotes import ReadnoteWriter
from weread_sync.sync.region import RegionReplacer, RegionReplaceResult, plan_region_deletion
from weread_sync.sync.state import SyncStateStore

__all__ = ['BookSyncManager', 'BookSyncResult', 'FetchResult', 'IncrementalFetcher',
           'ReadnoteWriter', 'RegionReplacer', 'RegionReplaceResult', 'SyncStateStore',
           'content_key', 'ensure_milliseconds', 'identity', 'merge', 'plan_region_deletion']
