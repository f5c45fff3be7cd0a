"""
WeRead Sync

Incrementally syncs WeRead (微信读书) highlights and notes into Notion.
"""

__version__ = "0.1.0"
