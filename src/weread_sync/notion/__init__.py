"""
Notion API Client Package

This package provides a modular interface to the Notion API.

Package Structure:
    - base.py: Core client (authentication, rate limiting, request helper)
    - blocks.py: Block operations (list/delete/append)
    - pages.py: Book page operations (find/create/update)
    - database.py: Database operations (query/create row/check properties)
    - properties.py: Property payload builders

Usage:
    from weread_sync.notion import NotionClient
"""

from weread_sync.notion.base import NotionClientBase
from weread_sync.notion.blocks import BlockOperationsMixin
from weread_sync.notion.client import NotionClient
from weread_sync.notion.database import DatabaseOperationsMixin
from weread_sync.notion.pages import PageOperationsMixin

__all__ = [
    'NotionClient',
    'NotionClientBase',
    'BlockOperationsMixin',
    'PageOperationsMixin',
    'DatabaseOperationsMixin',
]
