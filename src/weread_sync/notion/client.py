from weread_sync.notion.base import NotionClientBase
from weread_sync.notion.blocks import BlockOperationsMixin
from weread_sync.notion.database import DatabaseOperationsMixin
from weread_sync.notion.pages import PageOperationsMixin


class NotionClient(NotionClientBase, BlockOperationsMixin, PageOperationsMixin, DatabaseOperationsMixin):
    """
    Wrapper around the Notion REST API.
    Handles authentication, rate limiting and the block, page and database
    operations used by the sync.
    """
