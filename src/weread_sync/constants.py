"""
Constants Module

Defines constants used across the weread-sync project.
"""

# =============================================================================
# Page Regions
# =============================================================================

class RegionKind:
    """Marker-delimited regions of a book page."""
    HIGHLIGHTS = "highlights"
    THOUGHTS = "thoughts"


REGION_MARKERS = {
    RegionKind.HIGHLIGHTS: "📌 划线",
    RegionKind.THOUGHTS: "💭 想法",
}

# Headings matching any of these end the current region
ALL_REGION_MARKERS = frozenset(REGION_MARKERS.values())

REGION_LABELS = {
    RegionKind.HIGHLIGHTS: "划线",
    RegionKind.THOUGHTS: "想法",
}

REGION_EMPTY_PLACEHOLDERS = {
    RegionKind.HIGHLIGHTS: "该书暂无划线内容",
    RegionKind.THOUGHTS: "该书暂无想法",
}


# =============================================================================
# Readnote Records
# =============================================================================

READNOTE_TYPE_THOUGHT = "想法"
READNOTE_TYPE_SUMMARY = "摘要"

UNTITLED_CHAPTER = "未命名章节"
UNTITLED_BOOK = "未命名书籍"
MISSING_CONTENT = "（未提供内容）"

# Identity kinds used for fallback weids
KIND_THOUGHT = "thought"
KIND_HIGHLIGHT = "highlight"

# Timestamps above this are already in milliseconds
MAX_SECONDS_TIMESTAMP = 9999999999


# =============================================================================
# Notion API
# =============================================================================

NOTION_API_BASE_URL = "https://api.notion.com/v1"
NOTION_VERSION = "2022-06-28"

# Notion rich text content is capped at 2000 characters
RICH_TEXT_MAX_LENGTH = 1900

BOOK_PAGE_ICON = "📘"
READNOTE_ICON = "✏️"


class BookProperty:
    """Property names of the books database."""
    TITLE = "书名"
    BOOK_ID = "书籍ID"
    ISBN = "ISBN"
    AUTHOR = "作者"
    CATEGORY = "分类"
    COVER = "封面"
    START_READING = "开始阅读时间"
    LAST_READING = "最后阅读时间"
    INTRO = "简介"
    PROGRESS = "阅读进度"
    READING_TIME = "阅读时长"
    READING_DAYS = "阅读天数"
    LINK = "链接"
    STATUS = "阅读状态"
    LATEST_CHAPTER = "最新阅读章节"
    PUBLISHER = "出版社"


class ReadnoteProperty:
    """Property names of the readnote database."""
    CONTENT = "内容"
    NOTE = "笔记"
    TYPE = "类型"
    CHAPTER_TITLE = "章节标题"
    CREATED_AT = "创建时间"
    BOOK = "书籍"
    WEID = "WEID"


REQUIRED_BOOK_PROPERTIES = [BookProperty.TITLE, BookProperty.BOOK_ID, BookProperty.AUTHOR]
REQUIRED_READNOTE_PROPERTIES = [
    ReadnoteProperty.CONTENT, ReadnoteProperty.NOTE, ReadnoteProperty.TYPE,
    ReadnoteProperty.CHAPTER_TITLE, ReadnoteProperty.CREATED_AT,
    ReadnoteProperty.BOOK, ReadnoteProperty.WEID,
]


class ReadingStatus:
    FINISHED = "已读"
    UNREAD = "未读"
    STALLED = "搁置"
    READING = "在读"


# Books untouched for longer than this are considered stalled
STALLED_AFTER_SECONDS = 30 * 24 * 60 * 60


# =============================================================================
# WeRead API
# =============================================================================

WEREAD_API_BASE_URL = "https://i.weread.qq.com"
WEREAD_WEB_URL = "https://weread.qq.com"
WEREAD_BOOK_URL_TEMPLATE = "https://weread.qq.com/web/bookDetail/{book_id}"

# errcode returned when the cookie has expired
WEREAD_ERRCODE_LOGIN_EXPIRED = -2012

# listType for "my reviews" in /review/list
WEREAD_REVIEW_LIST_TYPE = 11
