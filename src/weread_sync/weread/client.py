"""
WeRead API Client

Reads book metadata, highlights (划线) and notes (想法) from the WeRead web
API with the user's cookie. Every method converts transport and API errors
into a logged failure value: ``None`` for book info, a page with
``ok=False`` for the annotation streams.
"""

from typing import Any, Dict, List, Optional

import requests

from weread_sync.constants import WEREAD_API_BASE_URL, WEREAD_ERRCODE_LOGIN_EXPIRED, WEREAD_REVIEW_LIST_TYPE, WEREAD_WEB_URL
from weread_sync.core.rate_limit import RateGate
from weread_sync.core.retry import api_request_with_retry
from weread_sync.logger import logger as default_logger
from weread_sync.models import BookInfo, HighlightChapter, HighlightItem, HighlightsPage, ThoughtItem, ThoughtsPage


class WeReadAPIError(Exception):
    """WeRead answered with a non-zero errcode."""

    def __init__(self, errcode: int, message: str = ""):
        super().__init__(f"errcode={errcode} {message}".strip())
        self.errcode = errcode


class WeReadClient:
    """Client for the WeRead web API."""

    # WeRead starts rejecting bursts quickly; keep requests apart
    _rate_limit_interval = 0.3

    def __init__(self, cookie: str, session: requests.Session = None, logger=None,
                 gate: RateGate = None):
        self.cookie = cookie
        self.logger = logger or default_logger
        self.session = session or requests.Session()
        self.session.headers.update({
            "Cookie": cookie,
            "User-Agent": ("Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
                           "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"),
            "Accept": "application/json, text/plain, */*",
            "Referer": f"{WEREAD_WEB_URL}/",
        })
        self.gate = gate or RateGate(self._rate_limit_interval)

    # =========================================================================
    # Transport
    # =========================================================================

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """GET a WeRead endpoint and return its JSON body.

        Raises:
            requests.RequestException: network failure or non-2xx status
            WeReadAPIError: errcode in the body
        """
        self.gate.wait()
        url = f"{WEREAD_API_BASE_URL}{path}"
        response = api_request_with_retry("GET", url, session=self.session, params=params)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise WeReadAPIError(0, f"unexpected response type {type(data).__name__}")

        errcode = data.get("errcode", data.get("errCode", 0))
        if errcode:
            if errcode == WEREAD_ERRCODE_LOGIN_EXPIRED:
                raise WeReadAPIError(errcode, "登录已过期，请更新 WEREAD_COOKIE")
            raise WeReadAPIError(errcode, data.get("errmsg", data.get("errMsg", "")))
        return data

    def _log_failure(self, action: str, error: Exception):
        if isinstance(error, requests.HTTPError) and error.response is not None:
            body = error.response.text[:300] if error.response.text else ""
            self.logger.error(f"{action}失败: 状态码 {error.response.status_code} {body}")
        else:
            self.logger.error(f"{action}失败: {error}")

    def check_login(self) -> bool:
        """Whether the cookie is accepted by WeRead."""
        try:
            self._get("/user/notebooks", {})
        except (requests.RequestException, ValueError, WeReadAPIError) as e:
            self._log_failure("验证微信读书登录状态", e)
            return False
        return True

    # =========================================================================
    # Book Info
    # =========================================================================

    def get_book_info(self, book_id: str) -> Optional[BookInfo]:
        """Fetch book metadata plus reading progress (best effort)."""
        try:
            data = self._get("/book/info", {"bookId": book_id})
        except (requests.RequestException, ValueError, WeReadAPIError) as e:
            self._log_failure(f"获取书籍 {book_id} 信息", e)
            return None

        progress = self.get_reading_progress(book_id)
        try:
            data.setdefault("bookId", book_id)
            return BookInfo.from_api(data, progress=progress)
        except ValueError as e:
            self.logger.error(f"书籍 {book_id} 信息格式错误: {e}")
            return None

    def get_reading_progress(self, book_id: str) -> Dict[str, Any]:
        """Reading progress of a book; empty dict when unavailable."""
        params = {"bookId": book_id, "readingDetail": 1, "readingBookIndex": 1, "finishedDate": 1}
        try:
            data = self._get("/book/readinfo", params)
        except (requests.RequestException, ValueError, WeReadAPIError) as e:
            self.logger.warning(f"获取书籍 {book_id} 阅读进度失败: {e}")
            return {}

        return {
            "progress": data.get("readingProgress"),
            "startReadingTime": data.get("startReadingTime"),
            "updateTime": data.get("updateTime"),
            "finishTime": data.get("finishedDate") or data.get("finishTime"),
            "readingTime": data.get("readingTime"),
            "summary": data.get("summary"),
        }

    # =========================================================================
    # Highlights
    # =========================================================================

    def get_highlights(self, book_id: str, cursor: Optional[str] = None) -> HighlightsPage:
        """Fetch highlights grouped by chapter.

        Args:
            book_id: WeRead book id
            cursor: synckey of the previous fetch, None for a full fetch
        """
        params = {"bookId": book_id}
        if cursor:
            params["synckey"] = cursor
        try:
            data = self._get("/book/bookmarklist", params)
        except (requests.RequestException, ValueError, WeReadAPIError) as e:
            self._log_failure(f"获取书籍 {book_id} 划线", e)
            return HighlightsPage(cursor=cursor, has_update=False, ok=False)

        chapters = self._group_highlights(data.get("updated") or [], data.get("chapters") or [])
        new_cursor = _cursor_of(data)
        count = sum(len(c.highlights) for c in chapters)
        has_update = _has_update(cursor, new_cursor, count)
        self.logger.debug(f"书籍 {book_id} 划线 {count} 条，synckey {cursor} -> {new_cursor}")
        return HighlightsPage(chapters=chapters, cursor=new_cursor if new_cursor is not None else cursor,
                              has_update=has_update)

    def _group_highlights(self, bookmarks: List[Dict[str, Any]],
                          chapter_meta: List[Dict[str, Any]]) -> List[HighlightChapter]:
        titles: Dict[int, str] = {}
        order: List[int] = []
        for meta in chapter_meta:
            if not isinstance(meta, dict) or meta.get("chapterUid") is None:
                continue
            try:
                uid = int(meta["chapterUid"])
            except (TypeError, ValueError):
                self.logger.warning(f"跳过无效章节信息: chapterUid={meta['chapterUid']!r}")
                continue
            titles[uid] = meta.get("title") or meta.get("chapterTitle") or ""
            order.append(uid)

        grouped: Dict[int, HighlightChapter] = {}
        for raw in bookmarks:
            try:
                item = HighlightItem.from_api(raw)
            except ValueError as e:
                self.logger.warning(f"跳过无效划线: {e}")
                continue
            chapter = grouped.get(item.chapter_uid)
            if chapter is None:
                chapter = HighlightChapter(item.chapter_uid, titles.get(item.chapter_uid) or item.chapter_title)
                grouped[item.chapter_uid] = chapter
                if item.chapter_uid not in titles:
                    order.append(item.chapter_uid)
            if not item.chapter_title:
                item.chapter_title = chapter.chapter_title
            chapter.highlights.append(item)

        return [grouped[uid] for uid in order if uid in grouped]

    # =========================================================================
    # Thoughts
    # =========================================================================

    def get_thoughts(self, book_id: str, cursor: Optional[str] = None) -> ThoughtsPage:
        """Fetch the user's own notes of a book."""
        params = {"bookId": book_id, "listType": WEREAD_REVIEW_LIST_TYPE, "mine": 1, "synckey": cursor or 0}
        try:
            data = self._get("/review/list", params)
        except (requests.RequestException, ValueError, WeReadAPIError) as e:
            self._log_failure(f"获取书籍 {book_id} 想法", e)
            return ThoughtsPage(cursor=cursor, has_update=False, ok=False)

        items: List[ThoughtItem] = []
        for raw in data.get("reviews") or []:
            try:
                items.append(ThoughtItem.from_api(raw))
            except ValueError as e:
                self.logger.warning(f"跳过无效想法: {e}")

        new_cursor = _cursor_of(data)
        has_update = _has_update(cursor, new_cursor, len(items))
        self.logger.debug(f"书籍 {book_id} 想法 {len(items)} 条，synckey {cursor} -> {new_cursor}")
        return ThoughtsPage(items=items, cursor=new_cursor if new_cursor is not None else cursor,
                            has_update=has_update)


def _cursor_of(data: Dict[str, Any]) -> Optional[str]:
    value = data.get("synckey", data.get("syncKey"))
    if value is None or value == "":
        return None
    return str(value)


def _has_update(submitted: Optional[str], returned: Optional[str], item_count: int) -> bool:
    """A stream advanced when its cursor moved; without a cursor, when items came back."""
    if returned is None:
        return item_count > 0
    return returned != (str(submitted) if submitted is not None else None)
