"""
Base Notion Client Module

Contains core client functionality:
- Authentication headers
- Rate limiting
- Request helper with retry and error logging
"""

from typing import Any, Dict, Optional

import requests

from weread_sync.constants import NOTION_API_BASE_URL, NOTION_VERSION
from weread_sync.core.rate_limit import RateGate
from weread_sync.core.retry import api_request_with_retry
from weread_sync.logger import logger as default_logger


class NotionClientBase:
    """Base class for the Notion API client with authentication and rate limiting."""

    # Notion allows an average of 3 requests per second
    _rate_limit_interval = 0.34

    def __init__(self, api_key: str, session: requests.Session = None, logger=None,
                 gate: RateGate = None):
        """Initialize the Notion client.

        Args:
            api_key: Notion integration secret
            session: Optional pre-configured requests session
            logger: Logger used for request failures
            gate: Rate gate shared by all requests of this client
        """
        self.api_key = api_key
        self.logger = logger or default_logger
        self.session = session or requests.Session()
        self.session.headers.update(self._headers())
        self.gate = gate or RateGate(self._rate_limit_interval)

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, action: str,
                 payload: Dict[str, Any] = None, params: Dict[str, Any] = None) -> Optional[Dict[str, Any]]:
        """Send a request and return the decoded body.

        Transport errors and non-2xx responses are logged with status and
        response body and reported as None.

        Args:
            method: HTTP method
            path: Path below the API base URL
            action: Human readable description used in log messages
            payload: JSON body
            params: Query parameters
        """
        self.gate.wait()
        url = f"{NOTION_API_BASE_URL}{path}"
        try:
            response = api_request_with_retry(method, url, session=self.session, json=payload, params=params)
        except requests.exceptions.RequestException as e:
            self.logger.error(f"{action}失败: {e}")
            return None

        if not 200 <= response.status_code < 300:
            self.logger.error(f"{action}失败: 状态码 {response.status_code}")
            self.logger.debug(f"响应: {response.text[:300]}")
            return None

        try:
            return response.json()
        except ValueError:
            return {}
