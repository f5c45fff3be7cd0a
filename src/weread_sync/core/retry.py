"""
HTTP 重试

WeRead 与 Notion 的请求都经过 api_request_with_retry：网络异常和
429/5xx 响应按指数退避重试，429 的 Retry-After 头会拉长等待时间。
"""

import time
from typing import Callable, Optional

import requests

from weread_sync.logger import logger
from weread_sync.config import API_MAX_RETRIES, API_RETRY_BASE_DELAY, REQUEST_TIMEOUT


RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


def backoff_delay(attempt: int, base_delay: float, response: Optional[requests.Response] = None) -> float:
    """第 attempt 次失败后的等待秒数，服务端给出的 Retry-After 优先"""
    delay = base_delay * (2 ** attempt)
    if response is None:
        return delay

    retry_after = response.headers.get("Retry-After")
    if not retry_after:
        return delay
    try:
        return max(delay, float(retry_after))
    except ValueError:
        return delay


def api_request_with_retry(
    method: str,
    url: str,
    max_retries: int = API_MAX_RETRIES,
    base_delay: float = API_RETRY_BASE_DELAY,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs
) -> requests.Response:
    """
    发送请求，失败时重试

    Args:
        method: HTTP 方法
        url: 请求地址
        max_retries: 首次请求之外最多重试几次
        base_delay: 退避基数（秒）
        session: 使用的 requests.Session，为空时直接用 requests
        sleep: 等待函数，测试中替换
        **kwargs: 透传给 requests，未指定 timeout 时使用 REQUEST_TIMEOUT

    Returns:
        最后一次收到的响应；重试耗尽时可能仍是 429/5xx，由调用方判断

    Raises:
        requests.exceptions.RequestException: 最后一次尝试仍然是网络异常
    """
    send = (session or requests).request
    kwargs.setdefault("timeout", REQUEST_TIMEOUT)

    attempt = 0
    while True:
        try:
            response = send(method, url, **kwargs)
        except requests.exceptions.RequestException as e:
            if attempt >= max_retries:
                logger.error(f"请求 {url} 重试 {max_retries} 次后仍失败: {e}")
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(f"请求异常: {e}，等待 {delay:.1f}s 后第 {attempt + 1} 次重试")
        else:
            if response.status_code not in RETRYABLE_STATUS_CODES or attempt >= max_retries:
                return response
            delay = backoff_delay(attempt, base_delay, response)
            logger.warning(f"服务端返回 {response.status_code}，等待 {delay:.1f}s 后第 {attempt + 1} 次重试")

        sleep(delay)
        attempt += 1
