"""
Core Module Package

Core functionality used across the application:
- retry: HTTP retry with exponential backoff
- rate_limit: fixed-interval gate for rate limited APIs
- outcome: per-item outcomes of best-effort loops

Usage:
    from weread_sync.core import RateGate, BatchResult
    from weread_sync.core.retry import api_request_with_retry
"""

from weread_sync.core.outcome import BatchResult, ItemOutcome
from weread_sync.core.rate_limit import RateGate
from weread_sync.core.retry import api_request_with_retry

__all__ = ['BatchResult', 'ItemOutcome', 'RateGate', 'api_request_with_retry']
