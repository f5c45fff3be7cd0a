"""
Identity Module

Stable identities (weids) for annotation items, content keys for cross-type
deduplication, and timestamp normalization.
"""

import hashlib
import re
from typing import Optional, Union

from weread_sync.constants import MAX_SECONDS_TIMESTAMP

_WHITESPACE = re.compile(r"\s+")


def identity(kind: str, provider_id: Optional[Union[str, int]], book_id: str,
             text: str, timestamp: Optional[Union[int, str]] = None) -> str:
    """Return the weid of an annotation item.

    The provider-issued id (reviewId / bookmarkId) is used verbatim when
    present. Otherwise the weid is ``"<kind>-<md5>"`` over book id, kind,
    trimmed text and raw timestamp, so the same item always maps to the same
    weid across runs.

    Args:
        kind: "thought" or "highlight"
        provider_id: Identifier issued by WeRead, if any
        book_id: Owning book
        text: Item text, already trimmed
        timestamp: Raw provider timestamp
    """
    if provider_id is not None and str(provider_id) != "":
        return str(provider_id)
    return fallback_identity(kind, book_id, text, timestamp)


def fallback_identity(kind: str, book_id: str, text: str,
                      timestamp: Optional[Union[int, str]] = None) -> str:
    ts = "" if timestamp is None or timestamp == 0 or timestamp == "" else str(timestamp)
    source = f"{book_id or 'unknown'}-{kind}-{text}-{ts}"
    digest = hashlib.md5(source.encode("utf-8")).hexdigest()
    return f"{kind}-{digest}"


def normalize_text(text: str) -> str:
    """Strip all whitespace and lowercase."""
    return _WHITESPACE.sub("", text).lower()


def content_key(book_id: str, text: str) -> str:
    """Key identifying the same passage regardless of whitespace and case."""
    owner = book_id or "unknown"
    if not text:
        return f"{owner}::empty"
    return f"{owner}::{normalize_text(text)}"


def ensure_milliseconds(timestamp: Optional[Union[int, float, str]]) -> Optional[int]:
    """Convert a WeRead timestamp (usually seconds) to epoch milliseconds."""
    if timestamp is None or isinstance(timestamp, bool):
        return None
    if isinstance(timestamp, (int, float)):
        try:
            value = int(timestamp)
        except (ValueError, OverflowError):
            return None
    else:
        match = re.match(r"\s*(-?\d+)", str(timestamp))
        if not match:
            return None
        value = int(match.group(1))
    return value if value > MAX_SECONDS_TIMESTAMP else value * 1000
