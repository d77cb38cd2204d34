"""
Shared utility functions for the aggregation engine.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import List
from urllib.parse import urlparse

import tldextract

# Bundled public-suffix snapshot only; never fetch the list at runtime
_extract = tldextract.TLDExtract(cache_dir=None, suffix_list_urls=())

HASHTAG_PATTERN = re.compile(r"#[\wÀ-ſ]+")


def now_utc() -> datetime:
    """
    Get current UTC datetime with timezone information.

    Returns:
        Current UTC datetime
    """
    return datetime.now(timezone.utc)


def extract_domain_from_url(url: str | None) -> str:
    """
    Extract the registered domain from a URL.

    Args:
        url: Full URL string

    Returns:
        Normalized domain name in lowercase, empty string when unknown
    """
    if not url:
        return ""
    extracted = _extract(url)
    if extracted.suffix:
        return f"{extracted.domain}.{extracted.suffix}".lower()
    return (extracted.domain or urlparse(url).netloc).lower()


def extract_hashtags(text: str, limit: int = 5) -> List[str]:
    """Return up to ``limit`` lowercase hashtags in order of appearance."""
    return [tag.lower() for tag in HASHTAG_PATTERN.findall(text or "")][:limit]
