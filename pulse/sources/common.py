"""
Common value coercion helpers for vendor payloads.
"""
from __future__ import annotations

import hashlib
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as dateparser

# Epoch values at or above this are milliseconds (year ~5138 in seconds)
EPOCH_MS_THRESHOLD = 100_000_000_000


def make_record_id(*parts: str) -> str:
    """
    Generate a deterministic ID for an item that carries no vendor id.

    Args:
        *parts: Identifying strings (source, term, url, content, position)

    Returns:
        16-character hexadecimal string ID
    """
    key = "|".join(parts).encode("utf-8", "ignore")
    return hashlib.blake2b(key, digest_size=8).hexdigest()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a vendor timestamp into an aware UTC datetime.

    Accepts epoch seconds, epoch milliseconds, numeric strings of either,
    and ISO-8601 / RFC 2822 style date strings.

    Args:
        value: Raw timestamp value

    Returns:
        UTC datetime, or None if the value is missing or unparseable
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            value = float(value)
        except ValueError:
            return _parse_date_string(value)

    if isinstance(value, (int, float)):
        if value < 0:
            return None
        if value >= EPOCH_MS_THRESHOLD:
            value = value / 1000.0
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    return None


def _parse_date_string(value: str) -> Optional[datetime]:
    try:
        parsed = dateparser.parse(value)
    except (ValueError, OverflowError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo:
        return parsed.astimezone(timezone.utc)
    return parsed.replace(tzinfo=timezone.utc)


def coerce_count(value: Any) -> Optional[int]:
    """
    Coerce a vendor counter into a non-negative int.

    Args:
        value: int, float or numeric string (thousands separators allowed)

    Returns:
        The count, or None when the value is not a usable counter
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").replace(" ", "")
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    if number != number or number < 0 or number == float("inf"):  # NaN, negative, inf
        return None
    return int(number)


def clean_text(text: Any) -> str:
    """
    Clean and normalize text content.

    Args:
        text: Raw text value or None

    Returns:
        Cleaned text string, empty string if input is not text
    """
    if not isinstance(text, str):
        return ""
    return " ".join(text.split())
