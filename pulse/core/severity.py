"""
Keyword-bucket severity classification.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional

from pulse.config import SEVERITY_KEYWORDS
from pulse.schemas import SEVERITY_LEVELS, Severity


def classify_severity(
    content: str,
    keywords: Optional[Mapping[str, List[str]]] = None,
) -> Severity:
    """
    Classify free text into a severity level.

    Buckets are checked from ``critical`` down to ``low``; the first bucket
    with a case-insensitive substring match wins, so a critical keyword can
    never be outranked by lower-priority ones. Text with no match is ``low``.

    Args:
        content: Free text (post body, caption, title)
        keywords: Optional override of the bucket vocabulary

    Returns:
        One of "critical", "high", "medium", "low"
    """
    vocabulary = keywords if keywords is not None else SEVERITY_KEYWORDS
    text = (content or "").casefold()
    if not text:
        return "low"

    for level in SEVERITY_LEVELS:
        if any(word.casefold() in text for word in vocabulary.get(level, ())):
            return level  # type: ignore[return-value]
    return "low"


def count_by_severity(levels: List[str]) -> Dict[str, int]:
    counts = {level: 0 for level in SEVERITY_LEVELS}
    for level in levels:
        counts[level] += 1
    return counts
