"""
Roll-up metrics and result-set shaping.

Everything here is a pure function of a record list. Metrics are rebuilt
from scratch on every aggregation and never updated incrementally.
"""
from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Optional, Sequence

from pulse.core.severity import count_by_severity
from pulse.schemas import EngagementCounts, EngagementRecord, RollupMetrics

# Reach multiplier for records that carry no view count
LIKES_TO_REACH = 10


def influence_score(counts: EngagementCounts) -> int:
    """
    Score a mention's influence from 1 to 10.

    Comments weigh twice as much as likes and shares three times; every
    hundred views count as one interaction.
    """
    weighted = counts.likes + counts.comments * 2 + counts.shares * 3
    score = int((weighted + counts.views / 100) / 50 + 0.5)
    return max(1, min(score, 10))


def estimated_reach(counts: EngagementCounts) -> int:
    return counts.views if counts.views > 0 else counts.likes * LIKES_TO_REACH


def _pct(part: int, total: int) -> float:
    return round(part * 100.0 / total, 2) if total else 0.0


def compute_rollup(records: Sequence[EngagementRecord]) -> RollupMetrics:
    """
    Compute roll-up metrics for a merged record list.

    Args:
        records: Final records of an aggregation (real and fallback)

    Returns:
        RollupMetrics; percentages are 0.0 when there are no records
    """
    total = len(records)
    if not total:
        return RollupMetrics()

    sentiments = Counter(record.derived.sentiment for record in records)
    per_source = Counter(record.source_name.value for record in records)

    return RollupMetrics(
        total_mentions=total,
        positive_pct=_pct(sentiments["positive"], total),
        negative_pct=_pct(sentiments["negative"], total),
        neutral_pct=_pct(sentiments["neutral"], total),
        total_reach=sum(estimated_reach(record.counts) for record in records),
        total_engagement=sum(record.counts.engagement for record in records),
        fallback_mentions=sum(1 for record in records if record.provenance == "fallback"),
        per_source_counts=dict(per_source),
        per_severity_counts=count_by_severity([record.derived.severity for record in records]),
    )


def filter_by_severity(
    records: Iterable[EngagementRecord],
    severity: Optional[str],
) -> List[EngagementRecord]:
    """Keep records whose severity equals ``severity``; no-op when it is None."""
    if severity is None:
        return list(records)
    return [record for record in records if record.derived.severity == severity]


def sort_records(
    records: Iterable[EngagementRecord],
    order: Optional[str],
) -> List[EngagementRecord]:
    """
    Reorder records on explicit request only.

    ``recent``: newest first. ``popular``: highest likes+comments+shares
    first. ``None`` keeps merge order. Sorting is stable.
    """
    records = list(records)
    if order == "recent":
        return sorted(records, key=lambda record: record.timestamp, reverse=True)
    if order == "popular":
        return sorted(records, key=lambda record: record.counts.engagement, reverse=True)
    return records
