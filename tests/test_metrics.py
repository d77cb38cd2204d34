from datetime import timedelta

import pytest

from conftest import RETRIEVED_AT
from pulse.core.metrics import (
    compute_rollup,
    estimated_reach,
    filter_by_severity,
    influence_score,
    sort_records,
)
from pulse.schemas import EngagementCounts, SourceName


@pytest.mark.parametrize(
    "counts, expected",
    [
        (EngagementCounts(), 1),
        (EngagementCounts(likes=120, comments=4, shares=1), 3),
        (EngagementCounts(likes=100, views=10000), 4),
        (EngagementCounts(likes=1000, comments=200, shares=100), 10),
    ],
)
def test_influence_score(counts, expected):
    assert influence_score(counts) == expected


def test_estimated_reach_prefers_views():
    assert estimated_reach(EngagementCounts(likes=7, views=500)) == 500
    assert estimated_reach(EngagementCounts(likes=7)) == 70


def test_rollup_empty():
    metrics = compute_rollup([])
    assert metrics.total_mentions == 0
    assert (metrics.positive_pct, metrics.negative_pct, metrics.neutral_pct) == (0.0, 0.0, 0.0)
    assert metrics.per_source_counts == {}


def test_rollup_counts_and_percentages(make_record):
    records = [
        make_record(likes=10, comments=2, shares=1, views=1000, sentiment="positive", severity="critical"),
        make_record(source=SourceName.FACEBOOK, likes=5, sentiment="negative", provenance="fallback"),
        make_record(source=SourceName.FACEBOOK, likes=1, sentiment="neutral"),
    ]
    metrics = compute_rollup(records)

    assert metrics.total_mentions == 3
    assert metrics.positive_pct == 33.33
    assert metrics.negative_pct == 33.33
    assert metrics.neutral_pct == 33.33
    assert metrics.total_reach == 1000 + 50 + 10
    assert metrics.total_engagement == 13 + 5 + 1
    assert metrics.fallback_mentions == 1
    assert metrics.per_source_counts == {"tiktok": 1, "facebook": 2}
    assert metrics.per_severity_counts["critical"] == 1
    assert metrics.per_severity_counts["low"] == 2


def test_rollup_percentages_sum_to_100(make_record):
    records = [make_record(sentiment=s) for s in ["positive"] * 4 + ["negative"] * 2 + ["neutral"] * 5]
    metrics = compute_rollup(records)
    total = metrics.positive_pct + metrics.negative_pct + metrics.neutral_pct
    assert total == pytest.approx(100, abs=0.05)


def test_filter_by_severity(make_record):
    records = [make_record(severity="low"), make_record(severity="critical", likes=1)]
    assert filter_by_severity(records, None) == records
    assert [r.derived.severity for r in filter_by_severity(records, "critical")] == ["critical"]
    assert filter_by_severity(records, "high") == []


def test_sort_records(make_record):
    old = make_record(likes=500, timestamp=RETRIEVED_AT - timedelta(days=3))
    new = make_record(likes=5, timestamp=RETRIEVED_AT)
    mid = make_record(likes=50, timestamp=RETRIEVED_AT - timedelta(days=1))
    records = [old, new, mid]

    assert sort_records(records, None) == records
    assert sort_records(records, "recent") == [new, mid, old]
    assert sort_records(records, "popular") == [old, mid, new]
