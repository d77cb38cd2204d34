"""
Shared fixtures for the pulse test suite.

Nothing here touches the network: source clients are replaced by
``FakeSourceClient`` (or driven through ``httpx.MockTransport`` in
test_sources.py) and persistence uses the in-memory gateway.
"""
import asyncio
from datetime import datetime, timezone

import pytest

from pulse.config import Settings
from pulse.core.aggregator import AggregationOrchestrator
from pulse.core.metrics import influence_score
from pulse.schemas import DerivedSignals, EngagementCounts, EngagementRecord, SourceName
from pulse.services.persistence import InMemoryPersistenceGateway

RETRIEVED_AT = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeSourceClient:
    """Stands in for a SourceClient: returns ``payload`` or raises ``error``."""

    def __init__(self, source, payload=None, error=None, delay=0.0):
        self.source = source
        self.payload = payload
        self.error = error
        self.delay = delay
        self.calls = []
        self.cancelled = False

    async def fetch(self, term, locale):
        self.calls.append((term, locale))
        if self.delay:
            try:
                await asyncio.sleep(self.delay)
            except asyncio.CancelledError:
                self.cancelled = True
                raise
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        SCRAPER_BASE_URL="http://scraper.test",
        SCRAPER_API_KEY="test-key",
        SOURCE_TIMEOUT_SECONDS=2.0,
        FALLBACK_COUNT=3,
        FALLBACK_SEED=1234,
        SENTIMENT_ESTIMATOR="ratio",
        SUPABASE_URL="",
        SUPABASE_KEY="",
        DEFAULT_REGION="Abidjan",
    )


@pytest.fixture
def tiktok_items():
    return [
        {
            "id": "7301",
            "desc": "Campagne de vaccination à Abidjan #sante",
            "diggCount": 1200,
            "commentCount": 40,
            "shareCount": 12,
            "playCount": 56000,
            "createTime": 1714550400,
            "authorMeta": {"name": "ci_sante"},
        },
        {
            "id": "7302",
            "desc": "Nouvelle épidémie signalée dans le quartier",
            "diggCount": 300,
            "commentCount": 25,
            "shareCount": 30,
            "playCount": 9000,
            "createTime": 1714464000,
            "authorMeta": {"name": "info_abj"},
        },
        {
            "id": "7303",
            "desc": "great day at the market",
            "diggCount": 120,
            "commentCount": 4,
            "shareCount": 1,
            "createTime": 1714377600,
            "authorMeta": {"name": "daily_life"},
        },
    ]


@pytest.fixture
def facebook_items():
    return {
        "data": [
            {
                "postId": "fb-1",
                "message": "Conseil hygiène pour les familles",
                "reactionsCount": 80,
                "commentsCount": 6,
                "sharesCount": 2,
                "url": "https://facebook.com/posts/fb-1",
                "created_time": "2024-04-30T08:00:00+0000",
                "pageName": "Ministère de la Santé",
            }
        ]
    }


@pytest.fixture
def make_orchestrator(settings):
    """Factory: ``make_orchestrator({SourceName.TIKTOK: FakeSourceClient(...)}, ...)``."""

    def _make(clients, gateway=None, **kwargs):
        return AggregationOrchestrator(
            clients=clients,
            gateway=gateway,
            settings=settings,
            **kwargs,
        )

    return _make


@pytest.fixture
def gateway():
    return InMemoryPersistenceGateway()


@pytest.fixture
def make_record():
    """Factory for hand-built records used by metric and shaping tests."""

    def _make(
        source=SourceName.TIKTOK,
        likes=0,
        comments=0,
        shares=0,
        views=0,
        sentiment="neutral",
        severity="low",
        provenance="real",
        timestamp=RETRIEVED_AT,
        record_id=None,
    ):
        counts = EngagementCounts(likes=likes, comments=comments, shares=shares, views=views)
        return EngagementRecord(
            id=record_id or f"{source.value}-{likes}-{views}-{timestamp.timestamp():.0f}",
            source_name=source,
            search_term="covid",
            content="sample",
            timestamp=timestamp,
            counts=counts,
            derived=DerivedSignals(
                sentiment=sentiment,
                severity=severity,
                influence_score=influence_score(counts),
            ),
            provenance=provenance,
        )

    return _make
