"""
Synthetic fallback mentions for sources that failed or returned nothing.

Every record produced here is tagged ``provenance='fallback'``. All
randomness comes from the injected ``random.Random`` so a fixed seed gives
a reproducible batch.
"""
from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from pulse.core.metrics import influence_score
from pulse.core.sentiment import RatioSentimentEstimator, SentimentEstimator
from pulse.core.severity import classify_severity
from pulse.schemas import DerivedSignals, EngagementCounts, EngagementRecord, Severity, SourceName
from pulse.utils import extract_hashtags, now_utc

logger = logging.getLogger(__name__)

MAX_AGE = timedelta(days=90)


class FallbackProfile(NamedTuple):
    label: str
    author: str
    likes: Tuple[int, int]
    comments: Tuple[int, int]
    shares: Tuple[int, int]
    views: Tuple[int, int]


# Engagement ranges per platform, inclusive
FALLBACK_PROFILES: Dict[SourceName, FallbackProfile] = {
    SourceName.TIKTOK: FallbackProfile(
        "TikTok video", "@tiktok_user_{n}",
        (1000, 51000), (50, 2050), (20, 1020), (10000, 510000),
    ),
    SourceName.INSTAGRAM: FallbackProfile(
        "Instagram post", "@insta_user_{n}",
        (500, 10500), (20, 520), (5, 205), (5000, 105000),
    ),
    SourceName.TWITTER: FallbackProfile(
        "Tweet", "@twitter_user_{n}",
        (100, 5100), (10, 210), (5, 105), (2000, 52000),
    ),
    SourceName.FACEBOOK: FallbackProfile(
        "Facebook post", "Facebook User {n}",
        (200, 3200), (15, 315), (8, 158), (3000, 83000),
    ),
    SourceName.YOUTUBE: FallbackProfile(
        "YouTube video", "YouTube Channel {n}",
        (300, 8300), (25, 825), (15, 315), (10000, 210000),
    ),
    SourceName.WEB: FallbackProfile(
        "Web article", "web-source-{n}",
        (20, 100), (5, 20), (3, 28), (0, 0),
    ),
}


class FallbackGenerator:
    """Produces plausible placeholder mentions for one source at a time."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
        estimator: Optional[SentimentEstimator] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.rng = rng or random.Random(seed)
        self.estimator = estimator or RatioSentimentEstimator()
        self.clock = clock

    def generate(
        self,
        term: str,
        source: SourceName,
        region: Optional[str],
        count: int,
        severity: Optional[Severity] = None,
    ) -> List[EngagementRecord]:
        """
        Build ``count`` synthetic records for ``source``.

        Args:
            term: Search term the records pretend to match
            source: Source being stood in for
            region: Region hint copied onto every record
            count: Number of records; <= 0 yields []
            severity: Level to stamp on every record instead of classifying
                the placeholder text (used when the search is severity-filtered)

        Returns:
            Records tagged provenance='fallback' with approximate timestamps
        """
        if count <= 0:
            return []

        profile = FALLBACK_PROFILES[source]
        now = self.clock()
        place = f" ({region})" if region else ""
        contents = [f"{profile.label} about {term}{place}, sample {n}" for n in range(1, count + 1)]
        sentiments = self.estimator.label_batch(contents)

        records = []
        for n, (content, sentiment) in enumerate(zip(contents, sentiments), start=1):
            counts = EngagementCounts(
                likes=self.rng.randint(*profile.likes),
                comments=self.rng.randint(*profile.comments),
                shares=self.rng.randint(*profile.shares),
                views=self.rng.randint(*profile.views),
            )
            age = timedelta(seconds=self.rng.uniform(0, MAX_AGE.total_seconds()))
            records.append(
                EngagementRecord(
                    id=f"fallback-{source.value}-{self.rng.getrandbits(48):012x}",
                    source_name=source,
                    search_term=term,
                    author=profile.author.format(n=n),
                    content=content,
                    url=None,
                    timestamp=now - age,
                    timestamp_approximate=True,
                    counts=counts,
                    derived=DerivedSignals(
                        sentiment=sentiment,
                        severity=severity or classify_severity(content),
                        influence_score=influence_score(counts),
                    ),
                    tags=extract_hashtags(content),
                    region=region,
                    provenance="fallback",
                )
            )

        logger.info("Generated %d fallback records for %s", len(records), source.value)
        return records
