"""
Sentiment estimation for normalized mention batches.

The default estimator is a placeholder: it applies a fixed percentage split
(40% positive, 20% negative, 40% neutral) to the volume of a batch and does
not read the text at all. It exists so that every record carries a
sentiment label and roll-up percentages are defined. Any real classifier
can replace it by implementing ``SentimentEstimator.label_batch``; callers
only depend on that method.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from pulse.config import NEGATIVE_KEYWORDS, POSITIVE_KEYWORDS, SENTIMENT_SPLIT
from pulse.schemas import Sentiment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SentimentSplit:
    positive: int = 0
    negative: int = 0
    neutral: int = 0

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral


def estimate_sentiment(
    batch_size: int,
    split: Optional[Mapping[str, int]] = None,
) -> SentimentSplit:
    """
    Split a batch volume into sentiment counts using fixed percentages.

    Positive and negative shares are floored; the remainder is neutral, so
    the three counts always add up to ``batch_size``.

    Args:
        batch_size: Number of records in the batch
        split: Percentages keyed by "positive" and "negative"

    Returns:
        SentimentSplit with non-negative counts
    """
    if batch_size <= 0:
        return SentimentSplit()
    split = split or SENTIMENT_SPLIT
    positive = batch_size * split["positive"] // 100
    negative = batch_size * split["negative"] // 100
    return SentimentSplit(
        positive=positive,
        negative=negative,
        neutral=batch_size - positive - negative,
    )


class SentimentEstimator(Protocol):
    def label_batch(self, texts: Sequence[str]) -> List[Sentiment]:
        """Return one label per text, in order."""
        ...


class RatioSentimentEstimator:
    """Labels a batch positionally from ``estimate_sentiment``: positives first,
    then negatives, then neutral."""

    def __init__(self, split: Optional[Mapping[str, int]] = None):
        self.split = split

    def label_batch(self, texts: Sequence[str]) -> List[Sentiment]:
        counts = estimate_sentiment(len(texts), self.split)
        return (
            ["positive"] * counts.positive
            + ["negative"] * counts.negative
            + ["neutral"] * counts.neutral
        )


class LexiconSentimentEstimator:
    """Keyword lexicon classifier (French/English words and emojis)."""

    def __init__(
        self,
        positive: Optional[Sequence[str]] = None,
        negative: Optional[Sequence[str]] = None,
    ):
        self.positive = [w.casefold() for w in (positive or POSITIVE_KEYWORDS)]
        self.negative = [w.casefold() for w in (negative or NEGATIVE_KEYWORDS)]

    def label(self, text: str) -> Sentiment:
        lowered = (text or "").casefold()
        positive_hits = sum(1 for word in self.positive if word in lowered)
        negative_hits = sum(1 for word in self.negative if word in lowered)
        if positive_hits > negative_hits:
            return "positive"
        if negative_hits > positive_hits:
            return "negative"
        return "neutral"

    def label_batch(self, texts: Sequence[str]) -> List[Sentiment]:
        return [self.label(text) for text in texts]


ESTIMATORS: Dict[str, type] = {
    "ratio": RatioSentimentEstimator,
    "lexicon": LexiconSentimentEstimator,
}


def get_estimator(name: str) -> SentimentEstimator:
    """Build the estimator registered under ``name`` (ratio if unknown)."""
    cls = ESTIMATORS.get(name.lower())
    if cls is None:
        logger.warning("Unknown sentiment estimator %r, using ratio split", name)
        cls = RatioSentimentEstimator
    return cls()
