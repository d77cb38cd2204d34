"""
Normalization of vendor payloads into canonical EngagementRecords.

Vendors wrap their result lists in different envelopes and name the same
attribute differently (``diggCount`` vs ``likeCount`` vs
``public_metrics.like_count``). Both problems are handled with ordered,
declarative tables:

* ``ENVELOPE_RESOLVERS``: ``(name, predicate, extractor)`` triples tried in
  order; the first predicate that matches yields the item list. A payload
  no resolver recognises normalizes to zero records, it is not an error.
* ``GENERIC_FIELDS`` / ``SOURCE_FIELDS``: candidate dotted paths per logical
  attribute. Source-specific candidates are tried before generic ones, and
  every top-level name is tried before any nested path. The first present,
  usable value wins.

Nothing here is random: the same payload, source, term and ``retrieved_at``
always produce the same records.
"""
from __future__ import annotations

import logging
from datetime import datetime
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from pulse.core.metrics import influence_score
from pulse.core.sentiment import RatioSentimentEstimator, SentimentEstimator
from pulse.core.severity import classify_severity
from pulse.models import JsonDict, RawPayload
from pulse.schemas import (
    DerivedSignals,
    EngagementCounts,
    EngagementRecord,
    SourceName,
)
from pulse.sources.common import clean_text, coerce_count, make_record_id, parse_timestamp
from pulse.utils import extract_domain_from_url, extract_hashtags, now_utc

logger = logging.getLogger(__name__)

# A candidate is a dotted path, or a tuple of paths whose texts are joined
Candidate = Union[str, Tuple[str, ...]]

COUNT_FIELDS = ("likes", "comments", "shares", "views")
UNKNOWN_AUTHOR = "unknown"


def get_path(item: Any, path: str) -> Any:
    """Walk a dotted path through nested dicts; None if any hop is missing."""
    current = item
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def _list_at(path: str) -> Callable[[Any], bool]:
    return lambda raw: isinstance(raw, dict) and isinstance(get_path(raw, path), list)


def _take(path: str) -> Callable[[Any], list]:
    return lambda raw: get_path(raw, path)


ENVELOPE_RESOLVERS: Tuple[Tuple[str, Callable[[Any], bool], Callable[[Any], list]], ...] = (
    ("bare list", lambda raw: isinstance(raw, list), lambda raw: raw),
    ("items", _list_at("items"), _take("items")),
    ("data", _list_at("data"), _take("data")),
    ("data.items", _list_at("data.items"), _take("data.items")),
    ("posts", _list_at("posts"), _take("posts")),
    ("tweets", _list_at("tweets"), _take("tweets")),
    ("videos", _list_at("videos"), _take("videos")),
    ("results", _list_at("results"), _take("results")),
)


def resolve_envelope(raw: RawPayload) -> List[JsonDict]:
    """
    Find the item list inside a vendor payload.

    Args:
        raw: Decoded JSON as returned by a source client

    Returns:
        The dict items of the first matching envelope, or [] if none matches
    """
    for name, predicate, extractor in ENVELOPE_RESOLVERS:
        if predicate(raw):
            items = extractor(raw)
            return [item for item in items if isinstance(item, dict)]

    shape = sorted(raw.keys()) if isinstance(raw, dict) else type(raw).__name__
    logger.debug("No known envelope in payload (shape: %s); treating as empty", shape)
    return []


GENERIC_FIELDS: Dict[str, Tuple[Candidate, ...]] = {
    "id": ("id", "_id", "postId", "post_id", "aweme_id", "pk", "id.videoId"),
    "content": (
        "text", "content", "desc", "message", "caption", "title", "description",
    ),
    "author": (
        "author", "username", "ownerUsername", "channelTitle", "from",
        "authorMeta.name", "user.username", "user.screen_name", "user.name",
        "snippet.channelTitle",
    ),
    "url": ("url", "webVideoUrl", "permalink_url", "postUrl", "link"),
    "timestamp": (
        "timestamp", "createTimeISO", "createTime", "created_at", "createdAt",
        "created_time", "taken_at", "publishedAt", "date", "snippet.publishedAt",
    ),
    "likes": (
        "likes", "likeCount", "likesCount", "diggCount", "favoriteCount",
        "favorite_count", "like_count", "reactionsCount",
        "stats.diggCount", "stats.likeCount", "statistics.likeCount",
        "public_metrics.like_count", "reactions.count", "likes.count",
    ),
    "comments": (
        "comments", "commentCount", "commentsCount", "comments_count",
        "reply_count", "replyCount",
        "stats.commentCount", "statistics.commentCount",
        "public_metrics.reply_count", "comments.count",
    ),
    "shares": (
        "shares", "shareCount", "sharesCount", "retweet_count", "retweetCount",
        "stats.shareCount", "public_metrics.retweet_count", "shares.count",
    ),
    "views": (
        "views", "playCount", "viewCount", "view_count", "videoViewCount",
        "videoPlayCount",
        "stats.playCount", "statistics.viewCount", "public_metrics.impression_count",
    ),
    "location": (
        "locationCreated", "locationName", "location.name", "location.city",
        "place.name", "geo.city",
    ),
}

SOURCE_FIELDS: Dict[SourceName, Dict[str, Tuple[Candidate, ...]]] = {
    SourceName.TIKTOK: {
        "likes": ("diggCount", "stats.diggCount"),
        "author": ("authorMeta.name", "author.uniqueId"),
    },
    SourceName.INSTAGRAM: {
        "content": ("caption",),
        "author": ("ownerUsername", "user.username"),
        "likes": ("likesCount", "like_count"),
    },
    SourceName.TWITTER: {
        "author": ("author.userName", "author.username", "user.screen_name"),
        "likes": ("likeCount", "favorite_count", "public_metrics.like_count"),
        "shares": ("retweetCount", "retweet_count", "public_metrics.retweet_count"),
    },
    SourceName.FACEBOOK: {
        "content": ("message", "text", "story"),
        "author": ("from.name", "user.name", "pageName"),
        "likes": ("reactionsCount", "likes.count", "reactions.count"),
    },
    SourceName.YOUTUBE: {
        "content": (("title", "description"), ("snippet.title", "snippet.description")),
        "author": ("channelName", "channelTitle", "snippet.channelTitle"),
    },
    SourceName.WEB: {
        "content": (("title", "snippet"), ("title", "content")),
        "author": ("domain", "siteName", "source.name"),
    },
}


def _depth(candidate: Candidate) -> int:
    paths = (candidate,) if isinstance(candidate, str) else candidate
    return max(path.count(".") for path in paths)


@lru_cache(maxsize=None)
def field_candidates(source: SourceName, attribute: str) -> Tuple[Candidate, ...]:
    """
    Ordered candidates for one attribute of one source.

    Source-specific candidates precede generic ones; the result is then
    stably sorted by nesting depth so top-level names always win over
    nested paths.
    """
    specific = SOURCE_FIELDS.get(source, {}).get(attribute, ())
    merged: List[Candidate] = []
    for candidate in (*specific, *GENERIC_FIELDS.get(attribute, ())):
        if candidate not in merged:
            merged.append(candidate)
    return tuple(sorted(merged, key=_depth))


def _text_value(item: JsonDict, candidate: Candidate) -> str:
    if isinstance(candidate, str):
        return clean_text(get_path(item, candidate))
    parts = [clean_text(get_path(item, path)) for path in candidate]
    return " - ".join(part for part in parts if part)


def extract_text(item: JsonDict, source: SourceName, attribute: str) -> str:
    for candidate in field_candidates(source, attribute):
        value = _text_value(item, candidate)
        if value:
            return value
    return ""


def extract_count(item: JsonDict, source: SourceName, attribute: str) -> int:
    for candidate in field_candidates(source, attribute):
        if not isinstance(candidate, str):
            continue
        count = coerce_count(get_path(item, candidate))
        if count is not None:
            return count
    return 0


def extract_author(item: JsonDict, source: SourceName) -> str:
    for candidate in field_candidates(source, "author"):
        if not isinstance(candidate, str):
            continue
        value = get_path(item, candidate)
        if isinstance(value, dict):
            value = value.get("name") or value.get("username") or value.get("displayName")
        text = clean_text(value)
        if text:
            return text
    return ""


def extract_id(item: JsonDict, source: SourceName) -> Optional[str]:
    for candidate in field_candidates(source, "id"):
        if not isinstance(candidate, str):
            continue
        value = get_path(item, candidate)
        if isinstance(value, bool):
            continue
        if isinstance(value, (str, int)) and str(value).strip():
            return str(value).strip()
    return None


def extract_timestamp(item: JsonDict, source: SourceName) -> Optional[datetime]:
    for candidate in field_candidates(source, "timestamp"):
        if not isinstance(candidate, str):
            continue
        parsed = parse_timestamp(get_path(item, candidate))
        if parsed is not None:
            return parsed
    return None


def build_url(item: JsonDict, source: SourceName, vendor_id: Optional[str], author: str) -> Optional[str]:
    """Vendor URL if present, else a canonical link built from id/author."""
    url = extract_text(item, source, "url")
    if url:
        return url
    if source is SourceName.YOUTUBE and vendor_id:
        return f"https://www.youtube.com/watch?v={vendor_id}"
    if source is SourceName.TIKTOK and vendor_id and author:
        return f"https://www.tiktok.com/@{author}/video/{vendor_id}"
    if source is SourceName.TWITTER and vendor_id and author:
        return f"https://twitter.com/{author}/status/{vendor_id}"
    if source is SourceName.INSTAGRAM:
        code = clean_text(item.get("shortCode") or item.get("code"))
        if code:
            return f"https://www.instagram.com/p/{code}"
    return None


class ResultNormalizer:
    """Maps raw vendor payloads to EngagementRecords tagged ``provenance='real'``."""

    def __init__(self, estimator: Optional[SentimentEstimator] = None):
        self.estimator = estimator or RatioSentimentEstimator()

    def normalize(
        self,
        raw: RawPayload,
        source: SourceName,
        term: str,
        *,
        retrieved_at: Optional[datetime] = None,
    ) -> List[EngagementRecord]:
        """
        Normalize one source's payload.

        Args:
            raw: Decoded vendor JSON
            source: Which client produced it
            term: Search term that produced it
            retrieved_at: Stand-in timestamp for items without a usable date

        Returns:
            Records in vendor order; [] when no envelope matches
        """
        items = resolve_envelope(raw)
        if not items:
            return []

        retrieved_at = retrieved_at or now_utc()
        contents = [extract_text(item, source, "content") for item in items]
        sentiments = self.estimator.label_batch(contents)

        records: List[EngagementRecord] = []
        for index, (item, content, sentiment) in enumerate(zip(items, contents, sentiments)):
            records.append(
                self._build_record(item, index, source, term, content, sentiment, retrieved_at)
            )
        return records

    def _build_record(
        self,
        item: JsonDict,
        index: int,
        source: SourceName,
        term: str,
        content: str,
        sentiment: str,
        retrieved_at: datetime,
    ) -> EngagementRecord:
        vendor_id = extract_id(item, source)
        author = extract_author(item, source)
        url = build_url(item, source, vendor_id, author)
        if not author and source is SourceName.WEB:
            author = extract_domain_from_url(url)

        counts = EngagementCounts(**{name: extract_count(item, source, name) for name in COUNT_FIELDS})
        timestamp = extract_timestamp(item, source)

        return EngagementRecord(
            id=vendor_id or make_record_id(source.value, term, url or "", content, str(index)),
            source_name=source,
            search_term=term,
            author=author or UNKNOWN_AUTHOR,
            content=content,
            url=url,
            timestamp=timestamp or retrieved_at,
            timestamp_approximate=timestamp is None,
            counts=counts,
            derived=DerivedSignals(
                sentiment=sentiment,
                severity=classify_severity(content),
                influence_score=influence_score(counts),
            ),
            tags=extract_hashtags(content),
            region=extract_text(item, source, "location") or None,
            provenance="real",
        )


def normalize(
    raw: RawPayload,
    source: SourceName,
    term: str,
    *,
    retrieved_at: Optional[datetime] = None,
    estimator: Optional[SentimentEstimator] = None,
) -> List[EngagementRecord]:
    """Functional shorthand for ``ResultNormalizer(estimator).normalize(...)``."""
    return ResultNormalizer(estimator).normalize(raw, source, term, retrieved_at=retrieved_at)
