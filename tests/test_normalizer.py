from datetime import datetime, timezone

import pytest

from conftest import RETRIEVED_AT
from pulse.core.normalizer import ResultNormalizer, field_candidates, normalize, resolve_envelope
from pulse.core.sentiment import LexiconSentimentEstimator
from pulse.schemas import SourceName


def nested(path, value):
    """{"a.b": 1} style helper: nested("stats.diggCount", 9) -> {"stats": {"diggCount": 9}}."""
    keys = path.split(".")
    item = value
    for key in reversed(keys):
        item = {key: item}
    return item


def test_tiktok_item_without_views():
    raw = [{"diggCount": 120, "commentCount": 4, "shareCount": 1, "desc": "great day"}]
    records = normalize(raw, SourceName.TIKTOK, "covid", retrieved_at=RETRIEVED_AT)

    assert len(records) == 1
    record = records[0]
    assert record.counts.model_dump() == {"likes": 120, "comments": 4, "shares": 1, "views": 0}
    assert record.derived.sentiment == "neutral"
    assert record.derived.severity == "low"
    assert record.content == "great day"
    assert record.provenance == "real"
    assert record.source_name is SourceName.TIKTOK
    assert record.search_term == "covid"
    assert record.author == "unknown"
    assert record.timestamp == RETRIEVED_AT
    assert record.timestamp_approximate is True


@pytest.mark.parametrize(
    "raw",
    [
        [{"text": "hello"}],
        {"items": [{"text": "hello"}]},
        {"data": [{"text": "hello"}]},
        {"data": {"items": [{"text": "hello"}]}},
        {"posts": [{"text": "hello"}]},
        {"tweets": [{"text": "hello"}]},
        {"videos": [{"text": "hello"}]},
        {"results": [{"text": "hello"}]},
    ],
)
def test_known_envelopes(raw):
    records = normalize(raw, SourceName.TWITTER, "hello", retrieved_at=RETRIEVED_AT)
    assert [r.content for r in records] == ["hello"]


@pytest.mark.parametrize("raw", [None, {}, {"foo": []}, {"data": "oops"}, "text", 42])
def test_unknown_envelope_is_empty(raw):
    assert normalize(raw, SourceName.TIKTOK, "covid") == []


def test_first_matching_envelope_wins():
    raw = {"items": [{"text": "from items"}], "data": [{"text": "from data"}]}
    assert [r.content for r in normalize(raw, SourceName.WEB, "x", retrieved_at=RETRIEVED_AT)] == [
        "from items"
    ]


def test_non_dict_items_are_skipped():
    assert resolve_envelope([{"text": "a"}, "junk", None, 3, {"text": "b"}]) == [
        {"text": "a"},
        {"text": "b"},
    ]


def test_normalize_is_deterministic(tiktok_items):
    first = normalize(tiktok_items, SourceName.TIKTOK, "vaccin", retrieved_at=RETRIEVED_AT)
    second = normalize(tiktok_items, SourceName.TIKTOK, "vaccin", retrieved_at=RETRIEVED_AT)
    assert first == second
    assert [r.model_dump_json() for r in first] == [r.model_dump_json() for r in second]


def test_missing_ids_are_stable():
    raw = [{"text": "no id here"}, {"text": "no id here"}]
    first = normalize(raw, SourceName.WEB, "x", retrieved_at=RETRIEVED_AT)
    second = normalize(raw, SourceName.WEB, "x", retrieved_at=RETRIEVED_AT)
    assert [r.id for r in first] == [r.id for r in second]
    # position is part of the id, so identical items stay distinct
    assert first[0].id != first[1].id


def test_top_level_beats_nested():
    raw = [{"likeCount": 5, "stats": {"diggCount": 9}}]
    assert normalize(raw, SourceName.TIKTOK, "x")[0].counts.likes == 5


def test_nested_used_when_top_level_missing():
    raw = [{"stats": {"diggCount": 9}}]
    assert normalize(raw, SourceName.TIKTOK, "x")[0].counts.likes == 9


def test_source_specific_beats_generic_at_same_depth():
    raw = [{"likeCount": 5, "diggCount": 3}]
    assert normalize(raw, SourceName.TIKTOK, "x")[0].counts.likes == 3


def test_candidates_are_sorted_by_depth():
    for source in SourceName:
        for attribute in ("likes", "comments", "shares", "views", "author", "timestamp"):
            depths = [
                max(p.count(".") for p in ((c,) if isinstance(c, str) else c))
                for c in field_candidates(source, attribute)
            ]
            assert depths == sorted(depths)


@pytest.mark.parametrize(
    "path",
    [
        "likes",
        "likeCount",
        "likesCount",
        "diggCount",
        "favoriteCount",
        "favorite_count",
        "like_count",
        "reactionsCount",
        "stats.diggCount",
        "stats.likeCount",
        "statistics.likeCount",
        "public_metrics.like_count",
        "reactions.count",
    ],
)
def test_like_aliases(path):
    records = normalize([nested(path, 42)], SourceName.TWITTER, "x")
    assert records[0].counts.likes == 42


@pytest.mark.parametrize(
    "attribute, path",
    [
        ("comments", "commentCount"),
        ("comments", "reply_count"),
        ("comments", "statistics.commentCount"),
        ("shares", "retweetCount"),
        ("shares", "shareCount"),
        ("shares", "public_metrics.retweet_count"),
        ("views", "playCount"),
        ("views", "viewCount"),
        ("views", "statistics.viewCount"),
    ],
)
def test_other_count_aliases(attribute, path):
    record = normalize([nested(path, 17)], SourceName.YOUTUBE, "x")[0]
    assert getattr(record.counts, attribute) == 17


@pytest.mark.parametrize(
    "value, expected",
    [("1,234", 1234), ("56", 56), (12.7, 12), (-5, 0), ("abc", 0), (None, 0), (True, 0)],
)
def test_malformed_counts(value, expected):
    assert normalize([{"likes": value}], SourceName.WEB, "x")[0].counts.likes == expected


def test_unusable_alias_falls_through():
    raw = [{"likes": "n/a", "likeCount": 8}]
    assert normalize(raw, SourceName.WEB, "x")[0].counts.likes == 8


@pytest.mark.parametrize(
    "value",
    [1700000000, 1700000000000, "1700000000", "2023-11-14T22:13:20Z", "2023-11-14T23:13:20+01:00"],
)
def test_timestamp_formats(value):
    record = normalize([{"timestamp": value}], SourceName.TWITTER, "x", retrieved_at=RETRIEVED_AT)[0]
    assert record.timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=timezone.utc)
    assert record.timestamp_approximate is False


def test_unparseable_timestamp_uses_retrieval_time():
    record = normalize([{"timestamp": "sometime"}], SourceName.TWITTER, "x", retrieved_at=RETRIEVED_AT)[0]
    assert record.timestamp == RETRIEVED_AT
    assert record.timestamp_approximate is True


def test_tiktok_record(tiktok_items):
    record = normalize(tiktok_items, SourceName.TIKTOK, "vaccin", retrieved_at=RETRIEVED_AT)[0]
    assert record.id == "7301"
    assert record.author == "ci_sante"
    assert record.url == "https://www.tiktok.com/@ci_sante/video/7301"
    assert record.counts.views == 56000
    assert record.tags == ["#sante"]
    assert record.derived.severity == "medium"


def test_twitter_author_object():
    raw = {"tweets": [{"id": "42", "text": "hi", "author": {"userName": "ada"}}]}
    record = normalize(raw, SourceName.TWITTER, "x")[0]
    assert record.author == "ada"
    assert record.url == "https://twitter.com/ada/status/42"


def test_author_object_with_name():
    raw = [{"text": "hi", "author": {"name": "Grace"}}]
    assert normalize(raw, SourceName.FACEBOOK, "x")[0].author == "Grace"


def test_youtube_title_and_description_are_joined():
    raw = {"videos": [{"id": "abc123", "title": "Point santé", "description": "Les dernières nouvelles"}]}
    record = normalize(raw, SourceName.YOUTUBE, "x")[0]
    assert record.content == "Point santé - Les dernières nouvelles"
    assert record.url == "https://www.youtube.com/watch?v=abc123"


def test_youtube_snippet_shape():
    raw = {"items": [{"id": {"videoId": "v1"}, "snippet": {"title": "T", "channelTitle": "Chaîne"}}]}
    record = normalize(raw, SourceName.YOUTUBE, "x")[0]
    assert record.id == "v1"
    assert record.content == "T"
    assert record.author == "Chaîne"


def test_web_author_defaults_to_domain():
    raw = {"results": [{"title": "Bulletin", "snippet": "Situation", "url": "https://news.example.co.uk/a/b"}]}
    record = normalize(raw, SourceName.WEB, "x")[0]
    assert record.author == "example.co.uk"
    assert record.content == "Bulletin - Situation"


def test_instagram_url_from_shortcode():
    raw = [{"caption": "Photo #abidjan", "shortCode": "CxYz", "ownerUsername": "kofi"}]
    record = normalize(raw, SourceName.INSTAGRAM, "x")[0]
    assert record.url == "https://www.instagram.com/p/CxYz"
    assert record.author == "kofi"


def test_facebook_record(facebook_items):
    record = normalize(facebook_items, SourceName.FACEBOOK, "hygiène", retrieved_at=RETRIEVED_AT)[0]
    assert record.id == "fb-1"
    assert record.author == "Ministère de la Santé"
    assert record.counts.likes == 80
    assert record.counts.comments == 6
    assert record.counts.shares == 2
    assert record.timestamp == datetime(2024, 4, 30, 8, 0, tzinfo=timezone.utc)


def test_region_from_location():
    raw = [{"text": "hi", "location": {"name": "Bouaké"}}]
    assert normalize(raw, SourceName.INSTAGRAM, "x")[0].region == "Bouaké"


def test_whitespace_is_collapsed():
    raw = [{"text": "  several\n\n  lines\t here "}]
    assert normalize(raw, SourceName.WEB, "x")[0].content == "several lines here"


def test_ratio_split_applies_per_batch():
    raw = [{"text": str(i)} for i in range(5)]
    records = normalize(raw, SourceName.WEB, "x")
    assert [r.derived.sentiment for r in records] == [
        "positive", "positive", "negative", "neutral", "neutral",
    ]


def test_custom_estimator():
    normalizer = ResultNormalizer(LexiconSentimentEstimator())
    records = normalizer.normalize([{"text": "awful"}, {"text": "great"}], SourceName.WEB, "x")
    assert [r.derived.sentiment for r in records] == ["negative", "positive"]
