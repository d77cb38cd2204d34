"""
Twitter/X scraper client.
"""
from __future__ import annotations

from pulse.models import JsonDict, LocaleHints
from pulse.schemas import SourceName
from pulse.sources.base import SourceClient


class TwitterClient(SourceClient):
    """Searches recent tweets matching the term."""

    source = SourceName.TWITTER
    endpoint = "/api/scrape/twitter"
    query_key = "searchTerms"

    def build_payload(self, term: str, locale: LocaleHints) -> JsonDict:
        payload = super().build_payload(term, locale)
        payload["sort"] = "Latest"
        return payload
