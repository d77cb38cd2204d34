"""
Facebook scraper client.
"""
from __future__ import annotations

from pulse.models import JsonDict, LocaleHints
from pulse.schemas import SourceName
from pulse.sources.base import SourceClient


class FacebookClient(SourceClient):
    """Searches public Facebook posts by keyword, optionally near a location."""

    source = SourceName.FACEBOOK
    endpoint = "/api/scrape/facebook"
    query_key = "keywords"

    def build_payload(self, term: str, locale: LocaleHints) -> JsonDict:
        payload = super().build_payload(term, locale)
        if locale.region:
            payload["location"] = locale.region
        return payload
