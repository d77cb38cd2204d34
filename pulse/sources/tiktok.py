"""
TikTok scraper client.
"""
from __future__ import annotations

from pulse.models import JsonDict, LocaleHints
from pulse.schemas import SourceName
from pulse.sources.base import SourceClient


class TikTokClient(SourceClient):
    """Searches TikTok videos by hashtag."""

    source = SourceName.TIKTOK
    endpoint = "/api/scrape/tiktok"
    query_key = "hashtags"

    def format_term(self, term: str) -> str:
        # Hashtag search: no leading '#', no inner whitespace
        return "".join(term.strip().lstrip("#").split())

    def build_payload(self, term: str, locale: LocaleHints) -> JsonDict:
        payload = super().build_payload(term, locale)
        payload["resultsPerPage"] = payload["maxResults"]
        return payload
