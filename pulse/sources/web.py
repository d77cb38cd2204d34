"""
Generic web/search client (news sites, blogs, forums).
"""
from __future__ import annotations

from pulse.models import JsonDict, LocaleHints
from pulse.schemas import SourceName
from pulse.sources.base import SourceClient


class WebSearchClient(SourceClient):
    """Searches the open web; the region becomes a country/city hint."""

    source = SourceName.WEB
    endpoint = "/api/scrape/web"
    query_key = "searchTerms"

    def build_payload(self, term: str, locale: LocaleHints) -> JsonDict:
        payload = super().build_payload(term, locale)
        if locale.region:
            payload["region"] = locale.region
        return payload
