"""
Instagram scraper client.
"""
from __future__ import annotations

from pulse.schemas import SourceName
from pulse.sources.base import SourceClient


class InstagramClient(SourceClient):
    """Searches Instagram posts by hashtag."""

    source = SourceName.INSTAGRAM
    endpoint = "/api/scrape/instagram"
    query_key = "hashtags"

    def format_term(self, term: str) -> str:
        return "".join(term.strip().lstrip("#").split()).lower()
