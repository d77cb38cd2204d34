"""
YouTube scraper client.
"""
from __future__ import annotations

from pulse.schemas import SourceName
from pulse.sources.base import SourceClient


class YouTubeClient(SourceClient):
    """Searches YouTube videos by keyword."""

    source = SourceName.YOUTUBE
    endpoint = "/api/scrape/youtube"
    query_key = "keywords"
