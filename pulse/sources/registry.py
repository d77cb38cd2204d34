"""
Default set of source clients, keyed by source name.
"""
from __future__ import annotations

from typing import Dict, Optional

import httpx

from pulse.config import Settings, get_settings
from pulse.schemas import SourceName
from pulse.sources.base import SourceClient
from pulse.sources.facebook import FacebookClient
from pulse.sources.instagram import InstagramClient
from pulse.sources.tiktok import TikTokClient
from pulse.sources.twitter import TwitterClient
from pulse.sources.web import WebSearchClient
from pulse.sources.youtube import YouTubeClient

CLIENT_CLASSES = (
    TikTokClient,
    InstagramClient,
    TwitterClient,
    FacebookClient,
    YouTubeClient,
    WebSearchClient,
)


def build_default_clients(
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[SourceName, SourceClient]:
    """Instantiate one client per supported source, sharing ``client`` if given."""
    settings = settings or get_settings()
    return {
        cls.source: cls(
            base_url=settings.SCRAPER_BASE_URL,
            api_key=settings.SCRAPER_API_KEY,
            client=client,
            max_results_cap=settings.MAX_RESULTS_CAP,
            timeout=settings.SOURCE_TIMEOUT_SECONDS,
        )
        for cls in CLIENT_CLASSES
    }
