"""
Base class for scraping-backend source clients.
"""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from pulse.config import (
    DEFAULT_RESULT_LIMIT,
    HTTP_HEADERS,
    PERIOD_RESULT_LIMITS,
    get_settings,
)
from pulse.errors import SourceTransportError
from pulse.models import JsonDict, LocaleHints, RawPayload
from pulse.schemas import SourceName

logger = logging.getLogger(__name__)


class SourceClient:
    """
    One vendor endpoint. Subclasses set ``source``, ``endpoint`` and
    ``query_key`` and may extend the request body.

    Clients hold no per-request state and can be awaited concurrently.
    An ``httpx.AsyncClient`` may be injected to share a connection pool
    (or a mock transport in tests); otherwise one is opened per call.
    """

    source: SourceName
    endpoint: str
    query_key: str = "keywords"

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        max_results_cap: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.SCRAPER_BASE_URL).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.SCRAPER_API_KEY
        self.max_results_cap = max_results_cap or settings.MAX_RESULTS_CAP
        self.timeout = timeout or settings.SOURCE_TIMEOUT_SECONDS
        self._client = client

    @property
    def url(self) -> str:
        return f"{self.base_url}{self.endpoint}"

    def results_limit(self, period: Optional[str]) -> int:
        """Vendor pagination hint: shorter windows ask for fewer items."""
        limit = PERIOD_RESULT_LIMITS.get(period or "", DEFAULT_RESULT_LIMIT)
        return min(limit, self.max_results_cap)

    def format_term(self, term: str) -> str:
        return term.strip()

    def build_payload(self, term: str, locale: LocaleHints) -> JsonDict:
        payload: JsonDict = {
            self.query_key: [self.format_term(term)],
            "maxResults": self.results_limit(locale.period),
        }
        if locale.language:
            payload["language"] = locale.language
        return payload

    def headers(self) -> dict:
        headers = dict(HTTP_HEADERS)
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def fetch(self, term: str, locale: LocaleHints) -> RawPayload:
        """
        POST the search to the vendor endpoint and return the decoded JSON.

        Args:
            term: Search keyword(s)
            locale: Language / region / period hints

        Returns:
            The decoded response body, shape untouched

        Raises:
            SourceTransportError: non-2xx status, network failure or a body
                that is not JSON. An empty result set is not an error.
        """
        payload = self.build_payload(term, locale)
        logger.debug("POST %s for %s: %s", self.url, self.source.value, payload)

        try:
            if self._client is not None:
                response = await self._client.post(self.url, json=payload, headers=self.headers())
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(self.url, json=payload, headers=self.headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SourceTransportError(
                self.source.value, f"HTTP {e.response.status_code} from {self.url}"
            ) from e
        except httpx.HTTPError as e:
            raise SourceTransportError(
                self.source.value, f"{type(e).__name__}: {e}"
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise SourceTransportError(self.source.value, "malformed JSON body") from e
