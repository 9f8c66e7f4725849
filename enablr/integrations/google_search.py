import logging
import os
from dataclasses import dataclass
from typing import List, Optional

import httpx

from enablr.errors import ConfigurationError, UpstreamError

SEARCH_API_URL = "https://www.googleapis.com/customsearch/v1"
DEFAULT_TIMEOUT = float(os.getenv("SEARCH_TIMEOUT_SECONDS", "10"))

logger = logging.getLogger("integrations.google_search")


@dataclass
class SearchResult:
    title: str
    link: str
    snippet: str


class GoogleSearchClient:
    """Google Custom Search JSON API, restricted to UK results."""

    def __init__(
        self,
        api_key: Optional[str],
        cx: Optional[str],
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.cx = cx
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_env(cls) -> "GoogleSearchClient":
        return cls(os.getenv("GOOGLE_SEARCH_API_KEY"), os.getenv("GOOGLE_SEARCH_CX"))

    def is_configured(self) -> bool:
        return bool(self.api_key and self.cx)

    async def search(self, query: str, *, num: int = 10) -> List[SearchResult]:
        if not self.is_configured():
            raise ConfigurationError("Missing Google Search configuration (API key or CX)")

        params = {
            "key": self.api_key,
            "cx": self.cx,
            "q": query,
            "num": str(num),
            "gl": "uk",
            "cr": "countryUK",
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(SEARCH_API_URL, params=params)
        except httpx.HTTPError as exc:
            logger.error("Google Search request failed for query %r", query, exc_info=exc)
            raise UpstreamError("Google Search request failed") from exc

        if response.is_error:
            logger.error(
                "Google Search API error %s for query %r: %s",
                response.status_code,
                query,
                response.text[:500],
            )
            raise UpstreamError(f"Google Search API failed with status {response.status_code}")

        try:
            items = response.json().get("items") or []
        except ValueError as exc:
            raise UpstreamError("Google Search returned invalid JSON") from exc
        return [
            SearchResult(
                title=item.get("title") or "",
                link=item.get("link") or "",
                snippet=item.get("snippet") or "",
            )
            for item in items
        ]
