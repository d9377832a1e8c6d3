"""Web search clients used to find a company's website."""

import logging
import os
from abc import ABC, abstractmethod
from urllib.parse import urlparse

import httpx

from leadgen.core.config import WebSearchConfig
from leadgen.core.errors import ProviderError

logger = logging.getLogger(__name__)

GOOGLE_CSE_URL = "https://www.googleapis.com/customsearch/v1"


class SearchClient(ABC):
    """Runs a web query and returns result hostnames in rank order."""

    @abstractmethod
    async def search(self, query: str) -> list[str]:
        """Return lowercase hostnames of the results, best first.

        Raises:
            ProviderError: The search could not be performed or parsed.
        """


class GoogleSearchClient(SearchClient):
    """Google Programmable Search (Custom Search JSON API)."""

    def __init__(
        self,
        config: WebSearchConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client

    async def search(self, query: str) -> list[str]:
        api_key = os.environ.get(self._config.api_key_env)
        engine_id = os.environ.get(self._config.engine_id_env)
        if not api_key or not engine_id:
            msg = (
                f"{self._config.api_key_env} and {self._config.engine_id_env} "
                "environment variables are required"
            )
            raise ProviderError(msg)

        params = {"key": api_key, "cx": engine_id, "q": query}
        try:
            if self._client is not None:
                response = await self._client.get(
                    GOOGLE_CSE_URL, params=params, timeout=self._config.timeout_s,
                )
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_s) as client:
                    response = await client.get(GOOGLE_CSE_URL, params=params)
        except httpx.HTTPError as e:
            msg = f"Search request failed: {e}"
            raise ProviderError(msg) from e

        if response.status_code != 200:
            msg = f"Search API error: {response.status_code}"
            raise ProviderError(msg)

        try:
            data = response.json()
        except ValueError as e:
            msg = "Search API returned invalid JSON"
            raise ProviderError(msg) from e

        items = data.get("items") if isinstance(data, dict) else None
        if not items:
            logger.debug("No search results for %r", query)
            return []

        hosts: list[str] = []
        for item in items:
            link = item.get("link") if isinstance(item, dict) else None
            if not isinstance(link, str):
                continue
            host = urlparse(link).hostname
            if host:
                hosts.append(host.lower())
        return hosts
