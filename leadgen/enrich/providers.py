"""Contact providers: domain → raw staff email records."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any

import httpx

from leadgen.core.config import ContactsConfig
from leadgen.core.errors import ProviderError

logger = logging.getLogger(__name__)

HUNTER_DOMAIN_SEARCH_URL = "https://api.hunter.io/v2/domain-search"


class ContactProvider(ABC):
    """Looks up people with email addresses at a domain."""

    @abstractmethod
    async def lookup_contacts(self, domain: str, limit: int) -> list[dict[str, Any]]:
        """Return raw provider records for domain, at most ``limit`` of them.

        Each record carries ``value`` (the email), ``first_name``,
        ``last_name``, ``position``, ``department`` and an optional
        ``verification`` mapping.

        Raises:
            ProviderError: The lookup failed or the payload was malformed.
        """


class HunterClient(ContactProvider):
    """Hunter.io domain-search API."""

    def __init__(
        self,
        config: ContactsConfig,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._client = client

    async def lookup_contacts(self, domain: str, limit: int) -> list[dict[str, Any]]:
        api_key = os.environ.get(self._config.api_key_env)
        if not api_key:
            msg = f"{self._config.api_key_env} environment variable is required"
            raise ProviderError(msg)

        params: dict[str, str | int] = {"domain": domain, "api_key": api_key, "limit": limit}
        logger.debug("Hunter domain-search for %s (limit %d)", domain, limit)
        try:
            if self._client is not None:
                response = await self._client.get(
                    HUNTER_DOMAIN_SEARCH_URL, params=params, timeout=self._config.timeout_s,
                )
            else:
                async with httpx.AsyncClient(timeout=self._config.timeout_s) as client:
                    response = await client.get(HUNTER_DOMAIN_SEARCH_URL, params=params)
        except httpx.HTTPError as e:
            msg = f"Hunter.io request failed: {e}"
            raise ProviderError(msg) from e

        if not response.is_success:
            msg = f"Hunter.io API error: {response.status_code}"
            raise ProviderError(msg)

        try:
            payload = response.json()
        except ValueError as e:
            msg = "Hunter.io returned invalid JSON"
            raise ProviderError(msg) from e

        data = payload.get("data") if isinstance(payload, dict) else None
        emails = data.get("emails") if isinstance(data, dict) else None
        if not isinstance(emails, list):
            msg = "Hunter.io payload has no data.emails list"
            raise ProviderError(msg)

        return [e for e in emails if isinstance(e, dict)]
