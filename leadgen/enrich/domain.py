"""Company name → web domain resolution.

Strategy:
  1. Strip legal-entity suffixes from the name.
  2. Try each query template in order; scan the top results for a hostname
     outside the denylist. First hit wins, remaining queries are skipped.
  3. Otherwise guess ``<name>.ch`` from the cleaned name.

``resolve`` never raises.
"""

import logging
import re
from collections.abc import Sequence

from leadgen.core.errors import ProviderError
from leadgen.enrich.search import SearchClient

logger = logging.getLogger(__name__)

QUERY_TEMPLATES: tuple[str, ...] = (
    '"{name}" official website',
    "{name} company website",
    "{name} careers jobs",
)

# Only the first is returned; the rest document the preference order.
TLD_PREFERENCE: tuple[str, ...] = (".ch", ".com", ".de")

DEFAULT_DENYLIST: tuple[str, ...] = (
    "linkedin.com",
    "facebook.com",
    "wikipedia.org",
    "jobs.ch",
    "indeed.com",
)

_LEGAL_SUFFIX_RE = re.compile(r"\b(?:AG|GmbH|Ltd|Inc|Corp|LLC|SA)\b", re.IGNORECASE)
_GUESS_SUFFIX_RE = re.compile(r"\b(?:ag|gmbh|ltd|inc|corp|llc|sa|schweiz|switzerland)\b")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


def clean_company_name(name: str) -> str:
    """Remove legal-entity suffixes (whole words, any case) and tidy whitespace."""
    return " ".join(_LEGAL_SUFFIX_RE.sub("", name).split())


def domain_candidates(name: str) -> list[str]:
    """Guessed domains for a company name, in TLD preference order.

    Returns an empty list when nothing alphanumeric is left of the name.
    """
    base = _NON_ALNUM_RE.sub("", _GUESS_SUFFIX_RE.sub("", name.lower()))
    if not base:
        return []
    return [f"{base}{tld}" for tld in TLD_PREFERENCE]


def guess_domain(name: str) -> str:
    """Deterministic fallback domain: the first candidate, or ""."""
    candidates = domain_candidates(name)
    return candidates[0] if candidates else ""


def _strip_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


class DomainResolver:
    """Maps company names to their most likely web domain."""

    def __init__(
        self,
        search_client: SearchClient,
        *,
        denylist: Sequence[str] = DEFAULT_DENYLIST,
        results_considered: int = 3,
    ) -> None:
        self._search = search_client
        self._denylist = tuple(d.lower() for d in denylist)
        self._results_considered = results_considered

    async def resolve(self, company_name: str) -> str:
        """Return the best-effort domain for company_name. Never raises."""
        cleaned = clean_company_name(company_name)
        if not cleaned:
            logger.debug("Empty company name after cleanup: %r", company_name)
            return guess_domain(company_name)

        try:
            for template in QUERY_TEMPLATES:
                query = template.format(name=cleaned)
                try:
                    hosts = await self._search.search(query)
                except ProviderError as e:
                    logger.warning("Search failed for %r: %s", query, e)
                    continue

                domain = self._first_qualifying(hosts)
                if domain:
                    logger.info("Found domain for %s: %s", company_name, domain)
                    return domain
        except Exception:
            logger.warning("Domain lookup failed for %s", company_name, exc_info=True)

        guessed = guess_domain(cleaned)
        logger.info("Fallback domain guess for %s: %s", company_name, guessed or "<none>")
        return guessed

    def _first_qualifying(self, hosts: list[str]) -> str:
        for host in hosts[: self._results_considered]:
            domain = _strip_www(host.lower())
            if not any(blocked in domain for blocked in self._denylist):
                return domain
        return ""
