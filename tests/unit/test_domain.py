"""Tests for company name → domain resolution."""

import pytest

from leadgen.core.errors import ProviderError
from leadgen.enrich.domain import (
    QUERY_TEMPLATES,
    DomainResolver,
    clean_company_name,
    domain_candidates,
    guess_domain,
)
from leadgen.enrich.search import SearchClient


class FakeSearchClient(SearchClient):
    """Returns canned hostnames per query; records the queries it saw."""

    def __init__(self, results: dict[str, list[str] | Exception] | None = None) -> None:
        self._results = results or {}
        self.queries: list[str] = []

    async def search(self, query: str) -> list[str]:
        self.queries.append(query)
        result = self._results.get(query, [])
        if isinstance(result, Exception):
            raise result
        return result


# ---------------------------------------------------------------------------
# Name helpers
# ---------------------------------------------------------------------------


class TestCleanCompanyName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Acme AG", "Acme"),
            ("Muster GmbH", "Muster"),
            ("Foo Bar Ltd", "Foo Bar"),
            ("Beta sa", "Beta"),
            ("Agile Partners", "Agile Partners"),
        ],
    )
    def test_strips_whole_word_suffixes(self, raw: str, expected: str) -> None:
        assert clean_company_name(raw) == expected

    def test_only_suffix(self) -> None:
        assert clean_company_name("AG") == ""


class TestGuessDomain:
    def test_acme_ag(self) -> None:
        assert guess_domain("Acme AG") == "acme.ch"

    def test_strips_country_words_and_punctuation(self) -> None:
        assert guess_domain("Müller & Co. Schweiz AG") == "mllerco.ch"

    def test_candidates_in_tld_order(self) -> None:
        assert domain_candidates("Acme") == ["acme.ch", "acme.com", "acme.de"]

    def test_nothing_left(self) -> None:
        assert domain_candidates("AG") == []
        assert guess_domain("AG") == ""


# ---------------------------------------------------------------------------
# DomainResolver
# ---------------------------------------------------------------------------


class TestDomainResolver:
    async def test_first_result_outside_denylist(self) -> None:
        client = FakeSearchClient({
            '"Acme" official website': ["www.linkedin.com", "www.acme-group.ch", "acme.com"],
        })
        domain = await DomainResolver(client).resolve("Acme AG")
        assert domain == "acme-group.ch"
        assert client.queries == ['"Acme" official website']

    async def test_later_query_used_when_first_has_no_hit(self) -> None:
        client = FakeSearchClient({
            '"Acme" official website': ["ch.linkedin.com", "de.wikipedia.org"],
            "Acme company website": ["acme.io"],
        })
        assert await DomainResolver(client).resolve("Acme AG") == "acme.io"
        assert len(client.queries) == 2

    async def test_only_top_results_considered(self) -> None:
        client = FakeSearchClient({
            '"Acme" official website': ["linkedin.com", "facebook.com", "jobs.ch", "acme.ch"],
        })
        resolver = DomainResolver(client, results_considered=3)
        # Nothing qualifying in the top 3 of any query → guessed domain.
        assert await resolver.resolve("Acme AG") == "acme.ch"
        assert len(client.queries) == len(QUERY_TEMPLATES)

    async def test_denylist_is_substring_match(self) -> None:
        client = FakeSearchClient({'"Acme" official website': ["uk.indeed.com", "acme.de"]})
        assert await DomainResolver(client).resolve("Acme") == "acme.de"

    async def test_no_results_falls_back_to_guess(self) -> None:
        client = FakeSearchClient()
        assert await DomainResolver(client).resolve("Acme AG") == "acme.ch"

    async def test_provider_error_tries_next_query(self) -> None:
        client = FakeSearchClient({
            '"Acme" official website': ProviderError("429"),
            "Acme company website": ["acme.ch"],
        })
        assert await DomainResolver(client).resolve("Acme AG") == "acme.ch"

    async def test_unexpected_error_falls_back(self) -> None:
        client = FakeSearchClient({'"Acme" official website': RuntimeError("boom")})
        assert await DomainResolver(client).resolve("Acme AG") == "acme.ch"
        assert len(client.queries) == 1

    async def test_empty_name_never_searches(self) -> None:
        client = FakeSearchClient()
        assert await DomainResolver(client).resolve("AG") == ""
        assert client.queries == []

    async def test_custom_denylist(self) -> None:
        client = FakeSearchClient({'"Acme" official website': ["acme.ch", "acme.com"]})
        resolver = DomainResolver(client, denylist=["acme.ch"])
        assert await resolver.resolve("Acme") == "acme.com"
