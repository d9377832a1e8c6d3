"""Orchestrator: wires crawler, domain resolver, contact discovery, cache, and storage.

Data flow:
  1. Crawl listings pages → JobRecords (sequential, one browser page)
  2. Attach hotness
  3. Optional per-job enrichment (concurrent, bounded):
       cached domain or resolve domain → cache lookup → discover on miss → cache put
  4. Persist the SearchSession
"""

import asyncio
import logging
import sqlite3
import time

from leadgen.core.config import Settings
from leadgen.core.schemas import (
    ContactResult,
    JobContacts,
    JobRecord,
    SearchSession,
    SessionMetadata,
)
from leadgen.enrich.cache import EnrichmentCache
from leadgen.enrich.contacts import ContactDiscoverer
from leadgen.enrich.domain import DomainResolver
from leadgen.pipeline.hotness import with_hotness
from leadgen.pipeline.storage import save_search_session
from leadgen.platforms.base import ListingPlatform

logger = logging.getLogger(__name__)


class LeadPipeline:
    """One pipeline run per instance is expected; the crawler's page is not shared.

    crawler may be None for enrichment-only use (e.g. enriching a stored session).
    """

    def __init__(
        self,
        crawler: ListingPlatform | None,
        resolver: DomainResolver,
        discoverer: ContactDiscoverer,
        cache: EnrichmentCache,
        conn: sqlite3.Connection,
        settings: Settings,
    ) -> None:
        self._crawler = crawler
        self._resolver = resolver
        self._discoverer = discoverer
        self._cache = cache
        self._conn = conn
        self._settings = settings

    async def run(
        self,
        search_term: str,
        max_pages: int | None = None,
        *,
        enrich_contacts: bool = False,
    ) -> SearchSession:
        """Crawl, optionally enrich, and persist one search.

        Page and provider failures are absorbed below this level, so a run
        always produces a session, possibly with zero jobs.
        """
        if self._crawler is None:
            msg = "LeadPipeline was built without a crawler"
            raise ValueError(msg)
        max_pages = max_pages or self._settings.crawl.max_pages
        started = time.monotonic()

        logger.info(
            "Searching '%s' on %s (max %d pages)",
            search_term, self._crawler.platform_id, max_pages,
        )
        result = await self._crawler.crawl(search_term, max_pages)
        jobs = with_hotness(result.jobs)

        enrichments: list[JobContacts] = []
        if enrich_contacts and jobs:
            enrichments = await self.enrich_all(jobs, search_term)

        metadata = SessionMetadata(
            search_duration_ms=round((time.monotonic() - started) * 1000),
            pages_crawled=result.pages_crawled,
            stop_reason=result.stop_reason.value,
        )
        session = save_search_session(
            self._conn,
            search_term,
            jobs,
            metadata,
            self._settings.sessions.history_limit,
            enrichments=enrichments,
        )

        logger.info(
            "Search '%s': %d jobs, %d pages, stopped on %s",
            search_term, len(jobs), result.pages_crawled, result.stop_reason.value,
        )
        return session

    async def enrich_all(self, jobs: list[JobRecord], search_term: str) -> list[JobContacts]:
        """Enrich jobs concurrently, at most ``enrich_concurrency`` at a time. Order is kept."""
        semaphore = asyncio.Semaphore(self._settings.pipeline.enrich_concurrency)

        async def _bounded(job: JobRecord) -> JobContacts:
            async with semaphore:
                return await self.enrich(job, search_term)

        return list(await asyncio.gather(*(_bounded(job) for job in jobs)))

    async def enrich(self, job: JobRecord, search_term: str) -> JobContacts:
        """Contacts for one job's company. Never raises; failures come back degraded."""
        company = job.company.strip()
        if not company:
            return self._annotate(job, search_term, ContactResult(error="Job has no company name"))

        try:
            domain = self._cache.domain_for(company) or await self._resolver.resolve(company)
            if not domain:
                return self._annotate(
                    job, search_term, ContactResult(error=f"No domain found for {company}"),
                )

            async with self._cache.key_lock(company, domain):
                cached = self._cache.get(company, domain)
                if cached is not None:
                    logger.info("Using cached contacts for %s", company)
                    return self._annotate(job, search_term, cached, cached=True)

                logger.info("Cache miss for %s (%s), querying provider", company, domain)
                result = await self._discoverer.discover(domain, role_hint=search_term)
                if result.contacts:
                    self._cache.put(company, domain, search_term, result)
        except Exception as e:
            logger.warning("Enrichment failed for %s (%s)", company, job.id, exc_info=True)
            return self._annotate(job, search_term, ContactResult(error=str(e) or type(e).__name__))

        return self._annotate(job, search_term, result)

    @staticmethod
    def _annotate(
        job: JobRecord,
        search_term: str,
        result: ContactResult,
        *,
        cached: bool = False,
    ) -> JobContacts:
        return JobContacts(
            **result.model_dump(),
            company=job.company,
            job_id=job.id,
            job_title=job.title,
            search_term=search_term,
            cached=cached,
        )
