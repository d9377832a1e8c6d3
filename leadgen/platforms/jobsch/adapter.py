"""jobs.ch crawler — wires URL builder, overlay dismissal, parser, and browser page."""

import logging
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from leadgen.browser.actions import (
    DismissStep,
    always_present,
    click_target,
    dismiss_overlays,
    first_match,
    press_key,
    random_sleep,
    scroll_until_stable,
)
from leadgen.core.config import CrawlConfig
from leadgen.core.errors import TransientPageError
from leadgen.core.schemas import JobRecord, RawPage
from leadgen.platforms.base import CrawlResult, ListingPlatform, StopReason
from leadgen.platforms.jobsch.parser import JobsChParser, has_next_page
from leadgen.platforms.jobsch.searcher import CrawlState, advance, build_url
from leadgen.platforms.jobsch.selectors import (
    BASE_CONTENT_SELECTOR,
    COOKIE_ACCEPT_SELECTORS,
    DETAIL_LINK_SELECTORS,
    MODAL_CLOSE_SELECTORS,
)

logger = logging.getLogger(__name__)

OVERLAY_STEPS: tuple[DismissStep, ...] = (
    DismissStep("cookie-consent", first_match(*COOKIE_ACCEPT_SELECTORS), click_target, 1.0),
    DismissStep("promo-modal", first_match(*MODAL_CLOSE_SELECTORS), click_target, 1.0),
    DismissStep("escape", always_present, press_key("Escape"), 0.5),
)


@dataclass
class CrawledPage:
    """Outcome of one crawl step. ``raw`` is None when the page failed to load."""

    page_index: int
    raw: RawPage | None
    jobs: list[JobRecord] = field(default_factory=list)
    next_state: CrawlState = field(default_factory=CrawlState)


class JobsChCrawler(ListingPlatform):
    """Paginated jobs.ch crawler.

    Requires a browser page object (patchright Page) injected via constructor.
    The page is used strictly sequentially; one crawler per browser context.
    """

    def __init__(
        self,
        page: Any,
        config: CrawlConfig,
        parser: JobsChParser | None = None,
        *,
        overlay_steps: Sequence[DismissStep] = OVERLAY_STEPS,
    ) -> None:
        self._page = page
        self._config = config
        self._parser = parser or JobsChParser(min_candidates=config.min_candidates)
        self._overlay_steps = overlay_steps

    @property
    def platform_id(self) -> str:
        return "jobsch"

    async def crawl(self, search_term: str, max_pages: int) -> CrawlResult:
        """Crawl listings pages for search_term and return the extracted jobs."""
        jobs: list[JobRecord] = []
        pages_crawled = 0
        stop_reason = StopReason.MAX_PAGES

        async for crawled in self.iter_pages(search_term, max_pages):
            if crawled.raw is not None:
                pages_crawled += 1
            jobs.extend(crawled.jobs)
            if crawled.next_state.stop_reason is not None:
                stop_reason = crawled.next_state.stop_reason

        logger.info(
            "Crawl '%s' finished: %d jobs from %d pages (%s)",
            search_term, len(jobs), pages_crawled, stop_reason.value,
        )
        return CrawlResult(jobs=jobs, pages_crawled=pages_crawled, stop_reason=stop_reason)

    async def iter_pages(self, search_term: str, max_pages: int) -> AsyncIterator[CrawledPage]:
        """Yield one CrawledPage per page index, advancing lazily until the crawl is done."""
        state = CrawlState()
        seen_urls: set[str] = set()
        job_count = 0

        while not state.done:
            url = build_url(self._config.base_url, search_term, state.page)
            try:
                raw = await self._load_page(url, state.page)
            except TransientPageError as e:
                logger.warning("Skipping page after error: %s", e)
                failed_page = state.page
                state = advance(state, max_pages=max_pages, records_found=None, has_next=False)
                yield CrawledPage(page_index=failed_page, raw=None, next_state=state)
                continue

            page_jobs = self._session_unique(
                self._parser.extract(raw, first_id=job_count + 1), seen_urls, job_count,
            )
            job_count += len(page_jobs)
            next_page = has_next_page(raw.html)

            logger.info(
                "Page %d: %d new jobs (total %d), next page: %s",
                raw.page_index, len(page_jobs), job_count, "yes" if next_page else "no",
            )

            state = advance(
                state, max_pages=max_pages, records_found=len(page_jobs), has_next=next_page,
            )
            yield CrawledPage(page_index=raw.page_index, raw=raw, jobs=page_jobs, next_state=state)

            if not state.done:
                await random_sleep(self._config.page_delay_min, self._config.page_delay_max)

    async def _load_page(self, url: str, page_index: int) -> RawPage:
        """Navigate, settle overlays, and snapshot the rendered page.

        Navigation and snapshot failures raise TransientPageError; overlay and
        scroll problems are tolerated.
        """
        logger.info("Navigating to page %d: %s", page_index, url)
        try:
            await self._page.goto(url, wait_until="networkidle")
            await self._page.wait_for_selector(BASE_CONTENT_SELECTOR, timeout=10_000)
        except Exception as e:
            raise TransientPageError(page_index, url, str(e) or type(e).__name__) from e

        await dismiss_overlays(
            self._page,
            self._overlay_steps,
            timeout_s=self._config.overlay_timeout_ms / 1000,
        )

        try:
            await scroll_until_stable(self._page, card_selectors=DETAIL_LINK_SELECTORS)
        except Exception:
            logger.debug("Scroll failed on page %d, continuing", page_index, exc_info=True)

        await self._snapshot(page_index)

        try:
            html = await self._page.content()
        except Exception as e:
            raise TransientPageError(page_index, url, str(e) or type(e).__name__) from e
        return RawPage(url=url, page_index=page_index, html=html)

    async def _snapshot(self, page_index: int) -> None:
        """Write a diagnostic screenshot when screenshot_dir is configured."""
        if not self._config.screenshot_dir:
            return
        path = Path(self._config.screenshot_dir) / f"page_{page_index}.png"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            await self._page.screenshot(path=str(path), full_page=False)
        except Exception:
            logger.debug("Screenshot failed for page %d", page_index, exc_info=True)

    @staticmethod
    def _session_unique(
        records: list[JobRecord], seen_urls: set[str], offset: int,
    ) -> list[JobRecord]:
        """Drop records whose detail URL was already emitted this crawl; renumber ids."""
        unique: list[JobRecord] = []
        for record in records:
            if record.url:
                if record.url in seen_urls:
                    continue
                seen_urls.add(record.url)
            unique.append(record)
        if len(unique) != len(records):
            unique = [
                r.model_copy(update={"id": f"job_{offset + i}"})
                for i, r in enumerate(unique, start=1)
            ]
        return unique
