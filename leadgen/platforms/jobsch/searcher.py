"""jobs.ch URL builder and crawl state machine.

Pure functions — zero browser dependency.

The crawl moves through ``Active(page) -> Active(page + 1) | Done(reason)``.
Transition guards, in order:
  - page failed          -> next page, unless the cap is reached
  - zero records on page -> Done(EMPTY_PAGE)
  - page cap reached     -> Done(MAX_PAGES)
  - no "next" link       -> Done(NO_NEXT_PAGE)
"""

import logging
from dataclasses import dataclass
from urllib.parse import quote_plus, urlencode

from leadgen.platforms.base import StopReason

logger = logging.getLogger(__name__)

FIRST_PAGE = 1


@dataclass(frozen=True)
class CrawlState:
    """Crawl position. ``page`` is the 1-based page to fetch next while active."""

    page: int = FIRST_PAGE
    stop_reason: StopReason | None = None

    @property
    def done(self) -> bool:
        return self.stop_reason is not None


def build_url(base_url: str, search_term: str, page: int = FIRST_PAGE) -> str:
    """Build a jobs.ch vacancies search URL.

    Args:
        base_url: Vacancies listing root, e.g. ``https://www.jobs.ch/en/vacancies/``.
        search_term: Free-text search term (will be URL-encoded).
        page: 1-based page number.

    Returns:
        Fully qualified search URL.
    """
    params = {"term": search_term, "page": str(page)}
    return f"{base_url}?{urlencode(params, quote_via=quote_plus)}"


def advance(
    state: CrawlState,
    *,
    max_pages: int,
    records_found: int | None,
    has_next: bool,
) -> CrawlState:
    """Return the state after crawling ``state.page``.

    ``records_found`` is None when the page failed to load; the crawl then
    moves on to the next page index instead of stopping.
    """
    if state.done:
        return state

    at_cap = state.page >= max_pages

    if records_found is None:
        if at_cap:
            return CrawlState(page=state.page, stop_reason=StopReason.MAX_PAGES)
        logger.debug("Page %d failed — advancing to %d", state.page, state.page + 1)
        return CrawlState(page=state.page + 1)

    if records_found == 0:
        return CrawlState(page=state.page, stop_reason=StopReason.EMPTY_PAGE)
    if at_cap:
        return CrawlState(page=state.page, stop_reason=StopReason.MAX_PAGES)
    if not has_next:
        return CrawlState(page=state.page, stop_reason=StopReason.NO_NEXT_PAGE)
    return CrawlState(page=state.page + 1)
