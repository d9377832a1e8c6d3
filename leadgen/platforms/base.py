"""Abstract base class for listings platforms."""

from abc import ABC, abstractmethod
from enum import Enum

from leadgen.core.schemas import JobRecord


class StopReason(str, Enum):
    """Why a crawl stopped."""

    EMPTY_PAGE = "empty_page"
    MAX_PAGES = "max_pages"
    NO_NEXT_PAGE = "no_next_page"


class CrawlResult:
    """Jobs collected by one crawl plus how the crawl ended."""

    def __init__(
        self,
        jobs: list[JobRecord],
        pages_crawled: int,
        stop_reason: StopReason,
    ) -> None:
        self.jobs = jobs
        self.pages_crawled = pages_crawled
        self.stop_reason = stop_reason


class ListingPlatform(ABC):
    """Base class that every listings crawler must implement."""

    @property
    @abstractmethod
    def platform_id(self) -> str:
        """Unique identifier for this platform (e.g. 'jobsch')."""

    @abstractmethod
    async def crawl(self, search_term: str, max_pages: int) -> CrawlResult:
        """Crawl up to max_pages listings pages and return extracted jobs."""
