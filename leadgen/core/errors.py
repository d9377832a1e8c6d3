"""Error taxonomy for the lead pipeline.

Only FatalInitError is allowed to abort a run. The others are raised inside
a component and converted to a degraded result at its boundary.
"""


class LeadgenError(Exception):
    """Base class for pipeline errors."""


class TransientPageError(LeadgenError):
    """Navigation or timeout failure on a single listings page."""

    def __init__(self, page_index: int, url: str, reason: str) -> None:
        super().__init__(f"page {page_index} ({url}): {reason}")
        self.page_index = page_index
        self.url = url


class ProviderError(LeadgenError):
    """A search or contact provider call failed or returned junk."""


class CacheIOError(LeadgenError):
    """Cache storage could not be read, written, or decoded."""


class FatalInitError(LeadgenError):
    """The browser capability could not be started."""
