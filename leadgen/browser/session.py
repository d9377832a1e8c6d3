"""Patchright browser session for rendering listings pages.

One session owns one Chromium process, one context and one page. The crawl
drives that page sequentially. Failing to bring the browser up raises
FatalInitError; nothing else about the session aborts a run.
"""

import json
import logging
from pathlib import Path
from types import TracebackType
from typing import Any

from patchright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from leadgen.core.config import BrowserConfig
from leadgen.core.errors import FatalInitError

logger = logging.getLogger(__name__)


def read_cookie_file(path: str | None) -> list[dict[str, Any]]:
    """Cookies from a JSON array file. Missing or unreadable files yield []."""
    if not path:
        return []
    cookie_path = Path(path)
    if not cookie_path.is_file():
        logger.debug("No cookie file at %s", path)
        return []
    try:
        data = json.loads(cookie_path.read_text())
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Ignoring cookie file %s: %s", path, e)
        return []
    if not isinstance(data, list):
        logger.warning("Ignoring cookie file %s: expected a JSON array", path)
        return []
    return [c for c in data if isinstance(c, dict)]


class BrowserSession:
    """Async context manager yielding a ready-to-use page.

    Usage::

        async with BrowserSession(settings.browser) as browser:
            crawler = JobsChCrawler(browser.page, settings.crawl)
    """

    def __init__(self, config: BrowserConfig) -> None:
        self._config = config
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        if self._page is None:
            msg = "BrowserSession not entered — use 'async with'"
            raise RuntimeError(msg)
        return self._page

    async def __aenter__(self) -> "BrowserSession":
        try:
            self._page = await self._open()
        except Exception as e:
            try:
                await self.close()
            except Exception:
                logger.debug("Cleanup after failed browser start also failed", exc_info=True)
            msg = f"Failed to start browser: {e}"
            raise FatalInitError(msg) from e
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Tear down page, context, browser and driver. Safe to call twice."""
        context, browser, playwright = self._context, self._browser, self._playwright
        self._page = self._context = self._browser = self._playwright = None
        if context is not None:
            await context.close()
        if browser is not None:
            await browser.close()
        if playwright is not None:
            await playwright.stop()

    async def _open(self) -> Page:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._config.headless,
            args=list(self._config.launch_args),
        )
        self._context = await self._browser.new_context(
            locale=self._config.locale,
            no_viewport=True,
        )
        self._context.set_default_timeout(self._config.timeout_ms)

        cookies = read_cookie_file(self._config.cookies_path)
        if cookies:
            await self._context.add_cookies(cookies)  # type: ignore[arg-type]
            logger.info("Loaded %d cookies from %s", len(cookies), self._config.cookies_path)

        logger.debug(
            "Browser ready (headless=%s, locale=%s)", self._config.headless, self._config.locale,
        )
        return await self._context.new_page()
