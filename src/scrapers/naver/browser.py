"""
Shared Playwright browser process
=================================
One Chromium process serves many scrapes; every scrape gets its own page.

- The browser is launched lazily on first use.
- Concurrent first callers await the SAME launch task, so the process is
  never launched twice. A failed launch is not cached: the next caller
  tries again. A browser that crashed or disconnected is relaunched.
- The handle is reference counted. Each owner calls `retain()` once and
  `release()` on shutdown; the process is closed with the last release.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from playwright.async_api import Browser, Page, Playwright, async_playwright

from scrapers.naver.errors import BrowserLaunchError

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)
LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class BrowserHandle:
    """Owns the lifecycle of a single shared Chromium instance."""

    def __init__(self, *, headless: bool = True, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self.headless = headless
        self.user_agent = user_agent
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._launch_task: asyncio.Task[Browser] | None = None
        self._refcount = 0

    # ── Ownership ─────────────────────────────────────────────────────

    @property
    def refcount(self) -> int:
        return self._refcount

    @property
    def is_running(self) -> bool:
        return self._browser is not None

    def retain(self) -> BrowserHandle:
        self._refcount += 1
        return self

    async def release(self) -> None:
        """Drop one reference; closes the browser when nobody holds it anymore."""
        if self._refcount > 0:
            self._refcount -= 1
        if self._refcount == 0:
            await self.close()

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def get_browser(self) -> Browser:
        """Return the running browser, launching it if needed (start-once)."""
        if self._browser is not None:
            if self._browser.is_connected():
                return self._browser
            logger.warning("Chromium disconnected, relaunching")
            await self._discard()

        if self._launch_task is None:
            self._launch_task = asyncio.ensure_future(self._launch())

        task = self._launch_task
        try:
            return await asyncio.shield(task)
        except BaseException:
            if self._launch_task is task and task.done():
                self._launch_task = None
            raise

    async def _discard(self) -> None:
        """Forget a crashed browser so the next caller launches a fresh one."""
        playwright = self._playwright
        self._browser = None
        self._playwright = None
        self._launch_task = None
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as exc:
                logger.debug("Playwright driver stop after disconnect failed: %s", exc)

    async def _launch(self) -> Browser:
        logger.info("Launching Chromium (headless=%s)", self.headless)
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(headless=self.headless, args=LAUNCH_ARGS)
        except Exception as exc:
            await playwright.stop()
            raise BrowserLaunchError(f"Could not launch Chromium: {exc}") from exc

        self._playwright = playwright
        self._browser = browser
        return browser

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        """Open an isolated page; it is always closed on exit."""
        browser = await self.get_browser()
        page = await browser.new_page(user_agent=self.user_agent, locale="ko-KR")
        try:
            yield page
        finally:
            await page.close()

    async def close(self) -> None:
        """Close the browser process (idempotent)."""
        if self._launch_task is not None and not self._launch_task.done():
            # Let a concurrent launch settle so its process does not leak.
            try:
                await self._launch_task
            except BrowserLaunchError as exc:
                logger.debug("Pending launch failed during close: %s", exc)
        self._launch_task = None

        if self._browser is not None:
            await self._browser.close()
            self._browser = None
            logger.info("Browser closed")
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
