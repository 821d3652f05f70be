"""
Playwright strategy: headless Chromium + selector cascades
==========================================================
Renders Naver pages in a real browser and reads rank / review data from
the DOM.

Flow per call:
  Step 1 → Open an isolated page on the shared browser
  Step 2 → Navigate (networkidle), retrying twice with 1s / 2s backoff
  Step 3 → Wait for the section (any selector of its cascade)
  Step 4 → Snapshot the rendered DOM and parse it with the cascades
  Step 5 → Close the page, sleep `delay` seconds (rate limiting)

Only navigation failures propagate (as NavigationError). Missing sections,
unknown markup and unparseable text all end up as "not found" values.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from urllib.parse import quote
from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup, Tag
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Frame, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from scrapers.naver.browser import BrowserHandle
from scrapers.naver.errors import NavigationError
from scrapers.naver.models import RankQuery, RankResult, ReviewQuery, ReviewResult
from scrapers.naver.parsing import find_listing_rank, parse_result_count, parse_review_item
from scrapers.naver.selectors import (
    PLACE_ITEMS,
    PLACE_SECTION,
    RESULT_COUNT,
    REVIEW_ITEMS,
    REVIEW_SECTION,
    REVIEW_TAB,
    SelectorCascade,
)
from scrapers.naver.strategies.base import BaseScrapingStrategy

logger = logging.getLogger(__name__)

SEARCH_URL_TEMPLATE = "https://search.naver.com/search.naver?query={query}"
PLACE_URL_TEMPLATE = "https://pcmap.place.naver.com/place/{listing_id}"

MAX_NAVIGATION_RETRIES = 2
DEBUG_MAX_ANCHORS = 30
DEBUG_CONTENT_PREVIEW = 2000


class PlaywrightStrategy(BaseScrapingStrategy):
    """Browser-automation scraping of Naver search results and Place reviews."""

    name = "playwright"
    supports_reviews = True

    def __init__(
        self,
        browser: BrowserHandle | None = None,
        *,
        headless: bool = True,
        navigation_timeout_ms: int = 30_000,
        delay: float = 2.0,
        timezone: str = "Asia/Seoul",
        debug: bool = False,
        retry_backoff: float = 1.0,
    ) -> None:
        self.browser = (browser or BrowserHandle(headless=headless)).retain()
        self.navigation_timeout_ms = navigation_timeout_ms
        self.delay = delay
        self.timezone = ZoneInfo(timezone)
        self.debug = debug
        self.retry_backoff = retry_backoff

    # ── Public interface (required by BaseScrapingStrategy) ────────────

    async def scrape_ranking(self, query: RankQuery) -> RankResult:
        url = SEARCH_URL_TEMPLATE.format(query=quote(query.search_query, safe=""))
        logger.info("Scraping ranking: %s (target=%s)", url, query.target_listing_id)

        try:
            async with self.browser.page() as page:
                await self._navigate(page, url)
                result = await self._extract_ranking(page, query.target_listing_id)
        finally:
            await self._rate_limit()

        logger.info(
            "Ranking result: rank=%s, resultCount=%s",
            result.rank,
            result.search_result_count,
        )
        return result

    async def scrape_reviews(self, query: ReviewQuery) -> list[ReviewResult]:
        url = PLACE_URL_TEMPLATE.format(listing_id=quote(query.listing_id, safe=""))
        logger.info("Scraping reviews: %s (limit=%d)", url, query.limit)

        try:
            async with self.browser.page() as page:
                await self._navigate(page, url)
                reviews = await self._extract_reviews(page, query)
        finally:
            await self._rate_limit()

        logger.info("Scraped %d reviews for place %s", len(reviews), query.listing_id)
        return reviews

    async def close(self) -> None:
        await self.browser.release()

    # ── Navigation ────────────────────────────────────────────────────

    async def _navigate(self, page: Page, url: str) -> None:
        """goto(networkidle) with linear backoff; raises NavigationError when exhausted."""
        attempts = MAX_NAVIGATION_RETRIES + 1
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(attempts),
                wait=wait_incrementing(start=self.retry_backoff, increment=self.retry_backoff),
                retry=retry_if_exception_type(PlaywrightError),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                sleep=asyncio.sleep,
                reraise=True,
            ):
                with attempt:
                    await page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout_ms)
        except PlaywrightError as exc:
            raise NavigationError(url, attempts, exc) from exc

    async def _wait_for(self, target: Page | Frame, cascade: SelectorCascade) -> bool:
        """Wait until ANY selector of the cascade is present. False if the wait fails."""
        try:
            await target.wait_for_selector(cascade.union(), timeout=self.navigation_timeout_ms)
            return True
        except PlaywrightTimeoutError:
            logger.warning("Section %s not found within %d ms", cascade.name, self.navigation_timeout_ms)
            return False
        except PlaywrightError as exc:
            # Frame detached or context destroyed mid-wait, e.g. right after the review tab click.
            logger.warning("Section %s wait aborted: %s", cascade.name, exc)
            return False

    # ── Ranking ───────────────────────────────────────────────────────

    async def _extract_ranking(self, page: Page, target_listing_id: str) -> RankResult:
        if not await self._wait_for(page, PLACE_SECTION):
            await self._log_selector_miss(page, PLACE_SECTION)
            return RankResult.not_found()

        try:
            soup = BeautifulSoup(await page.content(), "html.parser")
        except PlaywrightError as exc:
            logger.error("Could not read rendered search page: %s", exc)
            return RankResult.not_found()

        items = PLACE_ITEMS.select(soup)
        if not items:
            logger.warning("No place items found")
            await self._log_selector_miss(page, PLACE_ITEMS, soup)
            return RankResult.not_found()

        logger.info("Found %d place items", len(items))
        count = parse_result_count(RESULT_COUNT.text(soup))
        rank = find_listing_rank(items, target_listing_id)
        if rank is None:
            logger.warning("Place ID %s not found in results", target_listing_id)

        return RankResult(rank=rank, search_result_count=count)

    # ── Reviews ───────────────────────────────────────────────────────

    async def _extract_reviews(self, page: Page, query: ReviewQuery) -> list[ReviewResult]:
        frame = await self._resolve_review_frame(page, query.listing_id)

        if not await self._wait_for(frame, REVIEW_SECTION):
            await self._log_selector_miss(frame, REVIEW_SECTION)
            return []

        try:
            soup = BeautifulSoup(await frame.content(), "html.parser")
        except PlaywrightError as exc:
            logger.error("Could not read rendered review page: %s", exc)
            return []

        items = REVIEW_ITEMS.select(soup)
        if not items:
            logger.warning("No review items found")
            await self._log_selector_miss(frame, REVIEW_ITEMS, soup)
            return []

        logger.info("Found %d review items", len(items))
        return self._parse_reviews(items[: query.limit])

    def _parse_reviews(self, items: list[Tag]) -> list[ReviewResult]:
        """Parse each item independently; one broken item never sinks the batch."""
        today = self._today()
        reviews: list[ReviewResult] = []
        for index, item in enumerate(items):
            try:
                review = parse_review_item(item, today)
            except Exception as exc:
                logger.warning("Failed to parse review #%d: %s", index, exc)
                continue
            if review is None:
                logger.debug("Review #%d has no id, skipped", index)
                continue
            reviews.append(review)
        return reviews

    async def _resolve_review_frame(self, page: Page, listing_id: str) -> Page | Frame:
        """
        Open the review tab if present and pick the frame holding the reviews.

        Preference: a frame whose URL contains /review, then a child frame for
        this place, then the page itself.
        """
        for selector in REVIEW_TAB.selectors:
            try:
                tab = await page.query_selector(selector)
                if tab is None:
                    continue
                await tab.click()
                await page.wait_for_load_state("networkidle", timeout=self.navigation_timeout_ms)
                logger.debug("Review tab opened with selector: %s", selector)
                break
            except PlaywrightError as exc:
                logger.debug("Review tab %r not usable: %s", selector, exc)

        frames = page.frames
        for frame in frames:
            if "/review" in frame.url:
                return frame
        for frame in frames:
            if frame is not page.main_frame and listing_id in frame.url:
                return frame
        return page

    # ── Helpers ───────────────────────────────────────────────────────

    def _today(self) -> date:
        return datetime.now(self.timezone).date()

    async def _rate_limit(self) -> None:
        if self.delay > 0:
            await asyncio.sleep(self.delay)

    async def _log_selector_miss(
        self,
        target: Page | Frame,
        cascade: SelectorCascade,
        soup: BeautifulSoup | None = None,
    ) -> None:
        """Dump what the page actually contains so new selectors can be added."""
        if not self.debug:
            return
        try:
            if soup is None:
                soup = BeautifulSoup(await target.content(), "html.parser")
        except PlaywrightError as exc:
            logger.debug("Debug dump unavailable for %s: %s", cascade.name, exc)
            return

        title = soup.title.get_text(strip=True) if soup.title else ""
        logger.debug(
            "Selector miss [%s] url=%s title=%r tried=%s",
            cascade.name,
            target.url,
            title,
            list(cascade.selectors),
        )
        for anchor in soup.find_all("a", href=True, limit=DEBUG_MAX_ANCHORS):
            logger.debug("  anchor: %s | %s", anchor["href"], anchor.get_text(" ", strip=True)[:80])
        body = soup.body.get_text(" ", strip=True) if soup.body else ""
        logger.debug("  content: %s", body[:DEBUG_CONTENT_PREVIEW])
