"""Tests for the Playwright strategy against mocked pages and HTML snapshots."""

from datetime import date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from conftest import load_fixture, make_browser, make_page
from scrapers.naver import parsing
from scrapers.naver.browser import BrowserHandle
from scrapers.naver.errors import NavigationError
from scrapers.naver.models import RankQuery, ReviewQuery, ReviewType
from scrapers.naver.strategies.playwright_strategy import PlaywrightStrategy

MODULE = "scrapers.naver.strategies.playwright_strategy"


def _strategy(page: MagicMock, **kwargs) -> PlaywrightStrategy:
    handle = BrowserHandle()
    handle.get_browser = AsyncMock(return_value=make_browser(page))
    options = {"delay": 0, "retry_backoff": 0, "navigation_timeout_ms": 1000}
    options.update(kwargs)
    return PlaywrightStrategy(handle, **options)


QUERY = RankQuery(keyword="coffee", region=None, target_listing_id="123")


class TestScrapeRanking:
    @pytest.mark.asyncio
    async def test_target_found_at_fifth_of_twelve(self, search_html):
        page = make_page(search_html)

        result = await _strategy(page).scrape_ranking(QUERY)

        assert result.rank == 5
        assert result.search_result_count == 1234
        assert result.found is True
        page.goto.assert_awaited_once()
        assert page.goto.await_args.args[0] == "https://search.naver.com/search.naver?query=coffee"
        assert page.goto.await_args.kwargs["wait_until"] == "networkidle"

    @pytest.mark.asyncio
    async def test_region_in_search_url(self, search_html):
        page = make_page(search_html)

        await _strategy(page).scrape_ranking(RankQuery(keyword="카페", region="강남", target_listing_id="123"))

        assert page.goto.await_args.args[0].endswith("query=%EC%B9%B4%ED%8E%98%20%EA%B0%95%EB%82%A8")

    @pytest.mark.asyncio
    async def test_no_candidate_items(self):
        page = make_page(load_fixture("search_no_items.html"))

        result = await _strategy(page).scrape_ranking(QUERY)

        assert result.rank is None
        assert result.search_result_count is None
        assert result.found is False

    @pytest.mark.asyncio
    async def test_section_missing_is_not_found(self, search_html):
        page = make_page(search_html)
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout 1000ms exceeded")

        result = await _strategy(page).scrape_ranking(QUERY)

        assert result.found is False
        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_waits_for_any_section_variant(self, search_html):
        page = make_page(search_html)

        await _strategy(page).scrape_ranking(QUERY)

        selector = page.wait_for_selector.await_args.args[0]
        assert ".place_section" in selector
        assert "#place-main-section" in selector

    @pytest.mark.asyncio
    async def test_target_absent(self, search_html):
        page = make_page(search_html)

        result = await _strategy(page).scrape_ranking(
            RankQuery(keyword="coffee", target_listing_id="424242")
        )

        assert result.found is False
        assert result.search_result_count == 1234

    @pytest.mark.asyncio
    async def test_same_page_same_rank(self, search_html):
        strategy = _strategy(make_page(search_html))

        first = await strategy.scrape_ranking(QUERY)
        second = await strategy.scrape_ranking(QUERY)

        assert first == second

    @pytest.mark.asyncio
    async def test_page_closed_after_success(self, search_html):
        page = make_page(search_html)
        await _strategy(page).scrape_ranking(QUERY)
        page.close.assert_awaited_once()


class TestNavigationRetry:
    @pytest.mark.asyncio
    async def test_recovers_after_transient_failure(self, search_html):
        page = make_page(search_html)
        page.goto.side_effect = [PlaywrightError("net::ERR_CONNECTION_RESET"), None]

        result = await _strategy(page).scrape_ranking(QUERY)

        assert result.rank == 5
        assert page.goto.await_count == 2

    @pytest.mark.asyncio
    async def test_raises_after_three_attempts(self, search_html):
        page = make_page(search_html)
        page.goto.side_effect = PlaywrightTimeoutError("Timeout exceeded")

        with pytest.raises(NavigationError) as excinfo:
            await _strategy(page).scrape_ranking(QUERY)

        assert page.goto.await_count == 3
        assert excinfo.value.attempts == 3
        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_linear_backoff(self, search_html):
        page = make_page(search_html)
        page.goto.side_effect = PlaywrightError("boom")
        sleep = AsyncMock()

        with patch("asyncio.sleep", sleep):
            with pytest.raises(NavigationError):
                await _strategy(page, retry_backoff=1.0).scrape_ranking(QUERY)

        waits = [call.args[0] for call in sleep.await_args_list]
        assert waits == [1.0, 2.0]


class TestRateLimiting:
    @pytest.mark.asyncio
    async def test_delay_after_success(self, search_html):
        sleep = AsyncMock()
        with patch(f"{MODULE}.asyncio.sleep", sleep):
            await _strategy(make_page(search_html), delay=2.0).scrape_ranking(QUERY)
        sleep.assert_awaited_once_with(2.0)

    @pytest.mark.asyncio
    async def test_delay_after_failure(self, search_html):
        page = make_page(search_html)
        page.goto.side_effect = PlaywrightError("boom")
        sleep = AsyncMock()

        with patch("asyncio.sleep", sleep):
            with pytest.raises(NavigationError):
                await _strategy(page, delay=2.0).scrape_ranking(QUERY)

        assert sleep.await_args_list[-1].args == (2.0,)


class TestScrapeReviews:
    @pytest.mark.asyncio
    async def test_extracts_all_fields(self, reviews_html):
        page = make_page(reviews_html)
        strategy = _strategy(page)
        today = date(2026, 3, 15)

        with patch.object(PlaywrightStrategy, "_today", return_value=today):
            reviews = await strategy.scrape_reviews(ReviewQuery(listing_id="123", limit=10))

        assert [r.external_review_id for r in reviews] == [f"r{i}" for i in range(1, 11)]
        first = reviews[0]
        assert first.review_type is ReviewType.BLOG
        assert first.content == "리뷰 내용 1 입니다."
        assert first.rating == 2
        assert first.author == "작성자1"
        assert first.published_at == date(2025, 12, 29)
        assert reviews[1].review_type is ReviewType.VISITOR
        assert reviews[1].published_at == today - timedelta(days=3)
        assert reviews[2].review_type is ReviewType.OTHER
        assert reviews[7].published_at is None
        assert page.goto.await_args.args[0] == "https://pcmap.place.naver.com/place/123"

    @pytest.mark.asyncio
    async def test_respects_limit(self, reviews_html):
        reviews = await _strategy(make_page(reviews_html)).scrape_reviews(ReviewQuery(listing_id="123", limit=3))
        assert [r.external_review_id for r in reviews] == ["r1", "r2", "r3"]

    @pytest.mark.asyncio
    async def test_broken_item_is_skipped(self, reviews_html):
        real_parse = parsing.parse_review_item

        def flaky(item, today):
            if item.get("data-review-id") == "r4":
                raise AttributeError("unexpected markup")
            return real_parse(item, today)

        with patch(f"{MODULE}.parse_review_item", side_effect=flaky):
            reviews = await _strategy(make_page(reviews_html)).scrape_reviews(ReviewQuery(listing_id="123", limit=10))

        ids = [r.external_review_id for r in reviews]
        assert len(ids) == 9
        assert "r4" not in ids

    @pytest.mark.asyncio
    async def test_items_without_id_are_dropped(self):
        html = (
            '<ul class="place_review_list">'
            '<li class="review_item" data-review-id="a1"><div class="review_content">ok</div></li>'
            '<li class="review_item"><div class="review_content">no id</div></li>'
            "</ul>"
        )
        reviews = await _strategy(make_page(html)).scrape_reviews(ReviewQuery(listing_id="1"))

        assert [r.external_review_id for r in reviews] == ["a1"]
        assert all(r.external_review_id for r in reviews)

    @pytest.mark.asyncio
    async def test_section_missing_returns_empty(self, reviews_html):
        page = make_page(reviews_html)
        page.wait_for_selector.side_effect = PlaywrightTimeoutError("Timeout")

        assert await _strategy(page).scrape_reviews(ReviewQuery(listing_id="1")) == []
        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_detached_frame_while_waiting_returns_empty(self, reviews_html):
        page = make_page(reviews_html)
        page.wait_for_selector.side_effect = PlaywrightError("Frame was detached")

        assert await _strategy(page).scrape_reviews(ReviewQuery(listing_id="1")) == []
        page.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_failure_propagates(self, reviews_html):
        page = make_page(reviews_html)
        page.goto.side_effect = PlaywrightError("boom")

        with pytest.raises(NavigationError):
            await _strategy(page).scrape_reviews(ReviewQuery(listing_id="1"))

    @pytest.mark.asyncio
    async def test_review_iframe_is_used(self, reviews_html):
        page = make_page("<html><body>shell</body></html>", url="https://pcmap.place.naver.com/place/123")
        review_frame = MagicMock(url="https://pcmap.place.naver.com/place/123/review/visitor")
        review_frame.wait_for_selector = AsyncMock()
        review_frame.content = AsyncMock(return_value=reviews_html)
        page.frames = [page.main_frame, review_frame]
        tab = MagicMock()
        tab.click = AsyncMock()
        page.query_selector = AsyncMock(return_value=tab)

        reviews = await _strategy(page).scrape_reviews(ReviewQuery(listing_id="123", limit=2))

        tab.click.assert_awaited_once()
        review_frame.wait_for_selector.assert_awaited_once()
        page.content.assert_not_awaited()
        assert [r.external_review_id for r in reviews] == ["r1", "r2"]


class TestToday:
    def test_today_uses_configured_timezone(self):
        strategy = PlaywrightStrategy(BrowserHandle(), timezone="Asia/Seoul")
        expected = datetime.now(strategy.timezone).date()
        assert strategy._today() in (expected, expected + timedelta(days=1))


class TestClose:
    @pytest.mark.asyncio
    async def test_close_releases_browser(self):
        handle = BrowserHandle()
        strategy = PlaywrightStrategy(handle)
        assert handle.refcount == 1

        await strategy.close()

        assert handle.refcount == 0


class TestDebugDump:
    @pytest.mark.asyncio
    async def test_anchors_logged_on_miss(self, caplog):
        page = make_page(load_fixture("search_no_items.html"))

        with caplog.at_level("DEBUG", logger=MODULE):
            await _strategy(page, debug=True).scrape_ranking(QUERY)

        assert "Selector miss [place_items]" in caplog.text
        assert "https://help.naver.com" in caplog.text

    @pytest.mark.asyncio
    async def test_silent_without_debug(self, caplog):
        page = make_page(load_fixture("search_no_items.html"))

        with caplog.at_level("DEBUG", logger=MODULE):
            await _strategy(page, debug=False).scrape_ranking(QUERY)

        assert "Selector miss" not in caplog.text
