"""Shared fixtures: HTML snapshots and a mocked Playwright page."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


def make_page(html: str = "<html><body></body></html>", url: str = "https://example.test/") -> MagicMock:
    """A stand-in for playwright.async_api.Page serving a fixed rendered DOM."""
    page = MagicMock()
    page.url = url
    page.goto = AsyncMock(return_value=None)
    page.wait_for_selector = AsyncMock(return_value=MagicMock())
    page.wait_for_load_state = AsyncMock(return_value=None)
    page.query_selector = AsyncMock(return_value=None)
    page.content = AsyncMock(return_value=html)
    page.close = AsyncMock(return_value=None)
    page.main_frame = MagicMock(url=url)
    page.frames = [page.main_frame]
    return page


def make_browser(page: MagicMock) -> MagicMock:
    browser = MagicMock()
    browser.new_page = AsyncMock(return_value=page)
    browser.close = AsyncMock(return_value=None)
    return browser


@pytest.fixture
def search_html() -> str:
    return load_fixture("search_place_results.html")


@pytest.fixture
def reviews_html() -> str:
    return load_fixture("place_reviews.html")
