"""Strategies package: interchangeable ways of scraping Naver Place."""

from scrapers.naver.strategies.base import BaseScrapingStrategy
from scrapers.naver.strategies.firecrawl import FirecrawlStrategy
from scrapers.naver.strategies.playwright_strategy import PlaywrightStrategy

__all__ = [
    "BaseScrapingStrategy",
    "FirecrawlStrategy",
    "PlaywrightStrategy",
]
