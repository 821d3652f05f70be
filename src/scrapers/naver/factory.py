"""
Factory for the Naver scraping service.

Decides which strategies to instantiate from the configured settings:

  hybrid    → Firecrawl (only if an API key is set) then Playwright
  firecrawl → Firecrawl only; a missing API key is a configuration error
  browser   → Playwright only
"""

from __future__ import annotations

import logging

from core.config import Settings, settings as default_settings
from scrapers.naver.browser import BrowserHandle
from scrapers.naver.service import HybridScrapingService
from scrapers.naver.strategies.base import BaseScrapingStrategy
from scrapers.naver.strategies.firecrawl import FirecrawlStrategy
from scrapers.naver.strategies.playwright_strategy import PlaywrightStrategy

logger = logging.getLogger(__name__)


class ScrapingServiceFactory:
    """
    Static factory to create a fully wired HybridScrapingService.

    Usage:
        service = ScrapingServiceFactory.create()
        result = await service.scrape_ranking("강남 카페", None, "1234567")
    """

    @staticmethod
    def create_firecrawl(config: Settings) -> FirecrawlStrategy:
        return FirecrawlStrategy(api_key=config.firecrawl_api_key, api_url=config.firecrawl_api_url)

    @staticmethod
    def create_playwright(config: Settings, browser: BrowserHandle | None = None) -> PlaywrightStrategy:
        return PlaywrightStrategy(
            browser or BrowserHandle(headless=config.browser_headless),
            navigation_timeout_ms=config.navigation_timeout_ms,
            delay=config.scraping_delay,
            timezone=config.scraping_timezone,
            debug=config.scraping_debug,
        )

    @staticmethod
    def create(
        config: Settings | None = None,
        *,
        browser: BrowserHandle | None = None,
    ) -> HybridScrapingService:
        """
        Build the service for `config.scraping_strategy`.

        Raises ConfigurationError immediately when the Firecrawl strategy is
        explicitly requested without an API key.
        """
        config = config or default_settings
        mode = config.scraping_strategy
        strategies: list[BaseScrapingStrategy] = []

        if mode == "firecrawl":
            strategies.append(ScrapingServiceFactory.create_firecrawl(config))
        elif mode == "hybrid":
            if config.firecrawl_api_key:
                strategies.append(ScrapingServiceFactory.create_firecrawl(config))
                logger.info("Firecrawl enabled")
            else:
                logger.info("Firecrawl disabled (no API key), using Playwright only")

        if mode in ("hybrid", "browser"):
            strategies.append(ScrapingServiceFactory.create_playwright(config, browser))

        return HybridScrapingService(strategies)
