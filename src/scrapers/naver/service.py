"""
Hybrid Naver scraping service
==============================
Public entry point of the extraction subsystem. Holds an ordered list of
strategies and walks it until one produces an acceptable result:

  Step 1 → Try the first strategy (Firecrawl when configured)
  Step 2 → On exception, or when the policy rejects the result, try the next
  Step 3 → Return the first accepted result

Callers only see RankResult / ReviewResult values; strategy failures never
cross this boundary.

Usage:
    async with HybridScrapingService([firecrawl, playwright]) as service:
        result = await service.scrape_ranking("강남 카페", None, "1234567")
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Sequence

from scrapers.naver.models import RankQuery, RankResult, ReviewQuery, ReviewResult
from scrapers.naver.strategies.base import BaseScrapingStrategy

logger = logging.getLogger(__name__)

ContinuePolicy = Callable[[RankResult], bool]


def continue_if_not_found(result: RankResult) -> bool:
    """Default policy: a structured-extraction miss is common, keep looking."""
    return not result.found


class HybridScrapingService:
    """Strategy-agnostic ranking / review scraping with ordered fallback."""

    def __init__(
        self,
        strategies: Sequence[BaseScrapingStrategy],
        *,
        should_try_next: ContinuePolicy = continue_if_not_found,
    ) -> None:
        if not strategies:
            raise ValueError("HybridScrapingService needs at least one strategy")
        self.strategies = list(strategies)
        self.should_try_next = should_try_next
        logger.info(
            "Scraping strategies: %s",
            " -> ".join(strategy.name for strategy in self.strategies),
        )

    async def __aenter__(self) -> HybridScrapingService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # ── Public interface ──────────────────────────────────────────────

    async def scrape_ranking(
        self,
        keyword: str,
        region: str | None,
        target_listing_id: str,
    ) -> RankResult:
        query = RankQuery(keyword=keyword, region=region, target_listing_id=target_listing_id)
        last_result: RankResult | None = None

        for strategy in self.strategies:
            started = time.monotonic()
            try:
                result = await strategy.scrape_ranking(query)
            except Exception as exc:
                logger.error(
                    "%s failed for %r, trying next strategy: %s",
                    strategy.name,
                    query.search_query,
                    exc,
                )
                continue

            elapsed_ms = (time.monotonic() - started) * 1000
            logger.info(
                "%s completed in %.0fms: rank=%s, searchResultCount=%s",
                strategy.name,
                elapsed_ms,
                result.rank,
                result.search_result_count,
            )
            if not self.should_try_next(result):
                return result

            logger.warning("%s returned no match, trying next strategy", strategy.name)
            last_result = result

        return last_result if last_result is not None else RankResult.not_found()

    async def scrape_reviews(self, listing_id: str, limit: int = 10) -> list[ReviewResult]:
        query = ReviewQuery(listing_id=listing_id, limit=limit)

        strategy = next((s for s in self.strategies if s.supports_reviews), None)
        if strategy is None:
            logger.warning("No configured strategy supports review scraping")
            return []

        logger.info("Using %s for review scraping", strategy.name)
        try:
            return await strategy.scrape_reviews(query)
        except Exception as exc:
            logger.error("%s review scraping failed for place %s: %s", strategy.name, listing_id, exc)
            return []

    async def close(self) -> None:
        logger.info("Closing scraping strategies")
        await asyncio.gather(*(strategy.close() for strategy in self.strategies))
        logger.info("All scraping strategies closed")
