"""Abstract base class for all Naver scraping strategies (Strategy Pattern)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from scrapers.naver.models import RankQuery, RankResult, ReviewQuery, ReviewResult


class BaseScrapingStrategy(ABC):
    """
    Contract for every way of extracting Naver Place data.

    Principles:
    - Exactly one RankResult per RankQuery; 0..limit reviews per ReviewQuery.
    - "Not found" is a return value (rank=None / empty list), never an exception.
    - Raise only when extraction cannot be attempted at all.
    - All methods are async for Playwright / httpx compatibility.
    """

    name: str = "base"
    supports_reviews: bool = True

    @abstractmethod
    async def scrape_ranking(self, query: RankQuery) -> RankResult:
        """Locate `query.target_listing_id` in the search results for the query."""
        ...

    @abstractmethod
    async def scrape_reviews(self, query: ReviewQuery) -> list[ReviewResult]:
        """Extract up to `query.limit` recent reviews of a listing."""
        ...

    async def close(self) -> None:
        """Release any resources held by the strategy."""
        return None
