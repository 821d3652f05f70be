"""
Firecrawl strategy: LLM-based structured extraction
===================================================
Delegates rendering and extraction to Firecrawl's /scrape endpoint.
Robust against DOM changes, at the cost of a network dependency and
per-call pricing.

Any API failure is converted into a "not found" RankResult so the hybrid
service can fall back to the browser strategy.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from scrapers.naver.errors import ConfigurationError
from scrapers.naver.models import RankQuery, RankResult, ReviewQuery, ReviewResult
from scrapers.naver.strategies.base import BaseScrapingStrategy

logger = logging.getLogger(__name__)

SEARCH_URL_TEMPLATE = "https://search.naver.com/search.naver?where=place&query={query}"
REQUEST_TIMEOUT = 30.0
WAIT_FOR_MS = 3000

EXTRACT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "places": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "rank": {"type": "number", "description": "검색 결과에서의 순위 (1부터 시작)"},
                    "name": {"type": "string", "description": "플레이스 이름"},
                    "place_id": {"type": "string", "description": "네이버 플레이스 ID (URL에서 추출)"},
                },
            },
        },
        "total_results": {"type": "number", "description": "전체 검색 결과 수"},
    },
}

EXTRACT_PROMPT = (
    "네이버 플레이스 검색 결과에서 상위 20개 장소 정보를 순서대로 추출해주세요.\n"
    "각 장소의 순위(1부터 시작), 이름, 플레이스 ID를 추출합니다.\n"
    "플레이스 ID는 URL에서 /place/ 뒤에 오는 숫자입니다.\n"
    "total_results는 페이지에 표시된 전체 검색 결과 개수입니다."
)


def build_search_url(query: RankQuery) -> str:
    return SEARCH_URL_TEMPLATE.format(query=quote(query.search_query, safe=""))


def _as_positive_int(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 1 else None


def _as_count(value: Any) -> int | None:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number >= 0 else None


def _deep_get(d: Any, *keys: str) -> Any:
    """Nested dict at `keys`, or None if any level is missing or not a dict."""
    for key in keys:
        if not isinstance(d, dict):
            return None
        d = d.get(key)
    return d if isinstance(d, dict) else None


def match_target(places: list[dict[str, Any]], target_listing_id: str) -> int | None:
    """
    Rank of the target among the extracted places.

    Identifier equality wins over a substring name match. The item's own
    `rank` field is used when valid, otherwise its position in the list.
    """
    def rank_of(index: int, place: dict[str, Any]) -> int:
        return _as_positive_int(place.get("rank")) or index + 1

    for index, place in enumerate(places):
        if str(place.get("place_id") or "") == target_listing_id:
            return rank_of(index, place)

    for index, place in enumerate(places):
        name = place.get("name")
        if isinstance(name, str) and target_listing_id in name:
            return rank_of(index, place)

    return None


class FirecrawlStrategy(BaseScrapingStrategy):
    """Ranking extraction through the Firecrawl structured-extraction API."""

    name = "firecrawl"
    supports_reviews = False

    def __init__(
        self,
        api_key: str,
        api_url: str = "https://api.firecrawl.dev/v1",
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("FIRECRAWL_API_KEY is required for FirecrawlStrategy")
        self.api_key = api_key
        self.api_url = api_url.rstrip("/")
        self._transport = transport

    def _build_payload(self, url: str) -> dict[str, Any]:
        return {
            "url": url,
            "formats": ["extract"],
            "extract": {"schema": EXTRACT_SCHEMA, "prompt": EXTRACT_PROMPT},
            "waitFor": WAIT_FOR_MS,
        }

    async def scrape_ranking(self, query: RankQuery) -> RankResult:
        url = build_search_url(query)
        logger.info("Firecrawl scraping: %s", url)

        try:
            async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT, transport=self._transport) as client:
                response = await client.post(
                    f"{self.api_url}/scrape",
                    json=self._build_payload(url),
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                body = response.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Firecrawl API error: %s - %s",
                exc.response.status_code,
                exc.response.text[:500],
            )
            return RankResult.not_found()
        except httpx.HTTPError as exc:
            logger.error("Firecrawl request failed: %s", exc)
            return RankResult.not_found()
        except ValueError as exc:
            logger.error("Firecrawl returned an undecodable body: %s", exc)
            return RankResult.not_found()

        extract = _deep_get(body, "data", "extract") or {}
        raw_places = extract.get("places")
        places = [p for p in raw_places if isinstance(p, dict)] if isinstance(raw_places, list) else []
        total_results = _as_count(extract.get("total_results"))
        logger.info("Firecrawl extracted %d places", len(places))

        rank = match_target(places, query.target_listing_id)
        if rank is None:
            logger.warning(
                "Target place %s not found in %d Firecrawl results",
                query.target_listing_id,
                len(places),
            )
            return RankResult(rank=None, search_result_count=total_results)

        logger.info("Firecrawl found target place at rank %d", rank)
        return RankResult(rank=rank, search_result_count=total_results)

    async def scrape_reviews(self, query: ReviewQuery) -> list[ReviewResult]:
        # Review extraction is not offered through Firecrawl yet.
        logger.debug("Firecrawl review scraping not implemented; returning no reviews")
        return []

    async def close(self) -> None:
        logger.debug("Firecrawl strategy closed")
