"""Manual check: scrape a Naver ranking or a place's reviews and print JSON.

Usage:
    python scripts/scrape_naver.py ranking "강남 카페" 1234567890 --region 역삼동
    python scripts/scrape_naver.py reviews 1234567890 --limit 5
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.config import settings
from scrapers.naver.factory import ScrapingServiceFactory


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Naver Place scraping smoke test")
    sub = parser.add_subparsers(dest="command", required=True)

    ranking = sub.add_parser("ranking", help="Find a place's rank for a keyword")
    ranking.add_argument("keyword")
    ranking.add_argument("place_id")
    ranking.add_argument("--region", default=None)

    reviews = sub.add_parser("reviews", help="Scrape recent reviews of a place")
    reviews.add_argument("place_id")
    reviews.add_argument("--limit", type=int, default=10)
    return parser


async def main(args: argparse.Namespace) -> int:
    async with ScrapingServiceFactory.create() as service:
        if args.command == "ranking":
            result = await service.scrape_ranking(args.keyword, args.region, args.place_id)
            output = result.as_dict()
        else:
            reviews = await service.scrape_reviews(args.place_id, args.limit)
            output = [review.as_dict() for review in reviews]

    print(json.dumps(output, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.DEBUG if settings.scraping_debug else logging.INFO,
        format="%(asctime)s - [%(levelname)s] - %(name)s - %(message)s",
    )
    sys.exit(asyncio.run(main(_build_parser().parse_args())))
