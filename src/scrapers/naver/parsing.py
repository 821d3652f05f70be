"""
Pure parsing helpers for rendered Naver markup.

Everything here works on BeautifulSoup tags / plain strings and never
touches the browser, so it can be tested against HTML fixtures.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from datetime import date, timedelta
from urllib.parse import parse_qs, urlparse

from bs4 import Tag
from dateutil.relativedelta import relativedelta

from scrapers.naver.models import ReviewResult, ReviewType
from scrapers.naver.selectors import (
    REVIEW_AUTHOR,
    REVIEW_CONTENT,
    REVIEW_DATE,
    REVIEW_RATING,
    REVIEW_TYPE,
    first_match,
)

logger = logging.getLogger(__name__)

# ── Regex Patterns ─────────────────────────────────────────────────────

_COUNT = re.compile(r"\d[\d,]*")
_PLACE_PATH = re.compile(r"/place/(\d+)")
_DIGITS = re.compile(r"^\d+$")
# "10점 만점" is the scale, not the score
_RATING_SCALE = re.compile(r"\d+\s*점\s*만점")
_RATING = re.compile(r"(\d+)(?:\.\d+)?\s*점?")

# "2025.12.29"
_DOT_DATE = re.compile(r"(\d{4})\.(\d{1,2})\.(\d{1,2})")
# "3일 전", "1주 전", "2개월 전"
_RELATIVE_DATE = re.compile(r"(\d+)\s*(일|주|개월)\s*전")

_BLOG_MARKERS = ("블로그", "blog")
_VISITOR_MARKERS = ("방문자", "방문", "visitor")


# ── Search results ────────────────────────────────────────────────────

def parse_result_count(text: str | None) -> int | None:
    """'검색결과 1,234건' -> 1234. None when no digits are present."""
    if not text:
        return None
    match = _COUNT.search(text)
    if not match:
        return None
    return int(match.group(0).replace(",", ""))


def _id_from_place_attr(item: Tag) -> str | None:
    return item.get("data-place-id") or None


def _id_from_data_id(item: Tag) -> str | None:
    value = item.get("data-id")
    return value if value and _DIGITS.match(value) else None


def _id_from_place_href(item: Tag) -> str | None:
    for anchor in item.find_all("a", href=True):
        match = _PLACE_PATH.search(anchor["href"])
        if match:
            return match.group(1)
    return None


def _id_from_query_param(item: Tag) -> str | None:
    for anchor in item.find_all("a", href=True):
        values = parse_qs(urlparse(anchor["href"]).query).get("id", [])
        for value in values:
            if _DIGITS.match(value):
                return value
    return None


def _id_from_nested_element(item: Tag) -> str | None:
    nested = item.select_one("[data-place-id]")
    return nested.get("data-place-id") if nested else None


# Order matters: the first lookup that yields an id wins.
LISTING_ID_LOOKUPS = (
    _id_from_place_attr,
    _id_from_data_id,
    _id_from_place_href,
    _id_from_query_param,
    _id_from_nested_element,
)


def extract_listing_id(item: Tag) -> str | None:
    """Best-effort Naver Place id of a search result item."""
    return first_match(LISTING_ID_LOOKUPS, item)


def find_listing_rank(items: Sequence[Tag], target_listing_id: str) -> int | None:
    """
    1-based position of the target listing among `items` (document order).

    Returns None when the listing is not among them (圏外, not an error).
    """
    for position, item in enumerate(items, start=1):
        if extract_listing_id(item) == target_listing_id:
            return position
    return None


# ── Reviews ───────────────────────────────────────────────────────────

def _review_id_from_attr(item: Tag) -> str | None:
    return item.get("data-review-id") or None


def _review_id_from_data_id(item: Tag) -> str | None:
    return item.get("data-id") or None


def _review_id_from_nested(item: Tag) -> str | None:
    nested = item.select_one("[data-review-id]")
    return nested.get("data-review-id") if nested else None


REVIEW_ID_LOOKUPS = (_review_id_from_attr, _review_id_from_data_id, _review_id_from_nested)


def classify_review_type(badge_text: str | None) -> ReviewType:
    if not badge_text:
        return ReviewType.OTHER
    lowered = badge_text.lower()
    if any(marker in lowered for marker in _BLOG_MARKERS):
        return ReviewType.BLOG
    if any(marker in lowered for marker in _VISITOR_MARKERS):
        return ReviewType.VISITOR
    return ReviewType.OTHER


def parse_rating(element: Tag | None) -> int | None:
    """Star rating from the element text, or its aria-label (e.g. '별점 4점')."""
    if element is None:
        return None
    text = element.get_text(strip=True) or element.get("aria-label") or ""
    match = _RATING.search(_RATING_SCALE.sub(" ", text))
    if match is None:
        return None
    value = int(match.group(1))
    return value if 1 <= value <= 5 else None


def parse_published_date(text: str | None, today: date) -> date | None:
    """
    Normalize Naver's free-form review date to an absolute date.

    Tried in order:
      1. "2025.12.29"
      2. "3일 전" / "1주 전" / "2개월 전" (relative to `today`)
      3. "오늘" / "어제"

    Anything else yields None.
    """
    if not text:
        return None

    match = _DOT_DATE.search(text)
    if match:
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            logger.debug("Invalid calendar date in %r", text)
            return None

    match = _RELATIVE_DATE.search(text)
    if match:
        amount = int(match.group(1))
        unit = match.group(2)
        if unit == "일":
            return today - timedelta(days=amount)
        if unit == "주":
            return today - timedelta(weeks=amount)
        return today - relativedelta(months=amount)

    if "오늘" in text:
        return today
    if "어제" in text:
        return today - timedelta(days=1)

    return None


def parse_review_item(item: Tag, today: date) -> ReviewResult | None:
    """
    Extract one review. Returns None when the item carries no review id,
    since such a review cannot be deduplicated downstream.
    """
    review_id = first_match(REVIEW_ID_LOOKUPS, item)
    if not review_id:
        return None

    return ReviewResult(
        external_review_id=review_id,
        review_type=classify_review_type(REVIEW_TYPE.text(item)),
        content=REVIEW_CONTENT.text(item),
        rating=parse_rating(REVIEW_RATING.select_one(item)),
        author=REVIEW_AUTHOR.text(item),
        published_at=parse_published_date(REVIEW_DATE.text(item), today),
    )
