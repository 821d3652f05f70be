"""
Selector cascades for Naver search / Place pages
=================================================
Naver changes its markup without notice. Instead of one brittle CSS
selector per extraction point we keep an ORDERED list of known variants
and use the first one that matches anything. Exhausting the list means
"section not found", which callers treat as a normal outcome.

To support a new markup variant, append a selector to the relevant
cascade below. Control flow does not change.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import TypeVar

from bs4 import BeautifulSoup, Tag

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def first_match(lookups: Iterable[Callable[[T], R | None]], target: T) -> R | None:
    """
    Try each lookup in order against `target`, return the first non-empty result.

    Lookups are plain functions; returning None (or an empty value) means
    "no match, try the next one".
    """
    for lookup in lookups:
        value = lookup(target)
        if value:
            return value
    return None


@dataclass(frozen=True, slots=True)
class SelectorCascade:
    """An ordered list of alternative CSS selectors for one extraction point."""

    name: str
    selectors: tuple[str, ...]

    def select(self, root: BeautifulSoup | Tag) -> list[Tag]:
        """All elements matched by the first selector that matches at least one."""
        for selector in self.selectors:
            matches = root.select(selector)
            if matches:
                logger.debug("%s: matched %d element(s) with %r", self.name, len(matches), selector)
                return matches
        logger.debug("%s: no selector matched", self.name)
        return []

    def select_one(self, root: BeautifulSoup | Tag) -> Tag | None:
        matches = self.select(root)
        return matches[0] if matches else None

    def text(self, root: BeautifulSoup | Tag) -> str | None:
        """Stripped text of the first non-empty match across the whole cascade."""
        for selector in self.selectors:
            for element in root.select(selector):
                text = element.get_text(separator=" ", strip=True)
                if text:
                    return text
        return None

    def union(self) -> str:
        """Single CSS selector list matching any variant (for browser waits)."""
        return ", ".join(self.selectors)


# ── Search result page ────────────────────────────────────────────────

PLACE_SECTION = SelectorCascade(
    "place_section",
    (
        ".place_section",
        "#place-main-section",
        "#place_main_ct",
        "[class*='place_section']",
    ),
)

PLACE_ITEMS = SelectorCascade(
    "place_items",
    (
        ".place_item",
        "li[data-place-id]",
        "[data-place-id]",
        ".place_section li.item",
        ".item",
    ),
)

RESULT_COUNT = SelectorCascade(
    "result_count",
    (
        ".result_number",
        ".title_area .num",
        ".search_number",
        ".place_section .num",
    ),
)

# ── Place detail page (reviews) ───────────────────────────────────────

REVIEW_TAB = SelectorCascade(
    "review_tab",
    (
        "a[href*='/review']",
        "button[aria-label*='리뷰']",
        ".tab_review",
    ),
)

REVIEW_SECTION = SelectorCascade(
    "review_section",
    (
        ".review_item",
        ".place_review_list",
        "[data-review-id]",
        ".ReviewItem",
    ),
)

REVIEW_ITEMS = SelectorCascade(
    "review_items",
    (
        ".review_item",
        ".ReviewItem",
        "[data-review-id]",
        ".place_section_review",
        ".review_li",
    ),
)

# Sub-selectors, evaluated inside a single review item
REVIEW_TYPE = SelectorCascade("review_type", (".review_type", ".type_badge", ".ReviewType"))
REVIEW_CONTENT = SelectorCascade(
    "review_content", (".review_content", ".comment_text", ".ReviewContent")
)
REVIEW_RATING = SelectorCascade("review_rating", (".rating", ".star_score", "[class*='star']"))
REVIEW_AUTHOR = SelectorCascade(
    "review_author", (".reviewer_name", ".author", ".user_name", ".ReviewAuthor")
)
REVIEW_DATE = SelectorCascade(
    "review_date", (".review_date", ".date", ".publish_date", ".ReviewDate", "time")
)
