"""Data models for Naver Place ranking and review extraction."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum


class ReviewType(StrEnum):
    """Review source as shown by the badge on each review."""

    BLOG = "BLOG"
    VISITOR = "VISITOR"
    OTHER = "OTHER"


@dataclass(frozen=True, slots=True)
class RankQuery:
    """A single ranking lookup: where does `target_listing_id` rank for `keyword`?"""

    keyword: str
    target_listing_id: str
    region: str | None = None

    def __post_init__(self) -> None:
        if not self.keyword or not self.keyword.strip():
            raise ValueError("keyword must not be empty")
        if not self.target_listing_id:
            raise ValueError("target_listing_id must not be empty")

    @property
    def search_query(self) -> str:
        """Keyword with the region appended, as typed into the search box."""
        if self.region:
            return f"{self.keyword} {self.region}"
        return self.keyword


@dataclass(frozen=True, slots=True)
class RankResult:
    """Outcome of a ranking lookup. `rank` is None when the listing was not found."""

    rank: int | None = None              # 1-based
    search_result_count: int | None = None

    def __post_init__(self) -> None:
        if self.rank is not None and self.rank < 1:
            raise ValueError(f"rank must be >= 1, got {self.rank}")
        if self.search_result_count is not None and self.search_result_count < 0:
            raise ValueError(f"search_result_count must be >= 0, got {self.search_result_count}")

    @property
    def found(self) -> bool:
        return self.rank is not None

    @classmethod
    def not_found(cls) -> RankResult:
        return cls(rank=None, search_result_count=None)

    def as_dict(self) -> dict[str, int | bool | None]:
        return {
            "rank": self.rank,
            "search_result_count": self.search_result_count,
            "found": self.found,
        }


@dataclass(frozen=True, slots=True)
class ReviewQuery:
    """Fetch up to `limit` recent reviews of a listing."""

    listing_id: str
    limit: int = 10

    def __post_init__(self) -> None:
        if not self.listing_id:
            raise ValueError("listing_id must not be empty")
        if self.limit < 1:
            raise ValueError(f"limit must be a positive integer, got {self.limit}")


@dataclass(frozen=True, slots=True)
class ReviewResult:
    """A single scraped review."""

    external_review_id: str            # dedup key downstream
    review_type: ReviewType = ReviewType.OTHER
    content: str | None = None
    rating: int | None = None          # 1 – 5
    author: str | None = None
    published_at: date | None = None

    def __post_init__(self) -> None:
        if not self.external_review_id:
            raise ValueError("external_review_id must not be empty")
        if self.rating is not None and not 1 <= self.rating <= 5:
            raise ValueError(f"rating must be within 1..5, got {self.rating}")

    def as_dict(self) -> dict[str, str | int | None]:
        return {
            "external_review_id": self.external_review_id,
            "review_type": str(self.review_type),
            "content": self.content,
            "rating": self.rating,
            "author": self.author,
            "published_at": self.published_at.isoformat() if self.published_at else None,
        }
