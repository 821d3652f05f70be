"""
Configuration management with pydantic-settings.

All scraping options are read from environment variables / .env at import
time. Every field has a default, so a bare environment runs the browser
strategy only; setting FIRECRAWL_API_KEY enables the extraction API.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Firecrawl (structured extraction API) ─────────────────────────
    firecrawl_api_key: str = Field(
        default="",
        description="Bearer token for Firecrawl. Empty disables the API strategy.",
    )
    firecrawl_api_url: str = Field(
        default="https://api.firecrawl.dev/v1",
        description="Base URL of the Firecrawl API (without /scrape).",
    )

    # ── Strategy selection ────────────────────────────────────────────
    scraping_strategy: Literal["hybrid", "firecrawl", "browser"] = Field(
        default="hybrid",
        description="hybrid = Firecrawl first with browser fallback.",
    )

    # ── Browser (Playwright) ──────────────────────────────────────────
    browser_headless: bool = Field(default=True)
    navigation_timeout_ms: int = Field(
        default=30_000,
        gt=0,
        description="Timeout for page navigation and section waits.",
    )

    # ── Scraping behaviour ────────────────────────────────────────────
    scraping_delay: float = Field(
        default=2.0,
        ge=0,
        description="Seconds to sleep after every scrape (rate limiting).",
    )
    scraping_timezone: str = Field(
        default="Asia/Seoul",
        description="Timezone used to resolve relative review dates.",
    )
    scraping_debug: bool = Field(
        default=False,
        description="Dump page anchors/content on selector misses.",
    )


# Singleton instance, import this everywhere
settings = Settings()
