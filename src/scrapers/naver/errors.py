"""Exceptions raised by the Naver scraping strategies.

"Not found" outcomes are never exceptions; these cover the cases where
extraction could not be attempted at all.
"""

from __future__ import annotations


class ScrapingError(Exception):
    """Base class for all scraping failures."""


class ConfigurationError(ScrapingError):
    """A strategy was requested without the configuration it needs."""


class BrowserLaunchError(ScrapingError):
    """The shared browser process could not be started."""


class NavigationError(ScrapingError):
    """Page navigation kept failing after all retries."""

    def __init__(self, url: str, attempts: int, cause: BaseException | None = None) -> None:
        super().__init__(f"Navigation to {url} failed after {attempts} attempts: {cause}")
        self.url = url
        self.attempts = attempts
        self.cause = cause
