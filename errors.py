"""
Scrape pipeline errors. Every failure is fatal for its request and never retried.
"""


class ScrapeError(Exception):
    """Base class; carries the offending URL and/or selector when known."""

    def __init__(self, message: str, url: str | None = None, selector: str | None = None):
        super().__init__(message)
        self.url = url
        self.selector = selector


class ConfigValidationError(ScrapeError):
    """Malformed scrape request, raised before any browser is started."""


class LaunchError(ScrapeError):
    """The browser process failed to start."""


class NavigationError(ScrapeError):
    """The target URL could not be loaded."""


class SelectorTimeoutError(ScrapeError):
    """Product cards were present but never became visible in time."""


class ExtractionError(ScrapeError):
    """Waiting on or evaluating selectors in the page failed."""
