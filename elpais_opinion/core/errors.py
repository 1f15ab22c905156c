from __future__ import annotations


class ScrapeError(RuntimeError):
    """Base class for failures raised by the scraping pipeline."""


class SessionInitError(ScrapeError):
    """A browser session could not be created (bad credentials, hub errors)."""


class NavigationError(ScrapeError):
    """A page could not be reached, fallbacks included."""


class ExtractionError(ScrapeError):
    """An article container became unusable while reading it."""
