"""Exception hierarchy for content scraping.

Two families live here. ``InvalidUrlInput`` and ``UnsafeUrlDetected`` reject a
request outright and reach the caller. ``ExtractionError`` and its subclasses
are recoverable: the handler chain and the browser fallback catch them and move
on to the next strategy.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base exception for all scraping errors."""

    pass


class InvalidUrlInput(ScraperError):
    """Raised when input is not an acceptable http(s) URL.

    Also raised when a redirect lands on a host the URL guard rejects.
    """

    def __init__(self, reason: str, url: str | None = None) -> None:
        message = f"Invalid URL: {reason}"
        if url:
            message = f"{message} ({url})"
        super().__init__(message)
        self.reason = reason
        self.url = url


class UnsafeUrlDetected(ScraperError):
    """Raised when the URL safety provider flags a URL."""

    def __init__(self, url: str, threats: list[str] | None = None) -> None:
        self.url = url
        self.threats = threats or []
        detail = ", ".join(self.threats) if self.threats else "unknown threat"
        super().__init__(f"Unsafe URL detected: {url} ({detail})")


class ExtractionError(ScraperError):
    """Base exception for recoverable extraction failures."""

    pass


class NetworkFailure(ExtractionError):
    """Raised for network-related failures (timeout, connection, HTTP status)."""

    pass


class RateLimitError(NetworkFailure):
    """Raised when HTTP 429 is received."""

    pass


class ContentTooLargeError(NetworkFailure):
    """Raised when a response body exceeds the size limit."""

    pass


class ContentTypeError(ExtractionError):
    """Raised when a static fetch returns a body that is not HTML."""

    pass


class DomConstructionFailure(ExtractionError):
    """Raised when fetched HTML cannot be turned into a document tree."""

    pass
