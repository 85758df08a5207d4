"""Ordered registry of content handlers."""

from __future__ import annotations

from typing import Iterable, Sequence

from readlater.services.scraper.base import Handler, HttpRequestConfig, ScraperConfig
from readlater.services.scraper.exceptions import InvalidUrlInput
from readlater.services.scraper.handlers import (
    FeedHandler,
    PdfHandler,
    ReadabilityHandler,
    VideoHandler,
    build_platform_handlers,
    build_rewrite_handlers,
)
from readlater.services.scraper.handlers.generic import CRAWLER_USER_AGENT


class HandlerRegistry:
    """Immutable, ordered handler list with exactly one fallback, placed last."""

    def __init__(self, handlers: Iterable[Handler]) -> None:
        self._handlers: tuple[Handler, ...] = tuple(handlers)
        if not self._handlers:
            raise ValueError("Handler registry cannot be empty")

        fallbacks = [h for h in self._handlers if h.is_fallback]
        if len(fallbacks) != 1:
            raise ValueError(
                f"Handler registry needs exactly one fallback handler, got {len(fallbacks)}"
            )
        if not self._handlers[-1].is_fallback:
            raise ValueError("The fallback handler must be registered last")

    @property
    def handlers(self) -> Sequence[Handler]:
        return self._handlers

    def resolve(self, url: str) -> Handler:
        """Return the first handler that accepts ``url``.

        Raises:
            InvalidUrlInput: If no handler accepts it (only non-http URLs).
        """
        for handler in self._handlers:
            if handler.can_handle(url):
                return handler
        raise InvalidUrlInput("no handler accepts this URL", url)

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self):
        return iter(self._handlers)


def build_default_registry(config: ScraperConfig | None = None) -> HandlerRegistry:
    """Build the production handler order.

    File types, then platforms and newsletters, then URL rewrites, then the
    readability fallback.
    """
    config = config or ScraperConfig()
    fallback = ReadabilityHandler(
        HttpRequestConfig(
            user_agent=CRAWLER_USER_AGENT,
            timeout_seconds=config.http_timeout_seconds,
            max_content_size_mb=config.max_content_size_mb,
        )
    )
    return HandlerRegistry(
        [
            PdfHandler(),
            FeedHandler(),
            VideoHandler(),
            *build_platform_handlers(),
            *build_rewrite_handlers(),
            fallback,
        ]
    )
