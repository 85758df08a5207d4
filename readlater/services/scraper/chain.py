"""Runs the handler chain and accumulates a best-effort result."""

from __future__ import annotations

import logging

from readlater.services.scraper.base import PDF_CONTENT_TYPE, PreHandleResult
from readlater.services.scraper.quality import ContentQualityEvaluator
from readlater.services.scraper.registry import HandlerRegistry

logger = logging.getLogger(__name__)

# Content types no HTML handler can improve on
TERMINAL_CONTENT_TYPES = frozenset({PDF_CONTENT_TYPE})


class ChainExecutor:
    """Consult handlers in order until one yields readable content.

    Each applicable handler gets the current URL. Its result is merged into
    an accumulator; readable content ends the chain, anything else is kept as
    the best so far. A handler that raises is logged and skipped.

    When a handler rewrites the URL, the remaining handlers see the new URL.
    With ``restart_on_rewrite`` the chain instead starts over from the first
    handler, at most ``max_restarts`` times.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        evaluator: ContentQualityEvaluator | None = None,
        restart_on_rewrite: bool = False,
        max_restarts: int = 3,
    ) -> None:
        self.registry = registry
        self.evaluator = evaluator or ContentQualityEvaluator()
        self.restart_on_rewrite = restart_on_rewrite
        self.max_restarts = max_restarts

    async def execute(self, url: str) -> PreHandleResult:
        """Run the chain for ``url`` and return the accumulated result."""
        accumulator = PreHandleResult(url=url)
        handlers = self.registry.handlers
        restarts = 0
        index = 0

        while index < len(handlers):
            handler = handlers[index]
            index += 1
            current_url = accumulator.url

            try:
                if not handler.can_handle(current_url):
                    continue
                logger.debug("Handler %s processing %s", handler.name, current_url)
                result = await handler.handle(current_url)
            except Exception as e:
                logger.warning(
                    "Handler %s failed for %s: %s", handler.name, current_url, e
                )
                continue

            if result is None:
                continue

            url_changed = accumulator.merge(result)

            if accumulator.content_type in TERMINAL_CONTENT_TYPES:
                logger.info(
                    "Handler %s classified %s as %s",
                    handler.name,
                    accumulator.url,
                    accumulator.content_type,
                )
                return accumulator

            if result.content:
                if self.evaluator.is_readable(result.content):
                    logger.info(
                        "Handler %s produced readable content for %s",
                        handler.name,
                        accumulator.url,
                    )
                    return accumulator
                logger.debug(
                    "Handler %s content below quality threshold for %s",
                    handler.name,
                    accumulator.url,
                )

            if url_changed and self.restart_on_rewrite:
                if restarts < self.max_restarts:
                    restarts += 1
                    index = 0
                    logger.debug(
                        "Restarting chain for rewritten URL %s (%d/%d)",
                        accumulator.url,
                        restarts,
                        self.max_restarts,
                    )
                else:
                    logger.warning(
                        "Rewrite restart limit reached for %s", accumulator.url
                    )

        logger.info("Handler chain exhausted for %s", accumulator.url)
        return accumulator
