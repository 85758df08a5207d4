"""Scraping service: handler chain first, headless browser when needed."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from readlater.services.scraper.article import ArticleExtractor
from readlater.services.scraper.base import (
    PDF_CONTENT_TYPE,
    FetchContentInput,
    PreHandleResult,
    ScrapedContentOutput,
    ScraperConfig,
)
from readlater.services.scraper.chain import ChainExecutor
from readlater.services.scraper.exceptions import ExtractionError, InvalidUrlInput
from readlater.services.scraper.quality import ContentQualityEvaluator
from readlater.services.scraper.registry import build_default_registry
from readlater.services.scraper.url_guard import normalize

if TYPE_CHECKING:
    from readlater.services.articles import ArticleStore, SaveOptions
    from readlater.services.safety import UrlSafetyProvider
    from readlater.services.scraper.browser import BrowserManager
    from readlater.services.scraper.fallback import BrowserFallback

logger = logging.getLogger(__name__)


class ScraperService:
    """Turns a URL into readable article content.

    Order of work for one request:
    1. Normalize and guard the URL (no I/O before this passes)
    2. Ask the safety provider, if one is configured
    3. Run the handler chain
    4. Stop for PDFs and for readable content
    5. Otherwise render in the browser and extract the article from it

    After step 2 nothing raises: a failed browser render returns whatever the
    chain produced.
    """

    def __init__(
        self,
        chain: ChainExecutor,
        fallback: BrowserFallback | None = None,
        evaluator: ContentQualityEvaluator | None = None,
        extractor: ArticleExtractor | None = None,
        safety: UrlSafetyProvider | None = None,
        article_store: ArticleStore | None = None,
    ) -> None:
        self.chain = chain
        self.fallback = fallback
        self.evaluator = evaluator or chain.evaluator
        self.extractor = extractor or ArticleExtractor()
        self.safety = safety
        self.article_store = article_store

    @classmethod
    def from_config(
        cls,
        config: ScraperConfig,
        browser_manager: BrowserManager | None = None,
        safety: UrlSafetyProvider | None = None,
        article_store: ArticleStore | None = None,
    ) -> ScraperService:
        """Wire the default handler chain and, given a manager, the browser fallback."""
        evaluator = ContentQualityEvaluator(config.quality)
        chain = ChainExecutor(
            build_default_registry(config),
            evaluator,
            restart_on_rewrite=config.restart_on_rewrite,
            max_restarts=config.max_restarts,
        )
        fallback = None
        if browser_manager is not None:
            from readlater.services.scraper.fallback import BrowserFallback

            fallback = BrowserFallback(browser_manager, config.browser)
        return cls(
            chain,
            fallback=fallback,
            evaluator=evaluator,
            safety=safety,
            article_store=article_store,
        )

    async def fetch_content(
        self,
        request: FetchContentInput,
        timeout_seconds: float | None = None,
    ) -> ScrapedContentOutput:
        """Scrape ``request.url``.

        Args:
            request: URL plus optional browser locale and timezone.
            timeout_seconds: Deadline for the whole request. In-flight fetches
                and browser work are cancelled when it passes.

        Returns:
            ScrapedContentOutput, possibly without content.

        Raises:
            InvalidUrlInput: If the input is not an acceptable URL.
            UnsafeUrlDetected: If the safety provider flags the URL.
            asyncio.TimeoutError: If ``timeout_seconds`` elapses.
        """
        url = normalize(request.url)

        if self.safety is not None:
            await self.safety.check_url_safety(url)

        if timeout_seconds is None:
            return await self._scrape(url, request)
        return await asyncio.wait_for(self._scrape(url, request), timeout=timeout_seconds)

    async def _scrape(self, url: str, request: FetchContentInput) -> ScrapedContentOutput:
        result = await self.chain.execute(url)

        if result.content_type == PDF_CONTENT_TYPE:
            logger.info("PDF detected for %s, skipping browser", result.url)
            return self._output(result)

        if result.content:
            metrics = self.evaluator.evaluate(result.content)
            if not self.evaluator.should_use_browser(metrics):
                return self._output(result)
            logger.info(
                "Content for %s below quality threshold (chars=%d, paragraphs=%d, "
                "link_density=%.2f, score=%d)",
                result.url,
                metrics.character_count,
                metrics.paragraph_count,
                metrics.link_density,
                metrics.readability_score,
            )

        if self.fallback is None:
            logger.info("No browser fallback configured, returning chain result for %s", url)
            return self._output(result)

        return await self._render_with_browser(result, request)

    async def _render_with_browser(
        self, result: PreHandleResult, request: FetchContentInput
    ) -> ScrapedContentOutput:
        try:
            page = await self.fallback.render(
                result.url, locale=request.locale, timezone=request.timezone
            )
        except (ExtractionError, InvalidUrlInput) as e:
            logger.warning("Browser fallback failed for %s: %s", result.url, e)
            return self._output(result)

        article = self.extractor.extract(page.html, page.final_url)
        if article is not None:
            content = article.content
            title = article.title or page.title or result.title
        else:
            logger.info("Article extraction found nothing, keeping rendered HTML")
            content = page.html
            title = page.title or result.title

        return ScrapedContentOutput(
            final_url=page.final_url,
            title=title,
            content=content,
            content_type=page.content_type or result.content_type,
        )

    @staticmethod
    def _output(result: PreHandleResult) -> ScrapedContentOutput:
        return ScrapedContentOutput(
            final_url=result.url,
            title=result.title,
            content=result.content,
            content_type=result.content_type,
        )

    async def fetch_content_with_save(
        self,
        request: FetchContentInput,
        user_id: str,
        options: SaveOptions,
        timeout_seconds: float | None = None,
    ) -> ScrapedContentOutput:
        """Scrape, then hand the result to the article store.

        A failing store is logged and never fails the scrape.
        """
        output = await self.fetch_content(request, timeout_seconds=timeout_seconds)

        if not options.save_to_database:
            return output
        if self.article_store is None:
            logger.warning("No article store configured, not saving %s", output.final_url)
            return output

        try:
            await self.article_store.save_scraped_content(user_id, output, options)
            logger.info("Saved %s for user %s", output.final_url, user_id)
        except Exception as e:
            logger.warning(
                "Failed to save %s for user %s: %s", output.final_url, user_id, e
            )
        return output

    async def close(self) -> None:
        """Release the browser, if this service owns a fallback."""
        if self.fallback is not None:
            await self.fallback.manager.close()

    async def __aenter__(self) -> ScraperService:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
