"""Tests for ScraperService, the scrape orchestrator."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from conftest import make_response, paragraphs

from readlater.services.articles import SaveOptions
from readlater.services.scraper.article import ExtractedArticle
from readlater.services.scraper.base import (
    PDF_CONTENT_TYPE,
    FetchContentInput,
    PreHandleResult,
    ScrapedContentOutput,
    ScraperConfig,
)
from readlater.services.scraper.chain import ChainExecutor
from readlater.services.scraper.exceptions import (
    InvalidUrlInput,
    NetworkFailure,
    UnsafeUrlDetected,
)
from readlater.services.scraper.fallback import BrowserFallback, RenderedPage
from readlater.services.scraper.orchestrator import ScraperService
from readlater.services.scraper.quality import ContentQualityEvaluator
from readlater.services.scraper.registry import build_default_registry

ARTICLE_HTML = f"""
<html>
<head><title>Why Queues Matter</title></head>
<body>
  <div class="story">
    <h1>Why Queues Matter</h1>
    {paragraphs(6, "Queues decouple producers from consumers and smooth out bursts of work. ")}
  </div>
</body>
</html>
"""

SPA_SHELL = '<html><head><title>App</title></head><body><div id="root"></div></body></html>'


def _fake_chain(result: PreHandleResult) -> MagicMock:
    chain = MagicMock(spec=ChainExecutor)
    chain.execute = AsyncMock(return_value=result)
    chain.evaluator = ContentQualityEvaluator()
    return chain


def _fake_fallback(rendered: RenderedPage | None = None, error: Exception | None = None) -> MagicMock:
    fallback = MagicMock(spec=BrowserFallback)
    fallback.render = AsyncMock(return_value=rendered, side_effect=error)
    fallback.manager = MagicMock()
    fallback.manager.close = AsyncMock()
    return fallback


def _rendered(url: str, html: str = ARTICLE_HTML, title: str | None = "Rendered Title") -> RenderedPage:
    return RenderedPage(final_url=url, title=title, html=html, content_type="text/html")


class TestFetchContentEndToEnd:
    """ScraperService with the real handler chain and a stubbed network."""

    @pytest.mark.asyncio
    async def test_plain_article_needs_no_browser(self) -> None:
        url = "https://news.example.org/2024/queues"
        fallback = _fake_fallback()
        service = ScraperService(ChainExecutor(build_default_registry()), fallback=fallback)
        response = make_response(url, ARTICLE_HTML)

        with patch.object(httpx.AsyncClient, "get", new=AsyncMock(return_value=response)):
            output = await service.fetch_content(FetchContentInput(url=url))

        assert output.final_url == url
        assert output.title == "Why Queues Matter"
        assert "Queues decouple producers" in output.content
        assert output.content_type == "text/html"
        fallback.render.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_spa_shell_escalates_to_browser(self) -> None:
        url = "https://spa.example.com/app"
        fallback = _fake_fallback(_rendered(url))
        service = ScraperService(ChainExecutor(build_default_registry()), fallback=fallback)
        response = make_response(url, SPA_SHELL)

        with patch.object(httpx.AsyncClient, "get", new=AsyncMock(return_value=response)):
            output = await service.fetch_content(
                FetchContentInput(url=url, locale="en-US", timezone="UTC")
            )

        fallback.render.assert_awaited_once_with(url, locale="en-US", timezone="UTC")
        assert "Queues decouple producers" in output.content
        assert output.title == "Why Queues Matter"
        assert output.final_url == url

    @pytest.mark.asyncio
    async def test_pdf_skips_network_and_browser(self) -> None:
        url = "https://example.com/files/annual-report.pdf"
        fallback = _fake_fallback()
        service = ScraperService(ChainExecutor(build_default_registry()), fallback=fallback)

        with patch.object(httpx.AsyncClient, "get", new=AsyncMock()) as mock_get:
            output = await service.fetch_content(FetchContentInput(url=url))

        assert output.content_type == PDF_CONTENT_TYPE
        assert output.title == "Annual Report"
        assert output.content is None
        mock_get.assert_not_awaited()
        fallback.render.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_input_fails_before_any_io(self) -> None:
        safety = MagicMock()
        safety.check_url_safety = AsyncMock()
        fallback = _fake_fallback()
        service = ScraperService(
            ChainExecutor(build_default_registry()), fallback=fallback, safety=safety
        )

        with patch.object(httpx.AsyncClient, "get", new=AsyncMock()) as mock_get:
            with pytest.raises(InvalidUrlInput):
                await service.fetch_content(FetchContentInput(url="not a url"))

        mock_get.assert_not_awaited()
        safety.check_url_safety.assert_not_awaited()
        fallback.render.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_url_is_normalized_before_scraping(self) -> None:
        chain = _fake_chain(PreHandleResult(url="https://example.com/a", content=paragraphs(4)))
        service = ScraperService(chain)

        await service.fetch_content(
            FetchContentInput(url="Read this: https://Example.com/a?utm_source=x#top")
        )

        chain.execute.assert_awaited_once_with("https://example.com/a")


class TestFetchContentDecisions:
    """ScraperService escalation and failure handling."""

    @pytest.mark.asyncio
    async def test_browser_failure_returns_chain_result(self) -> None:
        chain_result = PreHandleResult(
            url="https://example.com/a", title="Chain Title", content="<p>thin</p>", content_type="text/html"
        )
        fallback = _fake_fallback(error=NetworkFailure("browser crashed"))
        service = ScraperService(_fake_chain(chain_result), fallback=fallback)

        output = await service.fetch_content(FetchContentInput(url="https://example.com/a"))

        assert output == ScrapedContentOutput(
            final_url="https://example.com/a",
            title="Chain Title",
            content="<p>thin</p>",
            content_type="text/html",
        )

    @pytest.mark.asyncio
    async def test_browser_guard_rejection_returns_chain_result(self) -> None:
        chain_result = PreHandleResult(url="https://example.com/a", title="Chain Title")
        fallback = _fake_fallback(error=InvalidUrlInput("private network addresses are not allowed"))
        service = ScraperService(_fake_chain(chain_result), fallback=fallback)

        output = await service.fetch_content(FetchContentInput(url="https://example.com/a"))

        assert output.title == "Chain Title"
        assert output.content is None

    @pytest.mark.asyncio
    async def test_no_fallback_returns_thin_result(self) -> None:
        chain_result = PreHandleResult(url="https://example.com/a", content="<p>thin</p>")
        service = ScraperService(_fake_chain(chain_result))

        output = await service.fetch_content(FetchContentInput(url="https://example.com/a"))

        assert output.content == "<p>thin</p>"

    @pytest.mark.asyncio
    async def test_raw_html_kept_when_extraction_finds_nothing(self) -> None:
        url = "https://example.com/a"
        extractor = MagicMock()
        extractor.extract.return_value = None
        fallback = _fake_fallback(_rendered(url, html=SPA_SHELL, title="Rendered Title"))
        service = ScraperService(
            _fake_chain(PreHandleResult(url=url, title="Chain Title")),
            fallback=fallback,
            extractor=extractor,
        )

        output = await service.fetch_content(FetchContentInput(url=url))

        assert output.content == SPA_SHELL
        assert output.title == "Rendered Title"

    @pytest.mark.asyncio
    async def test_title_priority_after_browser(self) -> None:
        url = "https://example.com/a"
        extractor = MagicMock()
        extractor.extract.return_value = ExtractedArticle(content="<p>x</p>", title=None)
        fallback = _fake_fallback(_rendered(url, title=None))
        service = ScraperService(
            _fake_chain(PreHandleResult(url=url, title="Chain Title")),
            fallback=fallback,
            extractor=extractor,
        )

        output = await service.fetch_content(FetchContentInput(url=url))

        assert output.title == "Chain Title"
        assert output.content == "<p>x</p>"

    @pytest.mark.asyncio
    async def test_unsafe_url_raises(self) -> None:
        chain = _fake_chain(PreHandleResult(url="https://bad.example/"))
        safety = MagicMock()
        safety.check_url_safety = AsyncMock(side_effect=UnsafeUrlDetected("https://bad.example/", ["MALWARE"]))
        service = ScraperService(chain, safety=safety)

        with pytest.raises(UnsafeUrlDetected):
            await service.fetch_content(FetchContentInput(url="https://bad.example/"))

        chain.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        async def slow(url: str) -> PreHandleResult:
            await asyncio.sleep(5)
            return PreHandleResult(url=url)

        chain = _fake_chain(PreHandleResult(url="https://example.com/"))
        chain.execute = AsyncMock(side_effect=slow)
        service = ScraperService(chain)

        with pytest.raises(asyncio.TimeoutError):
            await service.fetch_content(FetchContentInput(url="https://example.com/"), timeout_seconds=0.05)


class TestFetchContentWithSave:
    """Test suite for ScraperService.fetch_content_with_save()."""

    @pytest.mark.asyncio
    async def test_saves_result(self) -> None:
        store = MagicMock()
        store.save_scraped_content = AsyncMock()
        chain = _fake_chain(PreHandleResult(url="https://example.com/a", content=paragraphs(4)))
        service = ScraperService(chain, article_store=store)
        options = SaveOptions(tags=("python",), is_bookmarked=True)

        output = await service.fetch_content_with_save(
            FetchContentInput(url="https://example.com/a"), "user-1", options
        )

        store.save_scraped_content.assert_awaited_once_with("user-1", output, options)

    @pytest.mark.asyncio
    async def test_store_failure_is_swallowed(self) -> None:
        store = MagicMock()
        store.save_scraped_content = AsyncMock(side_effect=RuntimeError("db down"))
        chain = _fake_chain(PreHandleResult(url="https://example.com/a", content=paragraphs(4)))
        service = ScraperService(chain, article_store=store)

        output = await service.fetch_content_with_save(
            FetchContentInput(url="https://example.com/a"), "user-1", SaveOptions()
        )

        assert output.final_url == "https://example.com/a"
        assert output.content == paragraphs(4)

    @pytest.mark.asyncio
    async def test_save_disabled(self) -> None:
        store = MagicMock()
        store.save_scraped_content = AsyncMock()
        chain = _fake_chain(PreHandleResult(url="https://example.com/a"))
        service = ScraperService(chain, article_store=store)

        await service.fetch_content_with_save(
            FetchContentInput(url="https://example.com/a"), "user-1", SaveOptions(save_to_database=False)
        )

        store.save_scraped_content.assert_not_awaited()


class TestLifecycle:
    """Test suite for construction and shutdown."""

    def test_from_config_without_browser(self) -> None:
        service = ScraperService.from_config(ScraperConfig(restart_on_rewrite=True, max_restarts=1))

        assert service.fallback is None
        assert service.chain.restart_on_rewrite is True
        assert service.chain.max_restarts == 1
        assert service.evaluator is service.chain.evaluator

    def test_from_config_with_browser(self) -> None:
        manager = MagicMock()

        service = ScraperService.from_config(ScraperConfig(), browser_manager=manager)

        assert isinstance(service.fallback, BrowserFallback)
        assert service.fallback.manager is manager

    @pytest.mark.asyncio
    async def test_close_releases_browser(self) -> None:
        fallback = _fake_fallback()
        async with ScraperService(_fake_chain(PreHandleResult(url="x")), fallback=fallback):
            pass

        fallback.manager.close.assert_awaited_once()
