"""Tests for the handler chain executor."""

from __future__ import annotations

import pytest
from conftest import paragraphs

from readlater.services.scraper.base import PDF_CONTENT_TYPE, PreHandleResult
from readlater.services.scraper.chain import ChainExecutor
from readlater.services.scraper.exceptions import NetworkFailure
from readlater.services.scraper.registry import HandlerRegistry

READABLE = paragraphs(5)
THIN = "<p>Loading...</p>"


class ScriptedHandler:
    """Handler that claims URLs by substring and returns a fixed result."""

    def __init__(
        self,
        name: str,
        claims: str = "",
        result: PreHandleResult | None = None,
        rewrite_to: str | None = None,
        error: Exception | None = None,
        is_fallback: bool = False,
    ) -> None:
        self.name = name
        self.claims = claims
        self.result = result
        self.rewrite_to = rewrite_to
        self.error = error
        self.is_fallback = is_fallback
        self.seen: list[str] = []

    def can_handle(self, url: str) -> bool:
        return self.claims in url

    async def handle(self, url: str) -> PreHandleResult | None:
        self.seen.append(url)
        if self.error is not None:
            raise self.error
        if self.rewrite_to is not None:
            return PreHandleResult(url=self.rewrite_to)
        if self.result is None:
            return None
        return PreHandleResult(
            url=url,
            title=self.result.title,
            content=self.result.content,
            content_type=self.result.content_type,
        )


def _fallback(content: str | None = None, title: str | None = None) -> ScriptedHandler:
    result = PreHandleResult(url="", title=title, content=content, content_type="text/html")
    return ScriptedHandler("readability", result=result, is_fallback=True)


class TestChainExecutor:
    """Test suite for ChainExecutor.execute()."""

    @pytest.mark.asyncio
    async def test_readable_content_short_circuits(self) -> None:
        first = ScriptedHandler("site", claims="example.com", result=PreHandleResult(url="", title="T", content=READABLE))
        fallback = _fallback(content=READABLE)

        result = await ChainExecutor(HandlerRegistry([first, fallback])).execute("https://example.com/a")

        assert result.content == READABLE
        assert result.title == "T"
        assert fallback.seen == []

    @pytest.mark.asyncio
    async def test_thin_content_continues_and_keeps_best(self) -> None:
        first = ScriptedHandler("site", claims="example.com", result=PreHandleResult(url="", title="Site Title", content=THIN))
        fallback = _fallback(content=None)

        result = await ChainExecutor(HandlerRegistry([first, fallback])).execute("https://example.com/a")

        assert fallback.seen == ["https://example.com/a"]
        assert result.content == THIN
        assert result.title == "Site Title"
        assert result.content_type == "text/html"

    @pytest.mark.asyncio
    async def test_pdf_is_terminal(self) -> None:
        pdf = ScriptedHandler(
            "pdf",
            claims=".pdf",
            result=PreHandleResult(url="", title="Report", content_type=PDF_CONTENT_TYPE),
        )
        fallback = _fallback(content=READABLE)

        result = await ChainExecutor(HandlerRegistry([pdf, fallback])).execute("https://example.com/report.pdf")

        assert result.content_type == PDF_CONTENT_TYPE
        assert result.title == "Report"
        assert result.content is None
        assert fallback.seen == []

    @pytest.mark.asyncio
    async def test_handler_errors_are_isolated(self) -> None:
        broken = ScriptedHandler("broken", claims="example.com", error=NetworkFailure("boom"))
        unexpected = ScriptedHandler("unexpected", claims="example.com", error=RuntimeError("bug"))
        fallback = _fallback(content=READABLE, title="Fallback Title")

        result = await ChainExecutor(HandlerRegistry([broken, unexpected, fallback])).execute("https://example.com/a")

        assert broken.seen and unexpected.seen
        assert result.title == "Fallback Title"
        assert result.content == READABLE

    @pytest.mark.asyncio
    async def test_can_handle_errors_are_isolated(self) -> None:
        class ExplodingMatcher(ScriptedHandler):
            def can_handle(self, url: str) -> bool:
                raise ValueError("bad url")

        fallback = _fallback(content=READABLE)

        result = await ChainExecutor(HandlerRegistry([ExplodingMatcher("x"), fallback])).execute("https://example.com/")

        assert result.content == READABLE

    @pytest.mark.asyncio
    async def test_rewrite_continues_with_remaining_handlers(self) -> None:
        """Test that later handlers see the rewritten URL and earlier ones are not revisited."""
        early = ScriptedHandler("early", claims="m.example.com", result=PreHandleResult(url="", content=READABLE))
        rewriter = ScriptedHandler("rewrite", claims="www.example.com", rewrite_to="https://m.example.com/a")
        fallback = _fallback(content=READABLE)

        result = await ChainExecutor(HandlerRegistry([early, rewriter, fallback])).execute("https://www.example.com/a")

        assert early.seen == []
        assert fallback.seen == ["https://m.example.com/a"]
        assert result.url == "https://m.example.com/a"

    @pytest.mark.asyncio
    async def test_rewrite_restarts_when_enabled(self) -> None:
        early = ScriptedHandler("early", claims="m.example.com", result=PreHandleResult(url="", content=READABLE))
        rewriter = ScriptedHandler("rewrite", claims="www.example.com", rewrite_to="https://m.example.com/a")
        fallback = _fallback(content=None)

        executor = ChainExecutor(HandlerRegistry([early, rewriter, fallback]), restart_on_rewrite=True)
        result = await executor.execute("https://www.example.com/a")

        assert early.seen == ["https://m.example.com/a"]
        assert fallback.seen == []
        assert result.content == READABLE

    @pytest.mark.asyncio
    async def test_restarts_are_bounded(self) -> None:
        """Test that a rewrite cycle stops after max_restarts."""
        to_b = ScriptedHandler("to_b", claims="a.example.com", rewrite_to="https://b.example.com/")
        to_a = ScriptedHandler("to_a", claims="b.example.com", rewrite_to="https://a.example.com/")
        fallback = _fallback(content=None)

        executor = ChainExecutor(
            HandlerRegistry([to_b, to_a, fallback]), restart_on_rewrite=True, max_restarts=2
        )
        result = await executor.execute("https://a.example.com/")

        assert to_b.seen == ["https://a.example.com/", "https://a.example.com/"]
        assert to_a.seen == ["https://b.example.com/", "https://b.example.com/"]
        assert fallback.seen == ["https://a.example.com/"]
        assert result.url == "https://a.example.com/"

    @pytest.mark.asyncio
    async def test_empty_fields_never_erase(self) -> None:
        titled = ScriptedHandler("titled", claims="example.com", result=PreHandleResult(url="", title="Keep Me", content=THIN))
        fallback = _fallback(content=None, title=None)

        result = await ChainExecutor(HandlerRegistry([titled, fallback])).execute("https://example.com/")

        assert result.title == "Keep Me"
        assert result.content == THIN

    @pytest.mark.asyncio
    async def test_nothing_matches_returns_input(self) -> None:
        fallback = ScriptedHandler("readability", claims="https://", is_fallback=True)

        result = await ChainExecutor(HandlerRegistry([fallback])).execute("ftp://example.com/")

        assert result == PreHandleResult(url="ftp://example.com/")
