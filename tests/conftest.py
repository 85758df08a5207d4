"""Shared pytest fixtures and helpers.

HTTP fetches are stubbed by patching ``httpx.AsyncClient.get`` with real
``httpx.Response`` objects built by ``make_response``; the browser is never
launched in tests.

Usage in new test files:
    def test_something(shared_client, fake_scraper):
        fake_scraper.fetch_content.return_value = ScrapedContentOutput(...)
        resp = shared_client.post("/scraper/fetch-content", json={...})
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from readlater.core.dependencies import get_scraper_service
from readlater.main import app
from readlater.services.scraper.orchestrator import ScraperService


def make_response(
    url: str,
    body: str = "",
    status_code: int = 200,
    content_type: str = "text/html; charset=utf-8",
) -> httpx.Response:
    """Build a real httpx.Response as if ``url`` had been fetched."""
    return httpx.Response(
        status_code,
        text=body,
        headers={"content-type": content_type},
        request=httpx.Request("GET", url),
    )


def paragraphs(count: int, sentence: str = "Readable sentence about the topic at hand. ") -> str:
    """Return ``count`` long ``<p>`` elements, enough to pass the quality gate."""
    return "\n".join(f"<p>{sentence * 6}Paragraph {i}.</p>" for i in range(count))


# ------------------------------------------------------------------
# API fixtures (shared_ prefix to avoid collisions)
# ------------------------------------------------------------------


@pytest.fixture()
def fake_scraper() -> MagicMock:
    """A ScraperService stand-in with async scrape methods."""
    scraper = MagicMock(spec=ScraperService)
    scraper.fetch_content = AsyncMock()
    scraper.fetch_content_with_save = AsyncMock()
    scraper.close = AsyncMock()
    return scraper


@pytest.fixture()
def shared_client(fake_scraper: MagicMock):
    """TestClient whose routes use ``fake_scraper``."""
    app.dependency_overrides[get_scraper_service] = lambda: fake_scraper
    with TestClient(app) as tc:
        yield tc
    app.dependency_overrides.clear()
