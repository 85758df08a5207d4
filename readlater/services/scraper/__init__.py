"""Content scraping for read-it-later articles.

Cheapest strategy first:
1. Handler chain - per-site profiles, file-type detection, URL rewrites and a
   readability fallback, all over plain HTTP
2. Quality gate - paragraph count, text length and link density
3. Headless Chromium (Playwright) - only when the chain's content is not
   readable

Usage:
    from readlater.services.scraper import FetchContentInput, ScraperService

    async with ScraperService.from_config(ScraperConfig(), BrowserManager()) as scraper:
        result = await scraper.fetch_content(FetchContentInput("https://example.com"))
        print(result.title)

Note: Playwright browsers must be installed separately:
    playwright install chromium
"""

from readlater.services.scraper.base import (
    BrowserConfig,
    ContentQualityMetrics,
    FetchContentInput,
    Handler,
    PreHandleResult,
    QualityThresholds,
    ScrapedContentOutput,
    ScraperConfig,
)
from readlater.services.scraper.browser import BrowserManager
from readlater.services.scraper.chain import ChainExecutor
from readlater.services.scraper.exceptions import (
    ContentTooLargeError,
    ContentTypeError,
    DomConstructionFailure,
    ExtractionError,
    InvalidUrlInput,
    NetworkFailure,
    RateLimitError,
    ScraperError,
    UnsafeUrlDetected,
)
from readlater.services.scraper.orchestrator import ScraperService
from readlater.services.scraper.registry import HandlerRegistry, build_default_registry

__all__ = [
    # Data model
    "BrowserConfig",
    "ContentQualityMetrics",
    "FetchContentInput",
    "Handler",
    "PreHandleResult",
    "QualityThresholds",
    "ScrapedContentOutput",
    "ScraperConfig",
    # Services
    "BrowserManager",
    "ChainExecutor",
    "HandlerRegistry",
    "ScraperService",
    "build_default_registry",
    # Exceptions
    "ScraperError",
    "InvalidUrlInput",
    "UnsafeUrlDetected",
    "ExtractionError",
    "NetworkFailure",
    "RateLimitError",
    "ContentTooLargeError",
    "ContentTypeError",
    "DomConstructionFailure",
]
