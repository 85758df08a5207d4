"""Data model, configuration records, and the handler contract for scraping."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Protocol, runtime_checkable

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

PDF_CONTENT_TYPE = "application/pdf"
HTML_CONTENT_TYPE = "text/html"


def _frozen_mapping(values: Mapping | None = None) -> Mapping:
    return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class HttpRequestConfig:
    """How a handler fetches a page over plain HTTP."""

    user_agent: str = DEFAULT_USER_AGENT
    timeout_seconds: float = 10.0
    headers: Mapping[str, str] = field(default_factory=_frozen_mapping)
    follow_redirects: bool = True
    max_redirects: int = 5
    max_content_size_mb: int = 20

    def request_headers(self) -> dict[str, str]:
        """Return the full header set sent with the request."""
        merged = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        }
        merged.update(self.headers)
        return merged


@dataclass(frozen=True)
class DomConfig:
    """How fetched HTML is turned into a document tree.

    Scripts are never executed on the static path. ``allow_scripts`` only
    decides whether ``<script>`` elements (inline JSON state included) survive
    parsing. ``simulate_visual_viewport`` drops elements a visual renderer
    would not display.
    """

    user_agent: str = DEFAULT_USER_AGENT
    allow_scripts: bool = False
    simulate_visual_viewport: bool = False


@dataclass(frozen=True)
class ContentCleaningConfig:
    """Toggles for the cleaning pipeline stages."""

    remove_unwanted: bool = True
    cleanup_styles: bool = True
    cleanup_links: bool = True
    cleanup_images: bool = True
    cleanup_text: bool = True
    refine_title: bool = True


@dataclass(frozen=True)
class TitleExtractionConfig:
    """Ordered title selectors plus strip patterns.

    ``site_patterns`` maps a domain suffix to extra patterns that only apply
    to hosts under that domain.
    """

    selectors: tuple[str, ...] = ('meta[property="og:title"]', "title", "h1")
    patterns: tuple[re.Pattern[str], ...] = ()
    site_patterns: Mapping[str, tuple[re.Pattern[str], ...]] = field(
        default_factory=_frozen_mapping
    )

    def patterns_for(self, hostname: str | None) -> tuple[re.Pattern[str], ...]:
        """Return general patterns followed by any site-specific ones."""
        combined = list(self.patterns)
        if hostname:
            for domain, extra in self.site_patterns.items():
                if host_matches(hostname, domain):
                    combined.extend(extra)
        return tuple(combined)


@dataclass(frozen=True)
class QualityThresholds:
    """Thresholds a piece of content must meet to be considered readable."""

    char_threshold: int = 500
    min_content_length: int = 140
    min_score: int = 20
    min_paragraphs: int = 3
    max_link_density: float = 0.2


@dataclass(frozen=True)
class ContentQualityMetrics:
    """Derived quality measurements for a piece of content."""

    character_count: int
    paragraph_count: int
    link_density: float
    readability_score: int
    is_probably_readable: bool


@dataclass(frozen=True)
class BrowserConfig:
    """Configuration for the headless browser fallback."""

    headless: bool = True
    executable_path: str | None = None
    launch_timeout_seconds: float = 30.0
    navigation_timeout_seconds: float = 30.0
    settle_timeout_ms: int = 5000
    settle_debounce_ms: int = 1000
    scroll_timeout_seconds: float = 5.0
    viewport_width: int = 1920
    viewport_height: int = 1080
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class ScraperConfig:
    """Top-level configuration for the scraping service."""

    http_timeout_seconds: float = 10.0
    max_content_size_mb: int = 20
    restart_on_rewrite: bool = False
    max_restarts: int = 3
    quality: QualityThresholds = field(default_factory=QualityThresholds)
    browser: BrowserConfig = field(default_factory=BrowserConfig)


@dataclass
class PreHandleResult:
    """Accumulated output of the handler chain for one request."""

    url: str
    title: str | None = None
    content: str | None = None
    content_type: str | None = None

    def merge(self, other: PreHandleResult) -> bool:
        """Fold ``other`` into this result.

        A non-empty field of ``other`` overwrites, an empty one never erases.

        Returns:
            True if the URL changed.
        """
        url_changed = bool(other.url) and other.url != self.url
        if url_changed:
            self.url = other.url
        if other.title:
            self.title = other.title
        if other.content:
            self.content = other.content
        if other.content_type:
            self.content_type = other.content_type
        return url_changed


@dataclass(frozen=True)
class FetchContentInput:
    """A scrape request."""

    url: str
    locale: str | None = None
    timezone: str | None = None


@dataclass(frozen=True)
class ScrapedContentOutput:
    """The final scrape result."""

    final_url: str
    title: str | None = None
    content: str | None = None
    content_type: str | None = None


@runtime_checkable
class Handler(Protocol):
    """Protocol for a strategy in the handler chain.

    Handlers are stateless and may be shared across concurrent requests.
    """

    name: str
    is_fallback: bool

    def can_handle(self, url: str) -> bool:
        """Return True if this handler applies to ``url``."""
        ...

    async def handle(self, url: str) -> PreHandleResult | None:
        """Produce a partial result for ``url``.

        Raises:
            ExtractionError: On recoverable failure. The chain logs it and
                moves to the next handler.
        """
        ...


def host_matches(hostname: str, domain: str) -> bool:
    """Return True if ``hostname`` is ``domain`` or one of its subdomains."""
    hostname = hostname.lower()
    domain = domain.lower()
    return hostname == domain or hostname.endswith("." + domain)
