"""Configuration-driven extraction shared by every site handler.

A ``SiteProfile`` describes how one site is fetched, parsed, cleaned and
titled. ``extract_with_profile`` runs the same steps for every profile; sites
differ only in the data and the optional hooks they carry.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from readlater.services.scraper.base import (
    HTML_CONTENT_TYPE,
    ContentCleaningConfig,
    DomConfig,
    HttpRequestConfig,
    PreHandleResult,
    TitleExtractionConfig,
    host_matches,
)
from readlater.services.scraper.cleaning import CleaningContext, build_cleaning_pipeline
from readlater.services.scraper.dom import (
    collect_fragments,
    create_dom,
    fetch_html,
    find_content_element,
)
from readlater.services.scraper.title import extract_title

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_SELECTORS = ("article", "main", ".content", "#content", ".post", ".entry-content")

ReadinessCheck = Callable[[BeautifulSoup, "SiteProfile"], bool]
PostProcessHook = Callable[[Tag, str], Tag]


@dataclass(frozen=True)
class SiteProfile:
    """Everything needed to extract content from one site."""

    name: str
    domains: tuple[str, ...] = ()
    http: HttpRequestConfig = field(default_factory=HttpRequestConfig)
    dom: DomConfig = field(default_factory=DomConfig)
    cleaning: ContentCleaningConfig = field(default_factory=ContentCleaningConfig)
    title: TitleExtractionConfig = field(default_factory=TitleExtractionConfig)
    content_selectors: tuple[str, ...] = DEFAULT_CONTENT_SELECTORS
    min_content_length: int = 80
    merge_fragments: bool = False
    content_ready: ReadinessCheck | None = None
    post_process: PostProcessHook | None = None

    def matches(self, url: str) -> bool:
        try:
            hostname = urlsplit(url).hostname
        except ValueError:
            return False
        if not hostname:
            return False
        return any(host_matches(hostname, domain) for domain in self.domains)


def selectors_have_text(min_text_length: int = 100) -> ReadinessCheck:
    """Build a check for pages that fill in their content client-side.

    The check passes when any content selector holds more than
    ``min_text_length`` characters of text in the fetched HTML.
    """

    def ready(document: BeautifulSoup, profile: SiteProfile) -> bool:
        for selector in profile.content_selectors:
            for element in document.select(selector):
                if len(element.get_text(strip=True)) > min_text_length:
                    return True
        return False

    return ready


async def extract_with_profile(url: str, profile: SiteProfile) -> PreHandleResult:
    """Fetch ``url`` and extract title and cleaned content as ``profile`` says.

    Raises:
        ExtractionError: If fetching or parsing fails.
        InvalidUrlInput: If a redirect leaves the allowed network.
    """
    page = await fetch_html(url, profile.http)
    document = create_dom(page.html, profile.dom)

    hostname = urlsplit(page.final_url).hostname
    patterns = profile.title.patterns_for(hostname) if profile.cleaning.refine_title else ()
    title = extract_title(document, profile.title.selectors, patterns)

    # Content rendered by scripts is left to the browser
    if profile.content_ready is not None and not profile.content_ready(document, profile):
        logger.info("%s: content not in static HTML for %s", profile.name, url)
        return PreHandleResult(url=url, title=title, content_type=HTML_CONTENT_TYPE)

    if profile.merge_fragments:
        container = collect_fragments(document, profile.content_selectors)
    else:
        container = find_content_element(
            document, profile.content_selectors, profile.min_content_length
        )

    if container is None:
        logger.info("%s: no content container found for %s", profile.name, url)
        return PreHandleResult(url=url, title=title, content_type=HTML_CONTENT_TYPE)

    context = CleaningContext(base_url=page.final_url)
    container = build_cleaning_pipeline(profile.cleaning)(container, context)
    if profile.post_process is not None:
        container = profile.post_process(container, page.final_url)

    content = container.decode_contents().strip() or None
    logger.debug(
        "%s: extracted %d chars from %s", profile.name, len(content or ""), url
    )
    return PreHandleResult(
        url=url,
        title=title,
        content=content,
        content_type=HTML_CONTENT_TYPE,
    )


class ProfileHandler:
    """Adapts a ``SiteProfile`` to the handler contract."""

    is_fallback = False

    def __init__(self, profile: SiteProfile) -> None:
        self.profile = profile
        self.name = profile.name

    def can_handle(self, url: str) -> bool:
        return self.profile.matches(url)

    async def handle(self, url: str) -> PreHandleResult | None:
        return await extract_with_profile(url, self.profile)
