"""Universal fallback handler: fetch the page and run article extraction."""

from __future__ import annotations

import logging

from readlater.services.scraper.article import ArticleExtractor
from readlater.services.scraper.base import (
    HTML_CONTENT_TYPE,
    ContentCleaningConfig,
    HttpRequestConfig,
    PreHandleResult,
)
from readlater.services.scraper.cleaning import clean_html
from readlater.services.scraper.dom import fetch_html
from readlater.services.scraper.url_guard import is_http_url

logger = logging.getLogger(__name__)

CRAWLER_USER_AGENT = (
    "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"
)

# Article extraction already dropped page chrome; only normalize links and media
ARTICLE_CLEANING = ContentCleaningConfig(
    remove_unwanted=False,
    cleanup_styles=True,
    cleanup_links=True,
    cleanup_images=True,
    cleanup_text=False,
    refine_title=False,
)


class ReadabilityHandler:
    """Handles any http(s) URL; always last in the chain."""

    name = "readability"
    is_fallback = True

    def __init__(
        self,
        http_config: HttpRequestConfig | None = None,
        extractor: ArticleExtractor | None = None,
    ) -> None:
        self.http_config = http_config or HttpRequestConfig(user_agent=CRAWLER_USER_AGENT)
        self.extractor = extractor or ArticleExtractor()

    def can_handle(self, url: str) -> bool:
        return is_http_url(url)

    async def handle(self, url: str) -> PreHandleResult | None:
        page = await fetch_html(url, self.http_config)
        article = self.extractor.extract(page.html, page.final_url)
        if article is None:
            return None

        content = clean_html(article.content, page.final_url, ARTICLE_CLEANING)
        return PreHandleResult(
            url=url,
            title=article.title,
            content=content or None,
            content_type=HTML_CONTENT_TYPE,
        )
