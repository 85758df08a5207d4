"""Readability-style article extraction with trafilatura and newspaper4k fallbacks."""

from __future__ import annotations

import html as html_lib
import logging
import re
import time
from dataclasses import dataclass

import trafilatura
from newspaper import Article
from readability import Document

from readlater.services.scraper.quality import strip_tags

logger = logging.getLogger(__name__)

_TITLE_TAG = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
_BLANK_LINES = re.compile(r"\n\s*\n")


@dataclass
class ExtractedArticle:
    """Main article content pulled out of a full page."""

    content: str  # HTML
    title: str | None
    extraction_method: str = ""
    extraction_time_ms: float = 0.0


def text_to_html(text: str) -> str:
    """Wrap plain-text paragraphs into escaped ``<p>`` elements."""
    blocks = _BLANK_LINES.split(text.strip())
    if len(blocks) == 1:
        blocks = text.strip().splitlines()
    paragraphs = [b.strip() for b in blocks if b.strip()]
    return "\n".join(f"<p>{html_lib.escape(p)}</p>" for p in paragraphs)


class ArticleExtractor:
    """Extract the main article from a rendered page.

    Tries readability-lxml first, then trafilatura, then newspaper4k. A tier
    whose output is shorter than ``min_text_length`` characters of text is
    treated as a miss.
    """

    def __init__(self, min_text_length: int = 100) -> None:
        self.min_text_length = min_text_length

    def extract(self, html: str, url: str) -> ExtractedArticle | None:
        """Return the article in ``html`` or None if no tier finds one."""
        start_time = time.perf_counter()

        content = self._try_readability(html, url)
        method = "readability"

        if not self._long_enough(content):
            content = self._try_trafilatura(html, url)
            method = "trafilatura"

        if not self._long_enough(content):
            content = self._try_newspaper4k(html, url)
            method = "newspaper4k"

        if not self._long_enough(content):
            logger.info("No article content found for %s", url)
            return None

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.debug("Extracted article from %s with %s in %.1fms", url, method, elapsed_ms)
        return ExtractedArticle(
            content=content,
            title=self._extract_title(html),
            extraction_method=method,
            extraction_time_ms=elapsed_ms,
        )

    def _long_enough(self, content: str | None) -> bool:
        return bool(content) and len(strip_tags(content).strip()) >= self.min_text_length

    def _try_readability(self, html: str, url: str) -> str | None:
        try:
            return Document(html, url=url).summary(html_partial=True)
        except Exception as e:
            logger.warning("readability extraction failed: %s", e)
            return None

    def _try_trafilatura(self, html: str, url: str) -> str | None:
        try:
            text = trafilatura.extract(
                html,
                url=url,
                include_comments=False,
                include_tables=True,
                favor_precision=True,
            )
        except Exception as e:
            logger.warning("trafilatura extraction failed: %s", e)
            return None
        return text_to_html(text) if text else None

    def _try_newspaper4k(self, html: str, url: str) -> str | None:
        try:
            article = Article(url)
            article.set_html(html)
            article.parse()
        except Exception as e:
            logger.warning("newspaper4k extraction failed: %s", e)
            return None
        return text_to_html(article.text) if article.text else None

    def _extract_title(self, html: str) -> str | None:
        try:
            title = Document(html).short_title()
            if title and title.strip() and title.strip() != "[no-title]":
                return title.strip()
        except Exception as e:
            logger.debug("readability title lookup failed: %s", e)

        match = _TITLE_TAG.search(html)
        if match:
            return html_lib.unescape(match.group(1)).strip()
        return None
