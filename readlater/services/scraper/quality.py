"""Content quality scoring used to decide whether to escalate to a browser."""

from __future__ import annotations

import re

from readlater.services.scraper.base import ContentQualityMetrics, QualityThresholds

_PARAGRAPH_OPEN = re.compile(r"<p[\s>]", re.IGNORECASE)
_LINK_OPEN = re.compile(r"<a[\s>]", re.IGNORECASE)
_TAG = re.compile(r"<[^>]*>")

# Characters per readability point
_CHARS_PER_POINT = 20


def strip_tags(markup: str) -> str:
    """Return ``markup`` with every tag removed."""
    return _TAG.sub("", markup)


def evaluate(
    content: str,
    html: str,
    thresholds: QualityThresholds | None = None,
) -> ContentQualityMetrics:
    """Score extracted content.

    Args:
        content: Extracted content HTML (paragraphs are counted here).
        html: HTML the links are counted in. Usually the same as ``content``.
        thresholds: Readability thresholds. Defaults apply when omitted.

    Returns:
        ContentQualityMetrics. Pure and deterministic.
    """
    thresholds = thresholds or QualityThresholds()
    content = content or ""
    html = html or ""

    character_count = len(content)
    paragraph_count = len(_PARAGRAPH_OPEN.findall(content))
    link_count = len(_LINK_OPEN.findall(html))
    link_density = link_count / max(1, paragraph_count) if link_count else 0.0

    text_length = len(strip_tags(content))
    readability_score = round(text_length / _CHARS_PER_POINT)

    is_probably_readable = (
        character_count >= thresholds.char_threshold
        and text_length >= thresholds.min_content_length
        and readability_score >= thresholds.min_score
        and paragraph_count >= thresholds.min_paragraphs
        and link_density <= thresholds.max_link_density
    )

    return ContentQualityMetrics(
        character_count=character_count,
        paragraph_count=paragraph_count,
        link_density=link_density,
        readability_score=readability_score,
        is_probably_readable=is_probably_readable,
    )


def should_use_browser(metrics: ContentQualityMetrics) -> bool:
    """Return True when content is not good enough and a browser should render."""
    return not metrics.is_probably_readable


class ContentQualityEvaluator:
    """Binds quality thresholds so they can be injected from settings."""

    def __init__(self, thresholds: QualityThresholds | None = None) -> None:
        self.thresholds = thresholds or QualityThresholds()

    def evaluate(self, content: str, html: str | None = None) -> ContentQualityMetrics:
        """Score ``content``; links are counted in ``html`` or in ``content``."""
        return evaluate(content, content if html is None else html, self.thresholds)

    def should_use_browser(self, metrics: ContentQualityMetrics) -> bool:
        return should_use_browser(metrics)

    def is_readable(self, content: str | None) -> bool:
        """Shortcut for ``evaluate(content).is_probably_readable``."""
        if not content:
            return False
        return self.evaluate(content).is_probably_readable
