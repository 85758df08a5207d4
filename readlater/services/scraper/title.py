"""Title extraction from documents and URL paths."""

from __future__ import annotations

import logging
import re
from typing import Iterable
from urllib.parse import unquote

from bs4 import BeautifulSoup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[-_]+")
_WHITESPACE = re.compile(r"\s+")


def _element_value(element: Tag) -> str:
    content = element.get("content")
    if content and str(content).strip():
        return str(content).strip()
    return element.get_text(strip=True)


def extract_title(
    document: BeautifulSoup | Tag,
    selectors: Iterable[str],
    patterns: Iterable[re.Pattern[str]] = (),
) -> str | None:
    """Return the first non-empty title found by ``selectors``.

    Selectors are tried in order. A meta element's ``content`` attribute is
    read before its text. Every pattern is then removed from the title in
    sequence.
    """
    for selector in selectors:
        try:
            element = document.select_one(selector)
        except (SelectorSyntaxError, NotImplementedError, ValueError) as e:
            logger.debug("Skipping title selector %r: %s", selector, e)
            continue
        if element is None:
            continue

        title = _element_value(element)
        if not title:
            continue

        for pattern in patterns:
            title = pattern.sub("", title)
        title = _WHITESPACE.sub(" ", title).strip()
        return title or None

    return None


def title_from_path(path: str, remove_extension: bool = False) -> str | None:
    """Build a readable title from the last segment of a URL path.

    ``/docs/annual-report_2024.pdf`` becomes ``Annual Report 2024`` when
    ``remove_extension`` is set.
    """
    segments = [s for s in path.split("/") if s]
    if not segments:
        return None

    name = unquote(segments[-1])
    if remove_extension and "." in name:
        name = name.rsplit(".", 1)[0]

    words = _SEPARATORS.sub(" ", name).split()
    if not words:
        return None
    return " ".join(word[:1].upper() + word[1:] for word in words)
