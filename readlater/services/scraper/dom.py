"""Static page fetching, document construction, and content location."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

import httpx
from bs4 import BeautifulSoup
from bs4.element import Tag
from soupsieve import SelectorSyntaxError

from readlater.services.scraper.base import DomConfig, HttpRequestConfig
from readlater.services.scraper.exceptions import (
    ContentTooLargeError,
    ContentTypeError,
    DomConstructionFailure,
    NetworkFailure,
    RateLimitError,
)
from readlater.services.scraper.url_guard import validate_url

logger = logging.getLogger(__name__)

# Content types the static path is willing to parse
HTML_CONTENT_TYPES = ("text/html", "application/xhtml", "text/plain")

_HIDDEN_SELECTORS = ("[hidden]", '[aria-hidden="true"]')


@dataclass(frozen=True)
class FetchedPage:
    """Body and metadata of a successful static fetch."""

    html: str
    final_url: str
    content_type: str
    status_code: int


async def _guard_request(request: httpx.Request) -> None:
    # Runs for the initial request and every redirect hop
    validate_url(str(request.url))


def _is_html(content_type: str) -> bool:
    ct_lower = content_type.lower()
    return not ct_lower or any(t in ct_lower for t in HTML_CONTENT_TYPES)


async def fetch_html(url: str, config: HttpRequestConfig) -> FetchedPage:
    """Fetch ``url`` and return its HTML.

    Every request, including redirect hops, passes through the URL guard.

    Raises:
        InvalidUrlInput: If a request or the final URL fails the guard.
        NetworkFailure: On timeout, connection error, or HTTP error status.
        RateLimitError: If HTTP 429 is received.
        ContentTooLargeError: If the body exceeds the size limit.
        ContentTypeError: If the body is not HTML.
    """
    try:
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(config.timeout_seconds),
            follow_redirects=config.follow_redirects,
            max_redirects=config.max_redirects,
            headers=config.request_headers(),
            event_hooks={"request": [_guard_request]},
        ) as client:
            response = await client.get(url)

            if response.status_code == 429:
                raise RateLimitError(f"Rate limited by {url}")

            response.raise_for_status()

            content_length = len(response.content)
            max_bytes = config.max_content_size_mb * 1024 * 1024
            if content_length > max_bytes:
                raise ContentTooLargeError(
                    f"Content size {content_length} exceeds maximum {max_bytes}"
                )

            content_type = response.headers.get("content-type", "")
            if not _is_html(content_type):
                raise ContentTypeError(f"Unsupported content type: {content_type}")

            final_url = str(response.url)
            validate_url(final_url)

            logger.debug(
                "Fetched %d bytes from %s (final=%s)", content_length, url, final_url
            )
            return FetchedPage(
                html=response.text,
                final_url=final_url,
                content_type=content_type,
                status_code=response.status_code,
            )

    except httpx.TimeoutException as e:
        raise NetworkFailure(f"Timeout fetching {url}: {e}") from e
    except httpx.TooManyRedirects as e:
        raise NetworkFailure(
            f"Too many redirects fetching {url} (max {config.max_redirects})"
        ) from e
    except httpx.HTTPStatusError as e:
        raise NetworkFailure(
            f"HTTP {e.response.status_code} from {url}: {e.response.reason_phrase}"
        ) from e
    except httpx.RequestError as e:
        raise NetworkFailure(f"Network error fetching {url}: {e}") from e


def create_dom(html: str, config: DomConfig | None = None) -> BeautifulSoup:
    """Parse ``html`` into a document tree according to ``config``.

    Raises:
        DomConstructionFailure: If the parser rejects the input.
    """
    config = config or DomConfig()
    try:
        soup = BeautifulSoup(html, "lxml")
    except Exception as e:
        raise DomConstructionFailure(f"Could not parse HTML: {e}") from e

    if not config.allow_scripts:
        for script in soup.find_all("script"):
            script.decompose()

    if config.simulate_visual_viewport:
        for selector in _HIDDEN_SELECTORS:
            for hidden in soup.select(selector):
                if not hidden.decomposed:
                    hidden.decompose()

    return soup


def _select_all(document: BeautifulSoup | Tag, selector: str) -> list[Tag]:
    try:
        return document.select(selector)
    except (SelectorSyntaxError, NotImplementedError, ValueError) as e:
        logger.debug("Skipping content selector %r: %s", selector, e)
        return []


def find_content_element(
    document: BeautifulSoup,
    selectors: Iterable[str],
    min_text_length: int = 80,
) -> Tag | None:
    """Return the best content container.

    Takes the first match of each selector and keeps the one with the longest
    text, provided it reaches ``min_text_length``. Otherwise the document body.
    """
    best: Tag | None = None
    best_length = -1
    for selector in selectors:
        matches = _select_all(document, selector)
        if not matches:
            continue
        length = len(matches[0].get_text(strip=True))
        if length > best_length:
            best, best_length = matches[0], length

    if best is not None and best_length >= min_text_length:
        return best
    return document.body


def _has_ancestor_in(element: Tag, candidates: list[Tag]) -> bool:
    # Identity check; Tag equality is structural
    return any(parent is other for parent in element.parents for other in candidates)


def collect_fragments(document: BeautifulSoup, selectors: Iterable[str]) -> Tag | None:
    """Merge every element matching any selector into one container.

    Elements nested inside an already collected element are skipped.
    Returns None when nothing matches.
    """
    collected: list[Tag] = []
    for selector in selectors:
        for element in _select_all(document, selector):
            if any(element is seen for seen in collected):
                continue
            if _has_ancestor_in(element, collected):
                continue
            collected.append(element)

    # A later, outer match makes earlier inner matches redundant
    collected = [
        element
        for element in collected
        if not _has_ancestor_in(element, collected)
    ]
    if not collected:
        return None

    container = document.new_tag("div")
    container["class"] = "merged-content"
    for element in collected:
        container.append(element.extract())
    return container
