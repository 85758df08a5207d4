"""DOM cleaning pipeline.

Each stage takes an element and a ``CleaningContext`` and returns the element.
Stages mutate the BeautifulSoup tree in place. ``build_cleaning_pipeline``
composes the stages enabled in a ``ContentCleaningConfig`` in a fixed order:
remove unwanted elements, styles, links, images, text.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from functools import reduce
from typing import Callable
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, NavigableString
from bs4.element import Comment, Tag
from soupsieve import SelectorSyntaxError

from readlater.services.scraper.base import ContentCleaningConfig

logger = logging.getLogger(__name__)

UNWANTED_SELECTORS: tuple[str, ...] = (
    # Navigation
    "nav",
    ".nav",
    ".navigation",
    ".menu",
    ".navbar",
    # Page chrome
    "header",
    ".header",
    ".site-header",
    "footer",
    ".footer",
    ".site-footer",
    "aside",
    ".sidebar",
    ".side-bar",
    ".widget",
    # Ads
    ".ad",
    ".advertisement",
    ".ads",
    '[class*="ad-"]',
    '[id*="ad-"]',
    '[class*="banner"]',
    '[id*="banner"]',
    # Social
    ".social",
    ".share",
    ".social-share",
    '[class*="social"]',
    '[id*="social"]',
    # Comments
    ".comment",
    ".comments",
    "#comments",
    '[class*="comment"]',
    '[id*="comment"]',
    # Page furniture
    ".breadcrumb",
    ".breadcrumbs",
    ".pagination",
    ".pager",
    ".author-bio",
    ".author-info",
    ".newsletter-signup",
    ".subscribe",
    ".cookie-notice",
    ".privacy-notice",
    ".back-to-top",
    ".scroll-top",
    ".login",
    ".auth",
    ".signup",
    # Non-content
    "script",
    "style",
    "noscript",
    # Hidden
    '[style*="display: none"]',
    '[style*="display:none"]',
    ".hidden",
    ".invisible",
    '[aria-hidden="true"]',
    # Tracking
    'iframe[src*="tracking"]',
    'iframe[src*="analytics"]',
    'iframe[src*="google-analytics"]',
    'iframe[src*="facebook"]',
    '[class*="tracking"]',
    '[id*="tracking"]',
    '[class*="analytics"]',
    '[id*="analytics"]',
)

ALLOWED_STYLE_PATTERN = re.compile(
    r"(font-size|color|background-color|text-align|line-height|margin|padding|border):[^;]+;?",
    re.IGNORECASE,
)

IMAGE_MAX_WIDTH_STYLE = "max-width:100%;height:auto"
KEPT_LINK_SCHEMES = ("mailto", "tel")

_WHITESPACE = re.compile(r"\s+")
_EMPTY_CANDIDATES = ("p", "div", "span")
_IMAGE_ATTRS_TO_STRIP = ("data-src", "loading", "srcset")


@dataclass(frozen=True)
class CleaningContext:
    """Per-request inputs shared by all cleaning stages."""

    base_url: str
    min_image_size: int = 50


CleaningStage = Callable[[Tag, CleaningContext], Tag]


def _decompose(element: Tag) -> None:
    # An element may already be gone because an ancestor matched first
    if element.decomposed:
        return
    element.decompose()


def remove_unwanted_elements(element: Tag, context: CleaningContext) -> Tag:
    """Remove page chrome, ads, trackers and hidden elements."""
    for selector in UNWANTED_SELECTORS:
        try:
            matches = element.select(selector)
        except (SelectorSyntaxError, NotImplementedError, ValueError) as e:
            logger.debug("Skipping cleaning selector %r: %s", selector, e)
            continue
        for match in matches:
            if match is element:
                continue
            _decompose(match)
    return element


def cleanup_styles(element: Tag, context: CleaningContext) -> Tag:
    """Keep only typographic and spacing style declarations."""
    for styled in element.find_all(style=True):
        kept = " ".join(m.group(0) for m in ALLOWED_STYLE_PATTERN.finditer(styled["style"]))
        if kept:
            styled["style"] = kept
        else:
            del styled["style"]
    return element


def cleanup_links(element: Tag, context: CleaningContext) -> Tag:
    """Absolutize web links and open them in a new tab without an opener.

    ``mailto:`` and ``tel:`` links are kept as written. Any other scheme, such
    as ``javascript:``, loses its href, as do hrefs that do not parse.
    """
    for link in element.find_all("a", href=True):
        href = link["href"].strip()
        try:
            absolute = urljoin(context.base_url, href)
            scheme = urlsplit(absolute).scheme.lower()
        except ValueError:
            del link["href"]
            continue
        if scheme in KEPT_LINK_SCHEMES:
            link["href"] = href
            continue
        if scheme not in ("http", "https"):
            del link["href"]
            continue
        link["href"] = absolute
        link["target"] = "_blank"
        link["rel"] = "noopener noreferrer"
    return element


def _declared_size(image: Tag, attribute: str) -> int | None:
    value = image.get(attribute)
    if value is None:
        return None
    match = re.match(r"\s*(\d+)", str(value))
    return int(match.group(1)) if match else None


def _resolve_image_src(src: str, base_url: str) -> str:
    if src.startswith("//"):
        return f"https:{src}"
    if src.startswith("/"):
        return urljoin(base_url, src)
    return src


def cleanup_images(element: Tag, context: CleaningContext) -> Tag:
    """Drop tracking-size images and normalize image sources."""
    for image in element.find_all("img"):
        width = _declared_size(image, "width")
        height = _declared_size(image, "height")
        if (width is not None and width < context.min_image_size) or (
            height is not None and height < context.min_image_size
        ):
            image.decompose()
            continue

        src = image.get("src") or image.get("data-src")
        if src:
            image["src"] = _resolve_image_src(src.strip(), context.base_url)
        image["style"] = IMAGE_MAX_WIDTH_STYLE
        for attribute in _IMAGE_ATTRS_TO_STRIP:
            if attribute in image.attrs:
                del image[attribute]
    return element


def cleanup_text(element: Tag, context: CleaningContext) -> Tag:
    """Remove empty containers, collapse whitespace, give images an alt text."""
    for candidate in element.find_all(_EMPTY_CANDIDATES):
        if candidate.decomposed or candidate is element:
            continue
        if candidate.get_text(strip=True) or candidate.find("img") is not None:
            continue
        candidate.decompose()

    for text in element.find_all(string=True):
        if isinstance(text, Comment):
            continue
        collapsed = _WHITESPACE.sub(" ", str(text))
        if collapsed != text:
            text.replace_with(NavigableString(collapsed))

    for image in element.find_all("img"):
        if not image.has_attr("alt"):
            image["alt"] = ""
    return element


def _compose(stages: list[CleaningStage]) -> CleaningStage:
    def pipeline(element: Tag, context: CleaningContext) -> Tag:
        return reduce(lambda current, stage: stage(current, context), stages, element)

    return pipeline


def build_cleaning_pipeline(config: ContentCleaningConfig) -> CleaningStage:
    """Compose the enabled cleaning stages in their fixed order."""
    stages: list[CleaningStage] = []
    if config.remove_unwanted:
        stages.append(remove_unwanted_elements)
    if config.cleanup_styles:
        stages.append(cleanup_styles)
    if config.cleanup_links:
        stages.append(cleanup_links)
    if config.cleanup_images:
        stages.append(cleanup_images)
    if config.cleanup_text:
        stages.append(cleanup_text)
    return _compose(stages)


def clean_html(html: str, base_url: str, config: ContentCleaningConfig) -> str:
    """Parse ``html``, run the configured pipeline, and serialize the result."""
    soup = BeautifulSoup(html, "lxml")
    root = soup.body or soup
    build_cleaning_pipeline(config)(root, CleaningContext(base_url=base_url))
    return root.decode_contents()


# ---------------------------------------------------------------------------
# Media post-processing
# ---------------------------------------------------------------------------


def _largest_srcset_entry(srcset: str) -> str | None:
    best_url = None
    best_width = -1
    for candidate in srcset.split(","):
        pieces = candidate.strip().split()
        if not pieces:
            continue
        width = 0
        if len(pieces) > 1 and pieces[1].endswith("w"):
            try:
                width = int(pieces[1][:-1])
            except ValueError:
                width = 0
        if width > best_width:
            best_url, best_width = pieces[0], width
    return best_url


def post_process_media(element: Tag, base_url: str) -> Tag:
    """Rewrite lazy-loading image markup into plain ``<img>`` elements.

    ``<picture>`` becomes the widest ``<img>`` of its sources; ``data-original``
    and ``data-src`` win over ``src``; ``data-ke-src`` placeholders (Kakao
    editors) become images.
    """
    soup = BeautifulSoup("", "lxml")

    for picture in element.find_all("picture"):
        srcset = None
        for source in picture.find_all("source"):
            if source.get("srcset"):
                srcset = source["srcset"]
                break
        fallback_img = picture.find("img")
        src = _largest_srcset_entry(srcset) if srcset else None
        if src is None and fallback_img is not None:
            src = fallback_img.get("src")
        if not src:
            picture.decompose()
            continue
        replacement = soup.new_tag("img", src=_resolve_image_src(src, base_url))
        if fallback_img is not None and fallback_img.get("alt"):
            replacement["alt"] = fallback_img["alt"]
        picture.replace_with(replacement)

    for image in element.find_all("img"):
        src = image.get("data-original") or image.get("data-src") or image.get("src")
        if src:
            image["src"] = _resolve_image_src(src.strip(), base_url)

    for placeholder in element.find_all(attrs={"data-ke-src": True}):
        if placeholder.name == "img":
            placeholder["src"] = _resolve_image_src(placeholder["data-ke-src"], base_url)
            continue
        replacement = soup.new_tag(
            "img", src=_resolve_image_src(placeholder["data-ke-src"], base_url)
        )
        placeholder.replace_with(replacement)

    return element
