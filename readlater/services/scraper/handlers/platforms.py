"""Site profiles for blog, community and newsletter platforms."""

from __future__ import annotations

import logging
import re
from bs4.element import Tag

from readlater.services.scraper.base import (
    ContentCleaningConfig,
    DomConfig,
    HttpRequestConfig,
    TitleExtractionConfig,
)
from readlater.services.scraper.cleaning import post_process_media
from readlater.services.scraper.handlers.extract import (
    ProfileHandler,
    SiteProfile,
    selectors_have_text,
)

logger = logging.getLogger(__name__)

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)

KOREAN_ACCEPT_LANGUAGE = "ko-KR,ko;q=0.9,en;q=0.8"

# Blog platforms keep text spacing as authored
BLOG_CLEANING = ContentCleaningConfig(cleanup_text=False)


def _patterns(*sources: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(source) for source in sources)


# ---------------------------------------------------------------------------
# Blogs
# ---------------------------------------------------------------------------

MEDIUM = SiteProfile(
    name="medium",
    domains=("medium.com",),
    http=HttpRequestConfig(
        user_agent=DESKTOP_USER_AGENT,
        timeout_seconds=15,
        headers={"Accept-Language": "en-US,en;q=0.5", "Cache-Control": "no-cache"},
    ),
    dom=DomConfig(user_agent=DESKTOP_USER_AGENT, simulate_visual_viewport=True),
    cleaning=BLOG_CLEANING,
    title=TitleExtractionConfig(
        selectors=('meta[property="og:title"]', 'meta[name="title"]', "title", "h1"),
        patterns=_patterns(r"\s*\|\s*by\s+.*$", r"\s*\|\s*Medium$"),
    ),
    content_selectors=(
        "article",
        ".section-content",
        ".postArticle-content",
        ".meteredContent",
        ".main-content",
    ),
    post_process=post_process_media,
)

NAVER_BLOG = SiteProfile(
    name="naver_blog",
    domains=("blog.naver.com",),
    http=HttpRequestConfig(
        user_agent=MOBILE_USER_AGENT,
        timeout_seconds=15,
        headers={
            "Accept-Language": KOREAN_ACCEPT_LANGUAGE,
            "Referer": "https://blog.naver.com/",
        },
    ),
    dom=DomConfig(user_agent=MOBILE_USER_AGENT, simulate_visual_viewport=True),
    cleaning=BLOG_CLEANING,
    title=TitleExtractionConfig(
        selectors=(
            'meta[property="og:title"]',
            'meta[name="title"]',
            "title",
            ".se-title-text",
            ".pcol1 .title",
            ".blog-title",
        ),
        patterns=_patterns(r"\s*:\s*네이버\s*블로그$"),
    ),
    content_selectors=(
        "#postViewArea",
        ".se-main-container",
        ".post-view",
        ".se_component_wrap",
        ".se_textView",
        ".blog2_container",
        ".se_content",
        ".view",
        ".post",
    ),
    post_process=post_process_media,
)

TISTORY = SiteProfile(
    name="tistory",
    domains=("tistory.com",),
    http=HttpRequestConfig(
        user_agent=DESKTOP_USER_AGENT,
        timeout_seconds=15,
        headers={"Accept-Language": KOREAN_ACCEPT_LANGUAGE, "Cache-Control": "no-cache"},
    ),
    dom=DomConfig(user_agent=DESKTOP_USER_AGENT, simulate_visual_viewport=True),
    cleaning=BLOG_CLEANING,
    title=TitleExtractionConfig(
        selectors=(
            'meta[property="og:title"]',
            'meta[name="title"]',
            "title",
            ".titleWrap h2",
            ".titleWrap h3",
            ".entry-title",
            ".post-title",
            ".article-title",
        ),
    ),
    content_selectors=(
        ".tt_article_useless_p_margin",
        ".article-view",
        ".entry-content",
        ".post-content",
        "#article",
        "#tt-body-page",
        ".tt_article",
        "#content",
        ".content",
    ),
    post_process=post_process_media,
)

# ---------------------------------------------------------------------------
# Communities
# ---------------------------------------------------------------------------

DISQUIET_REMOVE_SELECTORS = (
    '[data-testid="login-modal"]',
    '[data-testid="auth-modal"]',
    ".login-modal",
    ".auth-modal",
    ".modal",
    ".modal-backdrop",
    ".popup",
    ".Dialog",
    ".Dialog-overlay",
    ".overlay",
    ".backdrop",
    ".promo",
    ".sponsor",
    ".button",
    ".actions",
    ".toolbar",
    ".search",
    ".related",
    ".recommend",
    ".popular",
    ".trending",
    "iframe",
)

# Elements with more text than this are kept even if a removal selector matches
DISQUIET_PRESERVE_TEXT_LENGTH = 50


def remove_login_prompts(element: Tag, base_url: str) -> Tag:
    """Remove modal, overlay and toolbar elements that carry little text."""
    for selector in DISQUIET_REMOVE_SELECTORS:
        for match in element.select(selector):
            if match.decomposed:
                continue
            if len(match.get_text(strip=True)) > DISQUIET_PRESERVE_TEXT_LENGTH:
                logger.debug("Keeping %s with substantial text", selector)
                continue
            match.decompose()
    return element


DISQUIET = SiteProfile(
    name="disquiet",
    domains=("disquiet.io",),
    http=HttpRequestConfig(
        user_agent=DESKTOP_USER_AGENT,
        timeout_seconds=30,
        headers={"Accept-Language": KOREAN_ACCEPT_LANGUAGE, "DNT": "1"},
    ),
    dom=DomConfig(
        user_agent=DESKTOP_USER_AGENT,
        allow_scripts=True,
        simulate_visual_viewport=True,
    ),
    cleaning=ContentCleaningConfig(
        remove_unwanted=True,
        cleanup_styles=False,
        cleanup_links=False,
        cleanup_images=False,
        cleanup_text=False,
        refine_title=False,
    ),
    title=TitleExtractionConfig(
        selectors=(
            "h1",
            ".post-title",
            ".article-title",
            '[data-testid="post-title"]',
            'meta[property="og:title"]',
            '[data-testid="makerlog-title"]',
            ".makerlog-title",
            ".post-header h1",
        ),
    ),
    content_selectors=(
        '[data-testid="makerlog-content"]',
        '[data-testid="post-content"]',
        ".makerlog-content",
        ".maker-log-detail",
        ".post-content",
        ".article-content",
        ".post-body",
        ".markdown-body",
    ),
    merge_fragments=True,
    content_ready=selectors_have_text(),
    post_process=remove_login_prompts,
)

# ---------------------------------------------------------------------------
# Newsletters
# ---------------------------------------------------------------------------

MAILY_TITLE_PATTERNS = _patterns(
    r"\s*-\s*메일리$",
    r"\s*\|\s*Maily$",
    r"\s*::.*$",
    r"\s*·\s*메일리$",
    r"\s*뉴스레터를 쉽게, 메일리로 시작하세요$",
)

MAILY = SiteProfile(
    name="maily",
    domains=("maily.so",),
    http=HttpRequestConfig(
        user_agent=DESKTOP_USER_AGENT,
        timeout_seconds=20,
        headers={
            "Accept-Language": KOREAN_ACCEPT_LANGUAGE,
            "Cache-Control": "no-cache",
            "Origin": "https://maily.so",
            "Referer": "https://maily.so/",
        },
    ),
    dom=DomConfig(user_agent=DESKTOP_USER_AGENT, simulate_visual_viewport=True),
    title=TitleExtractionConfig(
        selectors=(
            'meta[property="og:title"]',
            'meta[name="twitter:title"]',
            "title",
            "h1",
            ".newsletter-title",
            ".post-title",
            '[class*="title"]',
        ),
        patterns=MAILY_TITLE_PATTERNS,
        site_patterns={"maily.so": MAILY_TITLE_PATTERNS[:2] + MAILY_TITLE_PATTERNS[4:]},
    ),
    content_selectors=(
        "article",
        '[data-testid="post-content"]',
        '[class*="letter-content"]',
        '[class*="newsletter-content"]',
        ".post-content",
        '[class*="content"]',
        "main",
        "#content",
    ),
)

STIBEE = SiteProfile(
    name="stibee",
    domains=("stibee.com",),
    http=HttpRequestConfig(
        user_agent=DESKTOP_USER_AGENT,
        timeout_seconds=20,
        headers={"Accept-Language": KOREAN_ACCEPT_LANGUAGE, "Cache-Control": "no-cache"},
    ),
    dom=DomConfig(user_agent=DESKTOP_USER_AGENT, simulate_visual_viewport=True),
    title=TitleExtractionConfig(
        selectors=(
            'meta[property="og:title"]',
            'meta[name="twitter:title"]',
            "title",
            "h1",
            ".newsletter-title",
            ".post-title",
        ),
        patterns=_patterns(r"\s*-\s*스티비$", r"\s*\|\s*Stibee$", r"\s*::.*$"),
        site_patterns={"stibee.com": _patterns(r"\s*-\s*스티비$", r"\s*\|\s*Stibee$")},
    ),
    content_selectors=(
        "article",
        '[class*="content"]',
        '[class*="newsletter"]',
        "main",
        "#content",
    ),
)

PLATFORM_PROFILES = (MEDIUM, NAVER_BLOG, TISTORY, DISQUIET)
NEWSLETTER_PROFILES = (MAILY, STIBEE)


def build_platform_handlers() -> list[ProfileHandler]:
    """Return handlers for platform and newsletter profiles, in chain order."""
    return [ProfileHandler(profile) for profile in PLATFORM_PROFILES + NEWSLETTER_PROFILES]
