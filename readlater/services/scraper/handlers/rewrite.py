"""Declarative URL rewrite rules and the handlers that apply them.

Rewrite handlers never fetch anything. They swap a URL for a variant that is
easier to extract (print views, mobile or lite hosts, raw files) and leave
``content`` empty so the chain carries on with the new URL.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable, Mapping, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from readlater.services.scraper.base import PreHandleResult, host_matches

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Rule variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Identity:
    """Leave the URL unchanged; claims the domain without touching it."""

    def apply(self, url: str) -> str:
        return url


@dataclass(frozen=True)
class SetQueryParam:
    name: str
    value: str

    def apply(self, url: str) -> str:
        parts = urlsplit(url)
        pairs = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != self.name]
        pairs.append((self.name, self.value))
        return urlunsplit(parts._replace(query=urlencode(pairs)))


@dataclass(frozen=True)
class RemoveQueryParams:
    names: tuple[str, ...]

    def apply(self, url: str) -> str:
        parts = urlsplit(url)
        pairs = parse_qsl(parts.query, keep_blank_values=True)
        kept = [(k, v) for k, v in pairs if k not in self.names]
        if len(kept) == len(pairs):
            return url
        return urlunsplit(parts._replace(query=urlencode(kept)))


@dataclass(frozen=True)
class SwapHost:
    """Replace the whole host (port is dropped)."""

    host: str

    def apply(self, url: str) -> str:
        return urlunsplit(urlsplit(url)._replace(netloc=self.host))


@dataclass(frozen=True)
class ReplaceHost:
    """Replace ``old`` with ``new`` inside the host, if present."""

    old: str
    new: str

    def apply(self, url: str) -> str:
        parts = urlsplit(url)
        if self.old not in parts.netloc:
            return url
        return urlunsplit(parts._replace(netloc=parts.netloc.replace(self.old, self.new, 1)))


@dataclass(frozen=True)
class PrefixUrl:
    """Route the URL through a reader proxy: ``prefix + url``."""

    prefix: str

    def apply(self, url: str) -> str:
        if url.startswith(self.prefix):
            return url
        return f"{self.prefix}{url}"


@dataclass(frozen=True)
class PathRewrite:
    """Replace ``old`` with ``new`` in the path, optionally only for a suffix."""

    old: str
    new: str
    only_if_suffix: str | None = None

    def apply(self, url: str) -> str:
        parts = urlsplit(url)
        if self.old not in parts.path:
            return url
        if self.only_if_suffix and not parts.path.lower().endswith(self.only_if_suffix):
            return url
        return urlunsplit(parts._replace(path=parts.path.replace(self.old, self.new, 1)))


@dataclass(frozen=True)
class WhenPath:
    """Apply ``rule`` only if the path contains one of ``markers``."""

    markers: tuple[str, ...]
    rule: RewriteRule

    def apply(self, url: str) -> str:
        path = urlsplit(url).path
        if any(marker in path for marker in self.markers):
            return self.rule.apply(url)
        return url


@dataclass(frozen=True)
class Sequence:
    """Apply several rules in order."""

    rules: tuple[RewriteRule, ...]

    def apply(self, url: str) -> str:
        for rule in self.rules:
            url = rule.apply(url)
        return url


RewriteRule = Union[
    Identity,
    SetQueryParam,
    RemoveQueryParams,
    SwapHost,
    ReplaceHost,
    PrefixUrl,
    PathRewrite,
    WhenPath,
    Sequence,
]

IDENTITY = Identity()
PRINT_VIEW = SetQueryParam("print", "1")


# ---------------------------------------------------------------------------
# Tables (domain suffix -> rule)
# ---------------------------------------------------------------------------

SOCIAL_MEDIA_RULES: Mapping[str, RewriteRule] = {
    "instagram.com": WhenPath(("/p/", "/reel/", "/tv/"), SwapHost("bibliogram.art")),
    "tiktok.com": SwapHost("m.tiktok.com"),
    "facebook.com": SwapHost("m.facebook.com"),
    "fb.com": SwapHost("m.facebook.com"),
    "twitter.com": SwapHost("nitter.net"),
    "x.com": SwapHost("nitter.net"),
    "linkedin.com": Sequence(
        (RemoveQueryParams(("trk", "trkInfo")), SetQueryParam("lipi", "urn:li:page:d_flagship3_detail_base"))
    ),
    "pinterest.com": SwapHost("m.pinterest.com"),
    "telegram.org": WhenPath(("/s/",), SwapHost("t.me")),
    "vk.com": SwapHost("m.vk.com"),
    "weibo.com": SwapHost("m.weibo.com"),
    "snapchat.com": IDENTITY,
    "discord.com": IDENTITY,
    "t.me": IDENTITY,
    "mastodon.social": IDENTITY,
    "threads.net": IDENTITY,
    "bsky.app": IDENTITY,
}

SOCIAL_PLATFORM_NAMES: Mapping[str, str] = {
    "instagram.com": "Instagram",
    "tiktok.com": "TikTok",
    "facebook.com": "Facebook",
    "fb.com": "Facebook",
    "twitter.com": "Twitter",
    "x.com": "X",
    "linkedin.com": "LinkedIn",
    "pinterest.com": "Pinterest",
    "telegram.org": "Telegram",
    "t.me": "Telegram",
    "vk.com": "VK",
    "weibo.com": "Weibo",
    "snapchat.com": "Snapchat",
    "discord.com": "Discord",
    "mastodon.social": "Mastodon",
    "threads.net": "Threads",
    "bsky.app": "Bluesky",
}

NEWS_SITE_RULES: Mapping[str, RewriteRule] = {
    **{
        domain: PRINT_VIEW
        for domain in (
            "nytimes.com",
            "wsj.com",
            "washingtonpost.com",
            "ft.com",
            "bloomberg.com",
            "economist.com",
            "politico.com",
            "usatoday.com",
            "latimes.com",
            "chicagotribune.com",
            "theatlantic.com",
            "newyorker.com",
            "wired.com",
        )
    },
    "cnn.com": SwapHost("lite.cnn.com"),
    "bbc.com": ReplaceHost("www.bbc.com", "m.bbc.com"),
    "bbc.co.uk": ReplaceHost("www.bbc.co.uk", "m.bbc.co.uk"),
    "espn.com": ReplaceHost("www.espn.com", "m.espn.com"),
    "cbssports.com": ReplaceHost("www.cbssports.com", "m.cbssports.com"),
    "nfl.com": ReplaceHost("www.nfl.com", "m.nfl.com"),
    "nba.com": ReplaceHost("www.nba.com", "m.nba.com"),
    "forbes.com": RemoveQueryParams(("sh",)),
    "reuters.com": IDENTITY,
    "apnews.com": IDENTITY,
    "theguardian.com": IDENTITY,
    "npr.org": IDENTITY,
}

DOMAIN_RULES: Mapping[str, RewriteRule] = {
    "substack.com": SetQueryParam("format", "amp"),
    "medium.com": PrefixUrl("https://r.jina.ai/"),
    "github.com": PathRewrite("/blob/", "/raw/", only_if_suffix=".md"),
    "gitlab.com": PathRewrite("/blob/", "/raw/", only_if_suffix=".md"),
    "en.wikipedia.org": SwapHost("en.m.wikipedia.org"),
    "notion.site": IDENTITY,
    "velog.io": IDENTITY,
    "brunch.co.kr": IDENTITY,
    "dev.to": IDENTITY,
    "hashnode.dev": IDENTITY,
    "stackoverflow.com": IDENTITY,
    "reddit.com": IDENTITY,
    "news.ycombinator.com": IDENTITY,
}


def lookup_rule(url: str, rules: Mapping[str, RewriteRule]) -> tuple[str, RewriteRule] | None:
    """Return the ``(domain, rule)`` whose domain covers the URL's host."""
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    for domain, rule in rules.items():
        if host_matches(hostname, domain):
            return domain, rule
    return None


# ---------------------------------------------------------------------------
# Title synthesis
# ---------------------------------------------------------------------------

_SOCIAL_KINDS = (
    (re.compile(r"/(reel|reels|video|videos|tv)/"), "Video"),
    (re.compile(r"/(stories|story)/"), "Story"),
    (re.compile(r"/(p|post|posts|status|s)/"), "Post"),
)


def social_media_title(url: str, domain: str) -> str | None:
    """Name a social media URL by platform and kind of post."""
    platform = SOCIAL_PLATFORM_NAMES.get(domain)
    if platform is None:
        return None
    path = urlsplit(url).path
    for pattern, kind in _SOCIAL_KINDS:
        if pattern.search(path):
            return f"{platform} {kind}"
    segments = [s for s in path.split("/") if s]
    if segments:
        return f"{platform} - {segments[-1]}"
    return platform


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------

TitleBuilder = Callable[[str, str], "str | None"]


class RewriteHandler:
    """Applies a rewrite table; optionally names the page."""

    is_fallback = False

    def __init__(
        self,
        name: str,
        rules: Mapping[str, RewriteRule],
        title_builder: TitleBuilder | None = None,
    ) -> None:
        self.name = name
        self.rules = rules
        self.title_builder = title_builder

    def can_handle(self, url: str) -> bool:
        return lookup_rule(url, self.rules) is not None

    async def handle(self, url: str) -> PreHandleResult | None:
        found = lookup_rule(url, self.rules)
        if found is None:
            return None
        domain, rule = found
        rewritten = rule.apply(url)
        if rewritten != url:
            logger.info("%s: rewrote %s -> %s", self.name, url, rewritten)

        title = self.title_builder(url, domain) if self.title_builder else None
        return PreHandleResult(url=rewritten, title=title)


def build_rewrite_handlers() -> list[RewriteHandler]:
    """Social media, news site, and generic domain rewrites, in chain order."""
    return [
        RewriteHandler("social_media", SOCIAL_MEDIA_RULES, social_media_title),
        RewriteHandler("news_site", NEWS_SITE_RULES),
        RewriteHandler("domain_specific", DOMAIN_RULES),
    ]
