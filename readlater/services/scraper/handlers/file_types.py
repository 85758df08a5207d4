"""Handlers that classify a URL by file type without fetching the page."""

from __future__ import annotations

import html
import re
from urllib.parse import parse_qs, urlsplit

from readlater.services.scraper.base import PDF_CONTENT_TYPE, PreHandleResult, host_matches
from readlater.services.scraper.title import title_from_path

RSS_CONTENT_TYPE = "application/rss+xml"
ATOM_CONTENT_TYPE = "application/atom+xml"

PDF_PATH_PATTERNS = (
    re.compile(r"/pdf/", re.IGNORECASE),
    re.compile(r"/download.*\.pdf", re.IGNORECASE),
    re.compile(r"/files.*\.pdf", re.IGNORECASE),
    re.compile(r"/documents.*\.pdf", re.IGNORECASE),
)

FEED_EXTENSIONS = (".rss", ".xml", ".atom")
FEED_PATH_PATTERNS = (
    re.compile(r"/feed/?$", re.IGNORECASE),
    re.compile(r"/feeds?/", re.IGNORECASE),
    re.compile(r"/rss/?$", re.IGNORECASE),
    re.compile(r"/atom/?$", re.IGNORECASE),
    re.compile(r"/syndication/", re.IGNORECASE),
    re.compile(r"/(index|rss|atom|feed)\.xml$", re.IGNORECASE),
)

YOUTUBE_HOSTS = ("youtube.com", "youtu.be")
_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]{6,}$")


def _split(url: str):
    try:
        return urlsplit(url)
    except ValueError:
        return None


class PdfHandler:
    """Marks PDF documents so the chain and the orchestrator stop early."""

    name = "pdf"
    is_fallback = False

    def can_handle(self, url: str) -> bool:
        parts = _split(url)
        if parts is None:
            return False
        path = parts.path.lower()
        return path.endswith(".pdf") or any(p.search(path) for p in PDF_PATH_PATTERNS)

    async def handle(self, url: str) -> PreHandleResult | None:
        path = urlsplit(url).path
        return PreHandleResult(
            url=url,
            title=title_from_path(path, remove_extension=True),
            content_type=PDF_CONTENT_TYPE,
        )


class FeedHandler:
    """Marks RSS and Atom feeds."""

    name = "feed"
    is_fallback = False

    def can_handle(self, url: str) -> bool:
        parts = _split(url)
        if parts is None:
            return False
        path = parts.path.lower()
        return path.endswith(FEED_EXTENSIONS) or any(
            p.search(path) for p in FEED_PATH_PATTERNS
        )

    async def handle(self, url: str) -> PreHandleResult | None:
        parts = urlsplit(url)
        content_type = ATOM_CONTENT_TYPE if "atom" in parts.path.lower() else RSS_CONTENT_TYPE
        title = title_from_path(parts.path, remove_extension=True)
        if not title or title.lower() in ("feed", "rss", "atom", "index"):
            title = f"{parts.hostname} Feed"
        return PreHandleResult(url=url, title=title, content_type=content_type)


def youtube_video_id(url: str) -> str | None:
    """Return the video id of a YouTube watch, short, embed or /v/ URL."""
    parts = _split(url)
    if parts is None or not parts.hostname:
        return None
    hostname = parts.hostname.lower()
    if not any(host_matches(hostname, host) for host in YOUTUBE_HOSTS):
        return None

    segments = [s for s in parts.path.split("/") if s]
    candidate = None
    if host_matches(hostname, "youtu.be"):
        candidate = segments[0] if segments else None
    elif segments[:1] == ["watch"]:
        candidate = parse_qs(parts.query).get("v", [None])[0]
    elif len(segments) >= 2 and segments[0] in ("embed", "v", "shorts"):
        candidate = segments[1]

    if candidate and _VIDEO_ID.match(candidate):
        return candidate
    return None


def _start_seconds(url: str) -> int | None:
    raw = parse_qs(urlsplit(url).query).get("t", [None])[0]
    if not raw:
        return None
    match = re.fullmatch(r"(?:(\d+)h)?(?:(\d+)m)?(?:(\d+)s?)?", raw)
    if not match or not any(match.groups()):
        return None
    hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    return hours * 3600 + minutes * 60 + seconds


def render_video_snippet(video_id: str, start: int | None = None) -> str:
    """Build the HTML stored for a video: links, start time and an embed."""
    watch_url = f"https://www.youtube.com/watch?v={video_id}"
    embed_url = f"https://www.youtube.com/embed/{video_id}"
    if start:
        watch_url = f"{watch_url}&t={start}s"
        embed_url = f"{embed_url}?start={start}"

    parts = [
        '<div class="video-content" data-platform="youtube">',
        f"<p>YouTube video <code>{html.escape(video_id)}</code></p>",
        f'<p><a href="{html.escape(watch_url)}">Watch on YouTube</a></p>',
    ]
    if start:
        parts.append(f"<p>Starts at {start} seconds</p>")
    parts.append(
        f'<iframe src="{html.escape(embed_url)}" width="560" height="315" '
        'frameborder="0" allowfullscreen></iframe>'
    )
    parts.append("</div>")
    return "\n".join(parts)


class VideoHandler:
    """Synthesizes an embed snippet for YouTube videos."""

    name = "video"
    is_fallback = False

    def can_handle(self, url: str) -> bool:
        return youtube_video_id(url) is not None

    async def handle(self, url: str) -> PreHandleResult | None:
        video_id = youtube_video_id(url)
        if video_id is None:
            return None
        return PreHandleResult(
            url=url,
            title=f"YouTube Video: {video_id}",
            content=render_video_snippet(video_id, _start_seconds(url)),
            content_type="text/html",
        )
