"""Headless-browser rendering for pages static extraction cannot read.

Each render runs in a fresh browser context with request interception:
fonts, media, known ad and tracking hosts, and URLs that already failed
while rendering the same page are aborted; document responses must have an
allowed content type; every document request and the final URL pass the URL
guard. The context is always released.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable
from urllib.parse import urlsplit

from readlater.services.scraper.base import BrowserConfig, host_matches
from readlater.services.scraper.browser import BrowserManager
from readlater.services.scraper.exceptions import InvalidUrlInput, NetworkFailure
from readlater.services.scraper.url_guard import validate_url

if TYPE_CHECKING:
    from playwright.async_api import Page, Request, Response, Route

logger = logging.getLogger(__name__)

# Hosts whose pages read better with JavaScript disabled
NON_SCRIPT_HOSTS = ("medium.com", "fastcompany.com", "fortelabs.com")

ALLOWED_CONTENT_TYPES = frozenset(
    {"text/html", "text/plain", "application/octet-stream", "application/pdf"}
)

BLOCKED_RESOURCE_TYPES = frozenset({"font", "media"})
BLOCKED_URL_SUFFIXES = (".woff", ".woff2", ".ttf", ".otf")
BLOCKED_URL_FRAGMENTS = ("mathjax",)
MAX_FAILED_URLS = 1000

BLOCKED_HOSTS = (
    "doubleclick.net",
    "googlesyndication.com",
    "googletagmanager.com",
    "google-analytics.com",
    "adservice.google.com",
    "facebook.net",
    "scorecardresearch.com",
    "taboola.com",
    "outbrain.com",
    "criteo.com",
    "hotjar.com",
)

# Resolves once no DOM mutation happened for `debounce` ms, or after `timeout` ms
SETTLE_SCRIPT = """
([timeout, debounce]) => new Promise((resolve) => {
    if (!document.body) {
        resolve(false);
        return;
    }
    let debounceTimer = null;
    const finish = (settled) => {
        observer.disconnect();
        clearTimeout(ceiling);
        clearTimeout(debounceTimer);
        resolve(settled);
    };
    const observer = new MutationObserver(() => {
        clearTimeout(debounceTimer);
        debounceTimer = setTimeout(() => finish(true), debounce);
    });
    const ceiling = setTimeout(() => finish(false), timeout);
    debounceTimer = setTimeout(() => finish(true), debounce);
    observer.observe(document.body, {
        childList: true,
        subtree: true,
        attributes: true,
        characterData: true,
    });
})
"""

SCROLL_SCRIPT = """
() => new Promise((resolve) => {
    const distance = 500;
    let scrolled = 0;
    const timer = setInterval(() => {
        window.scrollBy(0, distance);
        scrolled += distance;
        if (scrolled >= document.body.scrollHeight) {
            clearInterval(timer);
            resolve(scrolled);
        }
    }, 10);
})
"""


@dataclass(frozen=True)
class RenderedPage:
    """What the browser saw after navigation settled."""

    final_url: str
    title: str | None
    html: str
    content_type: str | None


def _media_type(content_type: str | None) -> str:
    return (content_type or "").split(";")[0].strip().lower()


def _host_blocked(url: str) -> bool:
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return True
    return bool(hostname) and any(host_matches(hostname, h) for h in BLOCKED_HOSTS)


def scripts_allowed(url: str) -> bool:
    """Return False for hosts that are rendered with JavaScript disabled."""
    hostname = urlsplit(url).hostname or ""
    return not any(host_matches(hostname, h) for h in NON_SCRIPT_HOSTS)


class BrowserFallback:
    """Render a URL in the shared browser and capture the resulting HTML."""

    def __init__(
        self,
        manager: BrowserManager,
        config: BrowserConfig | None = None,
        guard: Callable[[str], None] = validate_url,
    ) -> None:
        self.manager = manager
        self.config = config or manager.config
        self.guard = guard

    def should_block(
        self,
        url: str,
        resource_type: str,
        failed_urls: set[str] | frozenset[str] = frozenset(),
    ) -> bool:
        """Return True if a subresource request should be aborted."""
        lowered = url.lower()
        path = urlsplit(lowered).path
        return (
            resource_type in BLOCKED_RESOURCE_TYPES
            or path.endswith(BLOCKED_URL_SUFFIXES)
            or any(fragment in lowered for fragment in BLOCKED_URL_FRAGMENTS)
            or _host_blocked(url)
            or url in failed_urls
        )

    async def render(
        self,
        url: str,
        locale: str | None = None,
        timezone: str | None = None,
    ) -> RenderedPage:
        """Navigate to ``url`` and capture title and HTML.

        Raises:
            InvalidUrlInput: If navigation ends on a URL the guard rejects.
            NetworkFailure: If the browser, navigation, or capture fails.
        """
        self.guard(url)
        browser = await self.manager.acquire()

        context_options: dict = {
            "user_agent": self.config.user_agent,
            "viewport": {
                "width": self.config.viewport_width,
                "height": self.config.viewport_height,
            },
            "java_script_enabled": scripts_allowed(url),
        }
        if locale:
            context_options["locale"] = locale
            context_options["extra_http_headers"] = {"Accept-Language": locale}
        if timezone:
            context_options["timezone_id"] = timezone

        try:
            context = await browser.new_context(**context_options)
        except Exception as e:
            raise NetworkFailure(f"Could not open browser context: {e}") from e

        try:
            # Failures are remembered for this page only
            failed_urls: set[str] = set()
            page = await context.new_page()
            await page.route("**/*", functools.partial(self._route_request, failed_urls))
            page.on("response", functools.partial(self._record_failure, failed_urls))

            logger.debug("Rendering %s in browser", url)
            response = await page.goto(
                url,
                wait_until="load",
                timeout=self.config.navigation_timeout_seconds * 1000,
            )
            if response is None:
                raise NetworkFailure(f"No response navigating to {url}")
            if response.status >= 400:
                raise NetworkFailure(f"Failed to load {url}: HTTP {response.status}")

            final_url = page.url
            self.guard(final_url)

            await self._wait_for_dom_to_settle(page)
            title = await page.title()
            await self._auto_scroll(page)
            html = await page.content()

            logger.info("Browser rendered %d chars from %s", len(html), final_url)
            return RenderedPage(
                final_url=final_url,
                title=title.strip() if title else None,
                html=html,
                content_type=_media_type(response.headers.get("content-type")) or None,
            )

        except (InvalidUrlInput, NetworkFailure):
            raise
        except Exception as e:
            logger.warning("Browser rendering failed for %s: %s", url, e)
            raise NetworkFailure(f"Browser rendering failed for {url}: {e}") from e

        finally:
            await self.manager.release(context)

    async def _route_request(self, failed_urls: set[str], route: Route, request: Request) -> None:
        # Route callbacks must not raise; a failure here only loses one request
        try:
            if self.should_block(request.url, request.resource_type, failed_urls):
                await route.abort("blockedbyclient")
                return

            if request.resource_type != "document":
                await route.continue_()
                return

            try:
                self.guard(request.url)
            except InvalidUrlInput:
                logger.warning("Blocked browser navigation to %s", request.url)
                await route.abort("accessdenied")
                return

            # Redirects come back to the browser, so every hop is routed again
            response = await route.fetch(max_redirects=0)
            is_redirect = 300 <= response.status < 400
            media_type = _media_type(response.headers.get("content-type"))
            if not is_redirect and media_type and media_type not in ALLOWED_CONTENT_TYPES:
                logger.info("Aborting %s with content type %s", request.url, media_type)
                await route.abort("blockedbyclient")
                return
            await route.fulfill(response=response)
        except Exception as e:
            logger.debug("Request routing failed for %s: %s", request.url, e)
            with contextlib.suppress(Exception):
                await route.abort("failed")

    def _record_failure(self, failed_urls: set[str], response: Response) -> None:
        if response.status >= 400:
            if len(failed_urls) >= MAX_FAILED_URLS:
                failed_urls.clear()
            failed_urls.add(response.url)

    async def _wait_for_dom_to_settle(self, page: Page) -> None:
        try:
            settled = await page.evaluate(
                SETTLE_SCRIPT,
                [self.config.settle_timeout_ms, self.config.settle_debounce_ms],
            )
            if not settled:
                logger.debug("DOM did not settle within %dms", self.config.settle_timeout_ms)
        except Exception as e:
            logger.debug("DOM settle check failed: %s", e)

    async def _auto_scroll(self, page: Page) -> None:
        try:
            await asyncio.wait_for(
                page.evaluate(SCROLL_SCRIPT), timeout=self.config.scroll_timeout_seconds
            )
        except asyncio.TimeoutError:
            logger.debug("Auto-scroll stopped after %.1fs", self.config.scroll_timeout_seconds)
        except Exception as e:
            logger.debug("Auto-scroll failed: %s", e)
