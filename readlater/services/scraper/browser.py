"""Supervised headless browser shared by all scrape requests.

The browser is launched lazily on the first ``acquire()``. If Chromium
crashes or disconnects, the next ``acquire()`` launches a fresh one. Each
request gets its own browser context, which ``release()`` closes.

Note: Playwright browsers must be installed separately:
    playwright install chromium
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from readlater.services.scraper.base import BrowserConfig
from readlater.services.scraper.exceptions import NetworkFailure

if TYPE_CHECKING:
    from playwright.async_api import Browser, BrowserContext, Playwright

logger = logging.getLogger(__name__)

LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-accelerated-2d-canvas",
    "--disable-background-networking",
    "--disable-background-timer-throttling",
    "--disable-renderer-backgrounding",
    "--disable-extensions",
    "--disable-sync",
    "--no-first-run",
    "--no-default-browser-check",
    "--mute-audio",
    "--hide-scrollbars",
)


class BrowserManager:
    """Owns the Playwright driver and a single Chromium instance.

    Attributes:
        config: Browser configuration (headless mode, timeouts, viewport).
    """

    def __init__(self, config: BrowserConfig | None = None) -> None:
        self.config = config or BrowserConfig()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()
        self.launch_count = 0

    def is_healthy(self) -> bool:
        """Return True if a browser is running and connected."""
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self) -> Browser:
        """Return a connected browser, launching or relaunching as needed.

        Raises:
            NetworkFailure: If the browser fails to launch.
        """
        async with self._lock:
            if self._browser is not None and self._browser.is_connected():
                return self._browser

            if self._browser is not None:
                logger.warning("Browser disconnected, relaunching")
                self._browser = None

            self._browser = await self._launch()
            return self._browser

    async def _launch(self) -> Browser:
        try:
            if self._playwright is None:
                # Import here to avoid loading Playwright until needed
                from playwright.async_api import async_playwright

                self._playwright = await async_playwright().start()

            browser = await self._playwright.chromium.launch(
                headless=self.config.headless,
                executable_path=self.config.executable_path,
                args=list(LAUNCH_ARGS),
                timeout=self.config.launch_timeout_seconds * 1000,
            )
        except Exception as e:
            logger.error("Failed to launch browser: %s", e)
            raise NetworkFailure(f"Failed to launch browser: {e}") from e

        browser.on("disconnected", self._on_disconnected)
        self.launch_count += 1
        logger.info(
            "Browser launched (headless=%s, launch #%d)",
            self.config.headless,
            self.launch_count,
        )
        return browser

    def _on_disconnected(self, browser: Browser) -> None:
        if self._browser is browser:
            logger.warning("Browser disconnected")
            self._browser = None

    async def release(self, context: BrowserContext) -> None:
        """Close a per-request context. Never raises."""
        try:
            await context.close()
        except Exception as e:
            logger.warning("Error closing browser context: %s", e)

    async def close(self) -> None:
        """Close browser and stop Playwright. Safe to call multiple times."""
        async with self._lock:
            if self._browser is not None:
                try:
                    await self._browser.close()
                    logger.debug("Browser closed")
                except Exception as e:
                    logger.warning("Error closing browser: %s", e)
                self._browser = None

            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                    logger.debug("Playwright stopped")
                except Exception as e:
                    logger.warning("Error stopping Playwright: %s", e)
                self._playwright = None

    async def __aenter__(self) -> BrowserManager:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
