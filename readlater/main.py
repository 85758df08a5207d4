"""FastAPI application entry point for readlater-scraper-service.

Configures middleware, exception handlers, lifecycle hooks, and routes.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from readlater.core.config import settings
from readlater.routes import health
from readlater.routes.scraper import router as scraper_router
from readlater.schemas.common import error_body
from readlater.services.safety import SafeBrowsingProvider
from readlater.services.scraper.browser import BrowserManager
from readlater.services.scraper.orchestrator import ScraperService

# ---------------------------------------------------------------------------
# Logging Configuration
# ---------------------------------------------------------------------------

# Configure root logger with level from settings
logging.basicConfig(
    level=settings.get_log_level_int(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


def build_scraper() -> tuple[ScraperService, BrowserManager | None]:
    """Create the scraper and, when enabled, the browser it escalates to."""
    config = settings.get_scraper_config()
    browser_manager = BrowserManager(config.browser) if settings.browser_enabled else None
    safety = SafeBrowsingProvider(
        settings.safe_browsing_api_key,
        timeout_seconds=settings.safe_browsing_timeout_seconds,
    )
    scraper = ScraperService.from_config(config, browser_manager, safety=safety)
    return scraper, browser_manager


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup / shutdown lifecycle."""
    # --- Startup ---
    logger.info(
        "Starting readlater-scraper-service (env=%s, port=%d)",
        settings.service_env,
        settings.port,
    )

    scraper, browser_manager = build_scraper()
    app.state.scraper = scraper
    app.state.browser_manager = browser_manager

    if browser_manager is None:
        logger.warning("Browser fallback disabled; JavaScript-heavy pages may come back empty")
    if not settings.safe_browsing_api_key:
        logger.warning("SAFE_BROWSING_API_KEY not set; URL safety checks are skipped")

    yield

    # --- Shutdown ---
    logger.info("Shutting down readlater-scraper-service")
    await scraper.close()


# ---------------------------------------------------------------------------
# App instance
# ---------------------------------------------------------------------------

app = FastAPI(
    title="readlater scraper API",
    version="0.1.0",
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging_middleware(request: Request, call_next):
    """Log every request with method, path, status, and duration."""
    start = time.monotonic()
    response = await call_next(request)
    duration_ms = (time.monotonic() - start) * 1000
    logger.info(
        "%s %s -> %d (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


# ---------------------------------------------------------------------------
# Global exception handler
# ---------------------------------------------------------------------------


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler that returns a structured JSON error."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body("INTERNAL_ERROR", "An unexpected error occurred."),
    )


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

# Health check at /health (no prefix)
app.include_router(health.router)

# Scraper routes (prefixed with /scraper)
app.include_router(scraper_router)
