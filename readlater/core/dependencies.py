"""FastAPI dependencies shared by the routes."""

from __future__ import annotations

from fastapi import Header, HTTPException, Request

from readlater.schemas.common import error_body
from readlater.services.scraper.orchestrator import ScraperService


def get_scraper_service(request: Request) -> ScraperService:
    """Return the scraper built during application startup."""
    scraper = getattr(request.app.state, "scraper", None)
    if scraper is None:
        raise HTTPException(
            status_code=503,
            detail=error_body("SCRAPER_UNAVAILABLE", "Scraper service is not initialized."),
        )
    return scraper


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Identify the caller from the ``X-User-Id`` header.

    Stands in for real authentication, which lives in front of this service.
    """
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=401,
            detail=error_body("UNAUTHORIZED", "X-User-Id header is required."),
        )
    return x_user_id.strip()
