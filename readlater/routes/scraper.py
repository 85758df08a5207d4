"""Content scraping REST endpoints."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException

from readlater.core.config import settings
from readlater.core.dependencies import get_current_user_id, get_scraper_service
from readlater.schemas.common import error_body
from readlater.schemas.scraper import (
    FetchContentRequest,
    SaveContentRequest,
    ScrapedContentResponse,
)
from readlater.services.articles import SaveOptions
from readlater.services.scraper.base import FetchContentInput, ScrapedContentOutput
from readlater.services.scraper.exceptions import InvalidUrlInput, UnsafeUrlDetected
from readlater.services.scraper.orchestrator import ScraperService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scraper", tags=["scraper"])


def _to_response(output: ScrapedContentOutput) -> ScrapedContentResponse:
    return ScrapedContentResponse(
        final_url=output.final_url,
        title=output.title,
        content=output.content,
        content_type=output.content_type,
    )


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail=error_body(code, message),
    )


@router.post("/fetch-content", response_model=ScrapedContentResponse)
async def fetch_content(
    request: FetchContentRequest,
    scraper: ScraperService = Depends(get_scraper_service),
) -> ScrapedContentResponse:
    """Scrape a URL and return its readable content.

    Raises:
        HTTPException: 400 for invalid or unsafe URLs, 504 if the scrape
            exceeds the request deadline.
    """
    try:
        output = await scraper.fetch_content(
            FetchContentInput(url=request.url, locale=request.locale, timezone=request.timezone),
            timeout_seconds=settings.scraper_request_timeout_seconds,
        )
    except InvalidUrlInput as e:
        raise _error(400, "INVALID_URL", str(e)) from e
    except UnsafeUrlDetected as e:
        raise _error(400, "UNSAFE_URL", str(e)) from e
    except asyncio.TimeoutError as e:
        logger.warning("Scrape of %s exceeded request deadline", request.url)
        raise _error(504, "SCRAPE_TIMEOUT", "Scraping took too long.") from e

    return _to_response(output)


@router.post("/save-content", response_model=ScrapedContentResponse)
async def save_content(
    request: SaveContentRequest,
    user_id: str = Depends(get_current_user_id),
    scraper: ScraperService = Depends(get_scraper_service),
) -> ScrapedContentResponse:
    """Scrape a URL and store the article for the calling user.

    Storage failures are logged and do not fail the request.
    """
    options = SaveOptions(
        save_to_database=request.save_to_database,
        tags=tuple(request.tags),
        is_bookmarked=request.is_bookmarked,
        is_archived=request.is_archived,
    )
    try:
        output = await scraper.fetch_content_with_save(
            FetchContentInput(url=request.url, locale=request.locale, timezone=request.timezone),
            user_id,
            options,
            timeout_seconds=settings.scraper_request_timeout_seconds,
        )
    except InvalidUrlInput as e:
        raise _error(400, "INVALID_URL", str(e)) from e
    except UnsafeUrlDetected as e:
        raise _error(400, "UNSAFE_URL", str(e)) from e
    except asyncio.TimeoutError as e:
        logger.warning("Scrape of %s exceeded request deadline", request.url)
        raise _error(504, "SCRAPE_TIMEOUT", "Scraping took too long.") from e

    return _to_response(output)
