"""Pydantic v2 schemas for readlater-scraper-service API."""

from readlater.schemas.common import ErrorResponse, HealthResponse, error_body
from readlater.schemas.scraper import (
    FetchContentRequest,
    SaveContentRequest,
    ScrapedContentResponse,
)

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "FetchContentRequest",
    "SaveContentRequest",
    "ScrapedContentResponse",
    "error_body",
]
