"""Pydantic v2 schemas for the scraper endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


# -----------------------------------------------------------------------------
# Request Schemas
# -----------------------------------------------------------------------------


class FetchContentRequest(BaseModel):
    """Request body for POST /scraper/fetch-content."""

    # Free-form text is accepted; the first http(s) URL in it is used
    url: str = Field(..., min_length=1, max_length=4096, description="URL or text containing a URL")
    locale: str | None = Field(
        default=None, max_length=35, description="Browser locale, e.g. ko-KR"
    )
    timezone: str | None = Field(
        default=None, max_length=64, description="IANA timezone, e.g. Asia/Seoul"
    )


class SaveContentRequest(FetchContentRequest):
    """Request body for POST /scraper/save-content."""

    tags: list[str] = Field(default_factory=list, max_length=50, description="Tags to attach")
    is_bookmarked: bool = Field(default=False, description="Mark the article as bookmarked")
    is_archived: bool = Field(default=False, description="Mark the article as archived")
    save_to_database: bool = Field(default=True, description="Persist the scraped article")


# -----------------------------------------------------------------------------
# Response Schemas
# -----------------------------------------------------------------------------


class ScrapedContentResponse(BaseModel):
    """Response for the scraper endpoints."""

    final_url: str = Field(..., description="URL the content was taken from")
    title: str | None = Field(default=None, description="Article title")
    content: str | None = Field(default=None, description="Article HTML")
    content_type: str | None = Field(default=None, description="MIME type of the source")
