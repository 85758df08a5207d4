"""Persistence boundary for scraped articles."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from readlater.services.scraper.base import ScrapedContentOutput


@dataclass(frozen=True)
class SaveOptions:
    """How a scraped article should be stored."""

    save_to_database: bool = True
    tags: tuple[str, ...] = field(default_factory=tuple)
    is_bookmarked: bool = False
    is_archived: bool = False


class ArticleStore(Protocol):
    """Protocol for article persistence backends."""

    async def save_scraped_content(
        self,
        user_id: str,
        content: ScrapedContentOutput,
        options: SaveOptions,
    ) -> None:
        """Persist a scraped article for ``user_id``.

        Raises:
            Exception: Any backend error. Callers log and swallow it.
        """
        ...
