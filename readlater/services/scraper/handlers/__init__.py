"""Content handlers, in the order the chain consults them.

1. File types (PDF, RSS/Atom, video) - classify without fetching
2. Platforms (Medium, Naver Blog, Tistory, Disquiet) - site profiles
3. Newsletters (Maily, Stibee) - site profiles with title clean-up
4. URL rewrites (social media, news sites, other domains)
5. Readability - universal fallback
"""

from readlater.services.scraper.handlers.extract import (
    ProfileHandler,
    SiteProfile,
    extract_with_profile,
    selectors_have_text,
)
from readlater.services.scraper.handlers.file_types import (
    FeedHandler,
    PdfHandler,
    VideoHandler,
)
from readlater.services.scraper.handlers.generic import ReadabilityHandler
from readlater.services.scraper.handlers.platforms import build_platform_handlers
from readlater.services.scraper.handlers.rewrite import (
    RewriteHandler,
    build_rewrite_handlers,
)

__all__ = [
    "FeedHandler",
    "PdfHandler",
    "ProfileHandler",
    "ReadabilityHandler",
    "RewriteHandler",
    "SiteProfile",
    "VideoHandler",
    "build_platform_handlers",
    "build_rewrite_handlers",
    "extract_with_profile",
    "selectors_have_text",
]
