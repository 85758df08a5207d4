"""Application configuration using Pydantic Settings.

Loads settings from environment variables and .env file.
All settings have sensible defaults for local development.
"""

from __future__ import annotations

import json
import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from readlater.services.scraper.base import (
    DEFAULT_USER_AGENT,
    BrowserConfig,
    QualityThresholds,
    ScraperConfig,
)

# Valid Python logging levels
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Service-wide configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Server ---
    service_env: str = "development"
    host: str = "0.0.0.0"
    port: int = 15020

    # --- Logging ---
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level to uppercase.

        Falls back to INFO if an invalid level is provided.
        """
        normalized = v.upper().strip()
        if normalized not in VALID_LOG_LEVELS:
            # Log a warning (to stderr since logging may not be configured yet)
            import sys

            print(
                f"WARNING: Invalid LOG_LEVEL '{v}'. "
                f"Valid levels are: {', '.join(sorted(VALID_LOG_LEVELS))}. "
                "Falling back to INFO.",
                file=sys.stderr,
            )
            return "INFO"
        return normalized

    def get_log_level_int(self) -> int:
        """Return the integer value of the configured log level."""
        return getattr(logging, self.log_level, logging.INFO)

    # --- Static fetching ---
    scraper_user_agent: str = DEFAULT_USER_AGENT
    scraper_http_timeout_seconds: float = 10.0
    scraper_max_content_mb: int = 20  # per response
    scraper_request_timeout_seconds: float = 90.0  # whole request, browser included
    scraper_restart_on_rewrite: bool = False  # restart the chain after a URL rewrite

    # --- Headless browser ---
    browser_enabled: bool = True
    browser_headless: bool = True
    browser_executable_path: str | None = None
    browser_navigation_timeout_seconds: float = 30.0
    browser_settle_timeout_ms: int = 5000
    browser_settle_debounce_ms: int = 1000
    browser_scroll_timeout_seconds: float = 5.0

    # --- Quality gate ---
    quality_char_threshold: int = 500
    quality_min_content_length: int = 140
    quality_min_score: int = 20
    quality_min_paragraphs: int = 3
    quality_max_link_density: float = 0.2

    # --- URL safety ---
    safe_browsing_api_key: str = ""  # empty disables the lookup
    safe_browsing_timeout_seconds: float = 5.0

    # --- CORS ---
    cors_origins: str = "http://localhost:15000,http://localhost:3000"

    def get_cors_origins(self) -> list[str]:
        """Parse cors_origins as JSON list or comma-separated string."""
        raw = self.cors_origins.strip()
        if raw.startswith("["):
            return json.loads(raw)
        return [o.strip() for o in raw.split(",") if o.strip()]

    def get_scraper_config(self) -> ScraperConfig:
        """Build the scraper's frozen configuration from these settings."""
        return ScraperConfig(
            http_timeout_seconds=self.scraper_http_timeout_seconds,
            max_content_size_mb=self.scraper_max_content_mb,
            restart_on_rewrite=self.scraper_restart_on_rewrite,
            quality=QualityThresholds(
                char_threshold=self.quality_char_threshold,
                min_content_length=self.quality_min_content_length,
                min_score=self.quality_min_score,
                min_paragraphs=self.quality_min_paragraphs,
                max_link_density=self.quality_max_link_density,
            ),
            browser=BrowserConfig(
                headless=self.browser_headless,
                executable_path=self.browser_executable_path,
                navigation_timeout_seconds=self.browser_navigation_timeout_seconds,
                settle_timeout_ms=self.browser_settle_timeout_ms,
                settle_debounce_ms=self.browser_settle_debounce_ms,
                scroll_timeout_seconds=self.browser_scroll_timeout_seconds,
                user_agent=self.scraper_user_agent,
            ),
        )


settings = Settings()
