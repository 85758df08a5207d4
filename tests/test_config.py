"""Tests for settings loading and the derived scraper configuration."""

from __future__ import annotations

import pytest

from readlater.core.config import Settings


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)

        assert s.port == 15020
        assert s.browser_enabled is True
        assert s.safe_browsing_api_key == ""
        assert s.scraper_request_timeout_seconds == 90.0

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SCRAPER_HTTP_TIMEOUT_SECONDS", "4.5")
        monkeypatch.setenv("BROWSER_ENABLED", "false")
        monkeypatch.setenv("QUALITY_MIN_PARAGRAPHS", "5")

        s = Settings(_env_file=None)

        assert s.scraper_http_timeout_seconds == 4.5
        assert s.browser_enabled is False
        assert s.quality_min_paragraphs == 5

    @pytest.mark.parametrize("raw,expected", [("debug", "DEBUG"), (" warning ", "WARNING"), ("LOUD", "INFO")])
    def test_log_level_normalized(self, raw: str, expected: str) -> None:
        assert Settings(_env_file=None, log_level=raw).log_level == expected

    def test_cors_origins_formats(self) -> None:
        assert Settings(_env_file=None, cors_origins="http://a, http://b").get_cors_origins() == ["http://a", "http://b"]
        assert Settings(_env_file=None, cors_origins='["http://c"]').get_cors_origins() == ["http://c"]


class TestScraperConfig:
    def test_settings_flow_into_scraper_config(self) -> None:
        s = Settings(
            _env_file=None,
            scraper_http_timeout_seconds=3.0,
            scraper_max_content_mb=7,
            scraper_restart_on_rewrite=True,
            scraper_user_agent="TestAgent/1.0",
            browser_headless=False,
            browser_navigation_timeout_seconds=12.0,
            quality_char_threshold=100,
            quality_max_link_density=0.5,
        )

        config = s.get_scraper_config()

        assert config.http_timeout_seconds == 3.0
        assert config.max_content_size_mb == 7
        assert config.restart_on_rewrite is True
        assert config.browser.headless is False
        assert config.browser.navigation_timeout_seconds == 12.0
        assert config.browser.user_agent == "TestAgent/1.0"
        assert config.quality.char_threshold == 100
        assert config.quality.max_link_density == 0.5
