"""Tests for URL normalization and the SSRF guard."""

from __future__ import annotations

import pytest

from readlater.services.scraper.exceptions import InvalidUrlInput
from readlater.services.scraper.url_guard import (
    is_http_url,
    normalize,
    strip_tracking,
    validate_url,
)


class TestNormalize:
    """Test suite for normalize()."""

    def test_plain_url_is_kept(self) -> None:
        """Test that an already clean URL passes through unchanged."""
        assert normalize("https://example.com/article") == "https://example.com/article"

    def test_url_extracted_from_surrounding_text(self) -> None:
        """Test that the first URL is pulled out of shared text."""
        raw = "Check this out: https://example.com/post?id=7 it's great"
        assert normalize(raw) == "https://example.com/post?id=7"

    def test_tracking_params_and_fragment_removed(self) -> None:
        """Test that utm_*, fbclid, gclid and the fragment are dropped."""
        raw = (
            "https://example.com/a?utm_source=x&utm_medium=y&utm_campaign=z"
            "&utm_term=t&utm_content=c&fbclid=f&gclid=g&keep=1#section"
        )
        assert normalize(raw) == "https://example.com/a?keep=1"

    def test_query_untouched_without_tracking_params(self) -> None:
        """Test that an untouched query keeps its original encoding."""
        raw = "https://example.com/search?q=a%2Fb&lang=en"
        assert normalize(raw) == raw

    def test_scheme_and_host_lowercased_and_root_path_added(self) -> None:
        """Test canonical scheme, host and path."""
        assert normalize("HTTPS://Example.COM") == "https://example.com/"

    @pytest.mark.parametrize(
        "raw",
        [
            "https://example.com/a?utm_source=x&b=2#frag",
            "Look: HTTP://Example.com?gclid=1",
            "https://example.com/path/?q=hello+world&fbclid=zz",
        ],
    )
    def test_idempotent(self, raw: str) -> None:
        """Test that normalizing twice equals normalizing once."""
        once = normalize(raw)
        assert normalize(once) == once

    @pytest.mark.parametrize("raw", ["", "   ", "not a url"])
    def test_rejects_input_without_url(self, raw: str) -> None:
        """Test that empty or URL-free input is rejected."""
        with pytest.raises(InvalidUrlInput):
            normalize(raw)

    def test_rejects_other_protocols(self) -> None:
        """Test that ftp:// and friends are rejected with a protocol reason."""
        with pytest.raises(InvalidUrlInput) as exc_info:
            normalize("ftp://example.com/file")

        assert "protocol" in exc_info.value.reason

    @pytest.mark.parametrize(
        "raw",
        [
            "http://localhost/admin",
            "http://0.0.0.0:8080/",
            "http://10.0.0.5/internal",
            "http://172.16.3.4/",
            "http://192.168.1.1/router",
            "http://127.0.0.1:9000/",
            "http://169.254.169.254/latest/meta-data/",
            "http://[::1]/",
            "http://api.localhost/",
        ],
    )
    def test_rejects_local_and_private_hosts(self, raw: str) -> None:
        """Test that the guard blocks local and private targets."""
        with pytest.raises(InvalidUrlInput):
            normalize(raw)


class TestValidateUrl:
    """Test suite for validate_url()."""

    def test_public_host_accepted(self) -> None:
        """Test that a public hostname passes."""
        validate_url("https://news.example.org/story")

    def test_public_ip_accepted(self) -> None:
        """Test that a public IP literal passes."""
        validate_url("http://93.184.216.34/")

    def test_hostname_starting_with_private_prefix_accepted(self) -> None:
        """Test that only IP literals are matched against private ranges."""
        validate_url("https://10.example.com/")

    def test_empty_host_rejected(self) -> None:
        """Test that a URL without host is rejected."""
        with pytest.raises(InvalidUrlInput) as exc_info:
            validate_url("https:///path-only")

        assert exc_info.value.reason == "host is empty"

    def test_javascript_scheme_rejected(self) -> None:
        """Test that non-http schemes are rejected."""
        with pytest.raises(InvalidUrlInput):
            validate_url("javascript:alert(1)")


class TestHelpers:
    """Test suite for is_http_url() and strip_tracking()."""

    def test_is_http_url(self) -> None:
        assert is_http_url("http://example.com")
        assert is_http_url("https://example.com")
        assert not is_http_url("mailto:someone@example.com")
        assert not is_http_url("file:///etc/passwd")

    def test_strip_tracking_keeps_port(self) -> None:
        assert strip_tracking("http://Example.com:8080/x?utm_source=a") == "http://example.com:8080/x"
