"""URL normalization and SSRF guard.

``normalize`` turns free-form user input into a canonical http(s) URL;
``validate_url`` rejects URLs that point at the service's own network. The
guard is reused after every redirect and browser navigation.
"""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from readlater.services.scraper.exceptions import InvalidUrlInput

ALLOWED_SCHEMES = frozenset({"http", "https"})

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "fbclid",
        "gclid",
    }
)

BLOCKED_HOSTNAMES = frozenset({"localhost", "0.0.0.0"})

_URL_IN_TEXT = re.compile(r"https?://[^\s]+", re.IGNORECASE)
_ANY_SCHEME = re.compile(r"\b([a-z][a-z0-9+.-]*)://", re.IGNORECASE)


def is_http_url(url: str) -> bool:
    """Return True if ``url`` uses the http or https scheme."""
    try:
        return urlsplit(url).scheme.lower() in ALLOWED_SCHEMES
    except ValueError:
        return False


def validate_url(url: str) -> None:
    """Reject URLs that are not public http(s) targets.

    Raises:
        InvalidUrlInput: If the scheme is not http/https, the host is empty,
            or the host names the local machine or a private network.
    """
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
    except ValueError as e:
        raise InvalidUrlInput(f"unparsable URL: {e}", url) from e

    if parts.scheme.lower() not in ALLOWED_SCHEMES:
        raise InvalidUrlInput("protocol must be http or https", url)
    if not hostname:
        raise InvalidUrlInput("host is empty", url)

    hostname = hostname.lower().rstrip(".")
    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(".localhost"):
        raise InvalidUrlInput("local hosts are not allowed", url)

    try:
        address = ipaddress.ip_address(hostname)
    except ValueError:
        return

    if (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_reserved
    ):
        raise InvalidUrlInput("private network addresses are not allowed", url)


def strip_tracking(url: str) -> str:
    """Drop tracking parameters and the fragment, canonicalize scheme and host.

    The query string is only rebuilt when a tracking parameter was removed,
    so untouched queries keep their original encoding.
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    netloc = parts.netloc
    if parts.hostname:
        userinfo, _, hostport = netloc.rpartition("@")
        host_lower = hostport.lower()
        netloc = f"{userinfo}@{host_lower}" if userinfo else host_lower
    path = parts.path or "/"

    query = parts.query
    if query:
        pairs = parse_qsl(query, keep_blank_values=True)
        kept = [(k, v) for k, v in pairs if k.lower() not in TRACKING_PARAMS]
        if len(kept) != len(pairs):
            query = urlencode(kept)

    return urlunsplit((scheme, netloc, path, query, ""))


def normalize(raw: str) -> str:
    """Extract, validate, and canonicalize the URL contained in ``raw``.

    ``raw`` may be a bare URL or text with a URL embedded in it (for example a
    shared message). The first http(s) URL found is used.

    Raises:
        InvalidUrlInput: If no acceptable URL can be derived from ``raw``.
    """
    if raw is None or not raw.strip():
        raise InvalidUrlInput("value is empty")

    match = _URL_IN_TEXT.search(raw)
    if match is None:
        scheme = _ANY_SCHEME.search(raw)
        if scheme:
            raise InvalidUrlInput("protocol must be http or https", raw.strip())
        raise InvalidUrlInput("no URL found in input", raw.strip())

    candidate = match.group(0)
    validate_url(candidate)
    return strip_tracking(candidate)
