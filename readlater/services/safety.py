"""URL reputation checks against Google Safe Browsing."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from readlater.services.scraper.exceptions import UnsafeUrlDetected

logger = logging.getLogger(__name__)

SAFE_BROWSING_ENDPOINT = "https://safebrowsing.googleapis.com/v4/threatMatches:find"

THREAT_TYPES = (
    "MALWARE",
    "SOCIAL_ENGINEERING",
    "UNWANTED_SOFTWARE",
    "POTENTIALLY_HARMFUL_APPLICATION",
)


class UrlSafetyProvider(Protocol):
    """Protocol for URL reputation lookups."""

    async def check_url_safety(self, url: str) -> None:
        """Return if ``url`` is considered safe.

        Raises:
            UnsafeUrlDetected: If the provider flags ``url``.
        """
        ...


class SafeBrowsingProvider:
    """Google Safe Browsing v4 lookup.

    Without an API key every URL is treated as safe. Provider errors and
    timeouts also let the URL through; only an explicit match blocks it.
    """

    def __init__(
        self,
        api_key: str | None,
        timeout_seconds: float = 5.0,
        client_id: str = "readlater-scraper",
        client_version: str = "0.1.0",
    ) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.client_id = client_id
        self.client_version = client_version

    def _payload(self, url: str) -> dict:
        return {
            "client": {"clientId": self.client_id, "clientVersion": self.client_version},
            "threatInfo": {
                "threatTypes": list(THREAT_TYPES),
                "platformTypes": ["ANY_PLATFORM"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": url}],
            },
        }

    async def check_url_safety(self, url: str) -> None:
        if not self.api_key:
            logger.debug("Safe Browsing API key not configured, skipping check")
            return

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
                response = await client.post(
                    SAFE_BROWSING_ENDPOINT,
                    params={"key": self.api_key},
                    json=self._payload(url),
                )
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Safe Browsing check failed for %s: %s", url, e)
            return

        if not isinstance(body, dict):
            logger.error("Unexpected Safe Browsing response for %s: %r", url, body)
            return

        matches = [m for m in body.get("matches") or [] if isinstance(m, dict)]
        if matches:
            threats = sorted({m.get("threatType", "UNKNOWN") for m in matches})
            logger.warning("Unsafe URL %s flagged: %s", url, ", ".join(threats))
            raise UnsafeUrlDetected(url, threats)
