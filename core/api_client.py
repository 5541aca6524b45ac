# =============================================================================
# core/api_client.py  —  Upstream API Client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Performs the HTTP calls to the third-party crypto data services and
#   hands back parsed JSON, or None when anything at all went wrong.
#
# THE FAILURE CONTRACT:
#   request() and fetch_json() NEVER raise.  Network errors, timeouts,
#   non-2xx statuses, malformed JSON and a missing base URL all collapse to
#   None.  Callers treat None as "data unavailable" and answer with text
#   such as "No news found".  A failed upstream call is data, not a fault.
#
# WHY ASYNC?
#   The tools run on the MCP server's event loop, next to every other
#   session.  A blocking call here would stall all of them, so the client
#   uses httpx.AsyncClient.
# =============================================================================

import logging
from typing import Any, Optional

import httpx

from core.config import Settings

logger = logging.getLogger(__name__)


class ApiClient:
    """Thin async wrapper around the upstream data API."""

    def __init__(
        self,
        base_url: str = "",
        token: str = "",
        user_agent: str = "ixfi-app/1.0",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.token = token
        self.user_agent = user_agent
        self.timeout = timeout
        # Injected by tests (httpx.MockTransport); None means real network.
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "ApiClient":
        return cls(
            base_url=settings.api_base,
            token=settings.api_token,
            user_agent=settings.user_agent,
            timeout=settings.upstream_timeout,
            transport=transport,
        )

    def build_url(self, path: str) -> str:
        """Join a relative API path onto the configured base URL."""
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def auth_headers(self) -> dict[str, str]:
        # The upstream accepts the token both as a bearer and a raw header.
        return {
            "User-Agent": self.user_agent,
            "Accept": "application/json",
            "Authorization": f"Bearer {self.token}",
            "token": self.token,
        }

    async def request(
        self,
        path: str,
        method: str = "GET",
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[Any]:
        """Call the upstream data API at ``path``.

        Args:
            path: Path relative to the base URL (e.g. "v1/news-links/news-list/1").
            method: HTTP method.
            json: Optional JSON body.
            headers: Extra headers; these override the default auth headers.

        Returns:
            The decoded JSON payload, or None on any failure.
        """
        if not self.base_url:
            logger.warning("Upstream API base URL is not configured; skipping %s", path)
            return None

        merged = {**self.auth_headers(), **(headers or {})}
        return await self._send(method, self.build_url(path), json=json, headers=merged)

    async def fetch_json(
        self,
        url: str,
        method: str = "GET",
        json: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> Optional[Any]:
        """Call an absolute URL outside the data API, without its auth headers."""
        merged = {"Content-Type": "application/json", **(headers or {})}
        return await self._send(method, url, json=json, headers=merged)

    async def _send(
        self, method: str, url: str, json: Any, headers: dict[str, str]
    ) -> Optional[Any]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(method, url, json=json, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Upstream %s %s failed: %s", method, url, exc)
            return None

        if not response.is_success:
            logger.warning(
                "Upstream %s %s returned HTTP %s", method, url, response.status_code
            )
            return None

        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Upstream %s %s returned malformed JSON: %s", method, url, exc)
            return None
