# =============================================================================
# transport/auth.py  —  API-Key Interceptor
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Sits in front of the MCP endpoint and is always installed.  A request
#   must carry the server key as either:
#     x-api-key: <key>
#     Authorization: Bearer <key>
#   /health and CORS preflight requests pass through untouched.
#
# ON FAILURE:
#   401 with a JSON-RPC error envelope (-32001) and WWW-Authenticate: Bearer.
# =============================================================================

from __future__ import annotations

import hmac
import logging

from starlette.datastructures import Headers
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)

UNAUTHORIZED_BODY = {
    "jsonrpc": "2.0",
    "error": {"code": -32001, "message": "Unauthorized"},
    "id": None,
}


def extract_api_key(headers: Headers) -> str | None:
    """Return the key a client presented, if any."""
    key = headers.get("x-api-key")
    if key:
        return key.strip()
    scheme, _, token = headers.get("authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return None


class ApiKeyMiddleware:
    """Pure ASGI middleware so streamed responses are never buffered."""

    def __init__(self, app: ASGIApp, api_key: str, exempt_paths: tuple[str, ...] = ("/health",)):
        if not api_key:
            raise ValueError("ApiKeyMiddleware requires a non-empty api_key")
        self.app = app
        self.api_key = api_key
        self.exempt_paths = exempt_paths

    def is_authorized(self, headers: Headers) -> bool:
        supplied = extract_api_key(headers)
        if supplied is None:
            return False
        return hmac.compare_digest(supplied.encode(), self.api_key.encode())

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] != "http"
            or scope["path"] in self.exempt_paths
            or scope["method"] == "OPTIONS"
        ):
            await self.app(scope, receive, send)
            return

        if self.is_authorized(Headers(scope=scope)):
            await self.app(scope, receive, send)
            return

        client = scope.get("client")
        logger.warning(
            "Rejected unauthenticated %s %s from %s",
            scope["method"],
            scope["path"],
            client[0] if client else "unknown",
        )
        response = JSONResponse(
            UNAUTHORIZED_BODY, status_code=401, headers={"WWW-Authenticate": "Bearer"}
        )
        await response(scope, receive, send)
