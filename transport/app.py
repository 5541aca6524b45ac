# =============================================================================
# transport/app.py  —  HTTP Surface of the MCP Server
# =============================================================================
#
# ROUTES:
#   POST/GET/DELETE /mcp  → McpEndpoint → SessionRouter → session engine
#   GET /health           → liveness probe, no auth
#
# WHAT create_app() DOES:
#   Wires the router, the API-key interceptor and CORS into one Starlette
#   application whose lifespan keeps the router running.
#
# ERROR RESPONSES:
#   Unknown or missing session → 400 JSON-RPC -32600 (GET: 400 / 404 text)
#   Anything unexpected        → 500 JSON-RPC -32603, if nothing was sent yet
# =============================================================================

from __future__ import annotations

import contextlib
import json
import logging
import secrets
from collections.abc import AsyncIterator
from functools import partial
from typing import Any

from fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send

from core.config import Settings, load_settings
from transport.auth import ApiKeyMiddleware
from transport.engine import McpEngine
from transport.session_router import (
    MCP_SESSION_ID_HEADER,
    EngineFactory,
    InboundMessage,
    InvalidSessionError,
    SessionRouter,
)

logger = logging.getLogger(__name__)

INVALID_SESSION_BODY = {
    "jsonrpc": "2.0",
    "error": {"code": -32600, "message": "Invalid session"},
    "id": None,
}

INTERNAL_ERROR_BODY = {
    "jsonrpc": "2.0",
    "error": {"code": -32603, "message": "Internal server error"},
    "id": None,
}

HEALTH_BODY = {"status": "healthy", "transport": "streamable-http"}


def _parse_json(raw: bytes) -> Any:
    if not raw:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return None


def _replay_body(body: bytes, receive: Receive) -> Receive:
    """Hand an already-read body to the next reader, then defer to ``receive``."""
    replayed = False

    async def replay() -> Message:
        nonlocal replayed
        if not replayed:
            replayed = True
            return {"type": "http.request", "body": body, "more_body": False}
        return await receive()

    return replay


def _with_session_header(scope: Scope, session_id: str) -> Scope:
    headers = [
        (name, value)
        for name, value in scope["headers"]
        if name.lower() != MCP_SESSION_ID_HEADER.encode()
    ]
    headers.append((MCP_SESSION_ID_HEADER.encode(), session_id.encode()))
    return {**scope, "headers": headers}


class McpEndpoint:
    """ASGI app behind ``/mcp``: builds the inbound message and routes it."""

    def __init__(self, router: SessionRouter):
        self.router = router

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        method = request.method
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)

        if method == "GET" and session_id is None:
            # Stream clients may pass the id as a query parameter instead.
            session_id = request.query_params.get(MCP_SESSION_ID_HEADER)
            if session_id is not None:
                scope = _with_session_header(scope, session_id)

        body = None
        if method == "POST":
            raw = await request.body()
            body = _parse_json(raw)
            receive = _replay_body(raw, receive)

        message = InboundMessage(session_id=session_id, body=body, method=method)

        response_started = False

        async def tracking_send(event: Message) -> None:
            nonlocal response_started
            if event["type"] == "http.response.start":
                response_started = True
            await send(event)

        try:
            await self.router.route(message, scope, receive, tracking_send)
        except InvalidSessionError:
            await self.rejection(message)(scope, receive, send)
        except Exception:
            logger.exception("Error handling %s /mcp for session %s", method, session_id)
            if not response_started:
                response = JSONResponse(INTERNAL_ERROR_BODY, status_code=500)
                await response(scope, receive, send)

    @staticmethod
    def rejection(message: InboundMessage) -> Response:
        if message.method == "GET":
            if message.session_id is None:
                return PlainTextResponse(
                    "Bad Request: No valid session ID provided", status_code=400
                )
            return PlainTextResponse("Session not found", status_code=404)
        return JSONResponse(INVALID_SESSION_BODY, status_code=400)


async def health(request: Request) -> JSONResponse:
    return JSONResponse(HEALTH_BODY)


def resolve_api_key(settings: Settings) -> str:
    """The configured server key, or a fresh random one for this process."""
    if settings.server_api_key:
        return settings.server_api_key
    api_key = secrets.token_urlsafe(32)
    logger.warning(
        "MCP_SERVER_API_KEY is not set; generated a key for this process: %s", api_key
    )
    return api_key


def create_app(
    settings: Settings | None = None,
    *,
    server: FastMCP | None = None,
    engine_factory: EngineFactory | None = None,
) -> Starlette:
    """Build the Starlette application.

    Args:
        settings: Runtime options.  Defaults to ``load_settings()``.
        server: FastMCP server to expose.  Defaults to the crypto tool server.
        engine_factory: Overrides how per-session engines are built.

    The router and the effective API key are kept on ``app.state``.
    """
    settings = settings or load_settings()

    if engine_factory is None:
        if server is None:
            from tools.mcp_server import mcp as server
        engine_factory = partial(McpEngine, server, json_response=settings.json_response)

    router = SessionRouter(
        engine_factory,
        idle_timeout=settings.session_idle_timeout,
        sweep_interval=settings.session_sweep_interval,
    )
    api_key = resolve_api_key(settings)

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        async with router.run():
            yield

    app = Starlette(
        routes=[
            Route("/mcp", endpoint=McpEndpoint(router), methods=["GET", "POST", "DELETE"]),
            Route("/health", endpoint=health, methods=["GET"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
                allow_headers=["*"],
                expose_headers=[MCP_SESSION_ID_HEADER, "mcp-protocol-version"],
            ),
            Middleware(ApiKeyMiddleware, api_key=api_key),
        ],
        lifespan=lifespan,
    )
    app.state.router = router
    app.state.api_key = api_key
    return app
