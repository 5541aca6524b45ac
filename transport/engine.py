# =============================================================================
# transport/engine.py  —  Per-Session Protocol Engines
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   An engine is the object a Session exclusively owns: it speaks MCP for
#   one client over streamable HTTP.
#
#   - Engine     → the small protocol the session router relies on
#   - McpEngine  → the real implementation, built on the MCP SDK's
#                  StreamableHTTPServerTransport and a FastMCP server
# =============================================================================

from __future__ import annotations

import logging
from typing import Protocol

import anyio
from anyio.abc import TaskGroup, TaskStatus
from fastmcp import FastMCP
from mcp.server.streamable_http import StreamableHTTPServerTransport
from starlette.types import Receive, Scope, Send

logger = logging.getLogger(__name__)


class Engine(Protocol):
    """What the session router needs from a protocol engine."""

    session_id: str

    async def connect(self, task_group: TaskGroup) -> None:
        """Bind the engine to the router and make it ready to serve."""

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Serve one HTTP exchange (a single response or a stream)."""

    async def close(self) -> None:
        """Tear the engine down.  Must be safe to call more than once."""

    @property
    def closed(self) -> bool:
        """True once the engine can no longer serve requests."""


class McpEngine:
    """One MCP server loop bound to one streamable HTTP transport.

    The session id is fixed at construction and handed to the transport as
    its only id; it is never renegotiated.

    Args:
        server: The FastMCP server whose tools this session exposes.
        session_id: The id the router allocated for this session.
        json_response: Reply with plain JSON bodies instead of SSE streams.
    """

    def __init__(self, server: FastMCP, session_id: str, json_response: bool = False):
        self.session_id = session_id
        self._server = server._mcp_server
        self._transport = StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=json_response,
        )
        self._stopped = anyio.Event()

    @property
    def closed(self) -> bool:
        return self._transport.is_terminated or self._stopped.is_set()

    async def connect(self, task_group: TaskGroup) -> None:
        # Returns once the transport streams are open; the server loop keeps
        # running in the router's task group.
        await task_group.start(self._serve)

    async def _serve(self, *, task_status: TaskStatus[None] = anyio.TASK_STATUS_IGNORED) -> None:
        async with self._transport.connect() as (read_stream, write_stream):
            task_status.started()
            try:
                await self._server.run(
                    read_stream,
                    write_stream,
                    self._server.create_initialization_options(),
                    stateless=False,
                )
            except Exception:
                logger.exception("Session %s crashed", self.session_id)
            finally:
                self._stopped.set()

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self._transport.handle_request(scope, receive, send)

    async def close(self) -> None:
        if not self._transport.is_terminated:
            await self._transport.terminate()
