# =============================================================================
# transport/session_router.py  —  Session Transport Router
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Binds every inbound MCP message to exactly one long-lived session:
#     1. A message whose mcp-session-id names a live session goes to that
#        session's engine.
#     2. A message with no session id that is an "initialize" request
#        creates a new session: fresh id, new engine, connect(), then
#        registration.  If the engine does not answer that handshake with a
#        2xx, the session is removed again.
#     3. Anything else is rejected with InvalidSessionError before any
#        engine sees it.  An unknown id is never treated as an implicit
#        re-initialize, even when the body is an "initialize" request.
#
# OWNERSHIP:
#   The session table is owned by the router alone.  Requests for the same
#   session are dispatched one at a time in arrival order; idle sessions are
#   expired by a background sweep; shutdown() closes whatever is left.
# =============================================================================

from __future__ import annotations

import contextlib
import logging
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any
from uuid import uuid4

import anyio
from anyio.abc import TaskGroup
from mcp import types
from pydantic import ValidationError
from starlette.types import Message, Receive, Scope, Send

from transport.engine import Engine

logger = logging.getLogger(__name__)

MCP_SESSION_ID_HEADER = "mcp-session-id"

EngineFactory = Callable[[str], Engine]


class InvalidSessionError(Exception):
    """No live session matches the message and it is not a handshake."""

    def __init__(self, session_id: str | None):
        self.session_id = session_id
        if session_id is None:
            super().__init__("No session id supplied and message is not an initialize request")
        else:
            super().__init__(f"Unknown session id: {session_id}")


@dataclass(frozen=True)
class InboundMessage:
    """One inbound HTTP exchange as the router sees it.

    Attributes:
        session_id: Value of the ``mcp-session-id`` header, if any.
        body: Parsed JSON body, or None for bodiless/unparseable requests.
        method: HTTP method.
    """

    session_id: str | None
    body: Any = None
    method: str = "POST"

    @property
    def is_handshake(self) -> bool:
        """True when the body is a well-formed JSON-RPC ``initialize`` request."""
        body = self.body
        if not isinstance(body, dict) or body.get("method") != "initialize":
            return False
        if body.get("jsonrpc") != "2.0" or "id" not in body:
            return False
        try:
            types.InitializeRequest.model_validate(
                {"method": body["method"], "params": body.get("params")}
            )
        except ValidationError:
            return False
        return True


@dataclass
class Session:
    """A live binding between a session id and its engine."""

    session_id: str
    engine: Engine
    created_at: float
    last_activity_at: float
    lock: anyio.Lock = field(default_factory=anyio.Lock)
    active_requests: int = 0

    def touch(self, now: float) -> None:
        self.last_activity_at = now

    def is_idle(self, now: float, idle_timeout: float) -> bool:
        return self.active_requests == 0 and now - self.last_activity_at > idle_timeout


class SessionRouter:
    """Routes inbound messages to per-session engines.

    Only one router should exist per application, and ``run()`` must be
    active while requests are routed.

    Args:
        engine_factory: Builds an engine bound to a given session id.
        idle_timeout: Seconds without activity before a session is expired.
            ``0`` or ``None`` disables expiry.
        sweep_interval: Seconds between idle sweeps.
        id_factory: Generates new session ids.  Must be unpredictable.
        clock: Monotonic time source, in seconds.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        *,
        idle_timeout: float | None = 1800.0,
        sweep_interval: float = 60.0,
        id_factory: Callable[[], str] = lambda: uuid4().hex,
        clock: Callable[[], float] = time.monotonic,
    ):
        if idle_timeout is not None and not idle_timeout >= 0:
            raise ValueError(f"idle_timeout must be >= 0, got {idle_timeout!r}")
        if not sweep_interval > 0:
            raise ValueError(f"sweep_interval must be > 0, got {sweep_interval!r}")

        self.engine_factory = engine_factory
        self.idle_timeout = idle_timeout
        self.sweep_interval = sweep_interval
        self._id_factory = id_factory
        self._clock = clock

        self._sessions: dict[str, Session] = {}
        self._task_group: TaskGroup | None = None
        self._has_started = False

    # ------------------------------------------------------------------
    # Session table introspection
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    @contextlib.asynccontextmanager
    async def run(self) -> AsyncIterator[None]:
        """Own the task group engines run in, for the life of the app.

        Can only be entered once per router.
        """
        if self._has_started:
            raise RuntimeError("SessionRouter.run() can only be called once per instance")
        self._has_started = True

        async with anyio.create_task_group() as tg:
            self._task_group = tg
            if self.idle_timeout:
                tg.start_soon(self._sweep_idle_sessions)
            logger.info("Session router started")
            try:
                yield
            finally:
                logger.info("Session router shutting down")
                with anyio.CancelScope(shield=True):
                    await self.shutdown()
                tg.cancel_scope.cancel()
                self._task_group = None

    async def shutdown(self) -> None:
        """Remove and close every session."""
        for session_id in list(self._sessions):
            await self._remove(session_id, reason="shutdown")

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------
    async def route(
        self, message: InboundMessage, scope: Scope, receive: Receive, send: Send
    ) -> Session:
        """Resolve or create the session for ``message`` and dispatch to it.

        Returns:
            The session the message was dispatched to.

        Raises:
            InvalidSessionError: No live session matches and the message is
                not a handshake.  Nothing was dispatched.
        """
        session = await self._resolve(message.session_id)

        if session is None:
            if message.session_id is not None or not message.is_handshake:
                logger.debug("Rejecting message for session %r", message.session_id)
                raise InvalidSessionError(message.session_id)
            session = await self._create_session()
            await self._dispatch_handshake(session, message, scope, receive, send)
            return session

        await self._dispatch(session, message, scope, receive, send)
        return session

    async def _resolve(self, session_id: str | None) -> Session | None:
        if session_id is None:
            return None
        session = self._sessions.get(session_id)
        if session is not None and session.engine.closed:
            # The engine stopped on its own; forget it and treat the id as unknown.
            await self._remove(session_id, reason="closed")
            return None
        return session

    async def _create_session(self) -> Session:
        if self._task_group is None:
            raise RuntimeError("Session router is not running. Use run() first.")

        session_id = self._id_factory()
        engine = self.engine_factory(session_id)
        try:
            await engine.connect(self._task_group)
        except BaseException:
            # Never registered, so nothing to undo in the table.
            with anyio.CancelScope(shield=True):
                await engine.close()
            raise

        now = self._clock()
        session = Session(
            session_id=session_id,
            engine=engine,
            created_at=now,
            last_activity_at=now,
        )
        self._sessions[session_id] = session
        logger.info("✅ MCP session: %s", session_id)
        return session

    async def _dispatch_handshake(
        self,
        session: Session,
        message: InboundMessage,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        """Dispatch the first message of a new session.

        The session is dropped again unless the engine answers with a 2xx.
        """
        status: int | None = None

        async def watch_send(event: Message) -> None:
            nonlocal status
            if event["type"] == "http.response.start":
                status = event["status"]
            await send(event)

        try:
            await self._dispatch(session, message, scope, receive, watch_send)
        except BaseException:
            with anyio.CancelScope(shield=True):
                await self._remove(session.session_id, reason="handshake failed")
            raise

        if status is None or not 200 <= status < 300:
            await self._remove(session.session_id, reason=f"handshake rejected ({status})")

    async def _dispatch(
        self,
        session: Session,
        message: InboundMessage,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        session.active_requests += 1
        session.touch(self._clock())
        try:
            if message.method == "GET":
                # Long-lived server-to-client stream; never serialized.
                await session.engine.handle(scope, receive, send)
            else:
                async with session.lock:
                    await session.engine.handle(scope, receive, send)
        finally:
            session.active_requests -= 1
            session.touch(self._clock())

        if session.engine.closed:
            await self._remove(session.session_id, reason="terminated")

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------
    async def expire_idle_sessions(self) -> list[str]:
        """Remove sessions idle past ``idle_timeout`` or whose engine closed.

        Sessions with a request in flight are never expired.

        Returns:
            The ids that were removed.
        """
        now = self._clock()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if session.engine.closed
            or (self.idle_timeout and session.is_idle(now, self.idle_timeout))
        ]
        for session_id in expired:
            await self._remove(session_id, reason="idle")
        return expired

    async def _sweep_idle_sessions(self) -> None:
        while True:
            await anyio.sleep(self.sweep_interval)
            try:
                await self.expire_idle_sessions()
            except Exception:
                logger.exception("Idle session sweep failed")

    async def _remove(self, session_id: str, reason: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return
        logger.info("Closing session %s (%s)", session_id, reason)
        try:
            await session.engine.close()
        except Exception:
            logger.exception("Error closing session %s", session_id)
