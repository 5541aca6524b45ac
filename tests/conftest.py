"""Shared fixtures: fake engines, a manual clock and upstream mocks."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
import pytest
from anyio.abc import TaskGroup
from starlette.types import Receive, Scope, Send

from core.api_client import ApiClient

INITIALIZE_BODY: dict[str, Any] = {
    "jsonrpc": "2.0",
    "id": 1,
    "method": "initialize",
    "params": {
        "protocolVersion": "2025-03-26",
        "capabilities": {},
        "clientInfo": {"name": "test", "version": "1.0"},
    },
}

INITIALIZED_NOTIFICATION: dict[str, Any] = {
    "jsonrpc": "2.0",
    "method": "notifications/initialized",
}


class FakeEngine:
    """Engine double that records what it was asked to do."""

    def __init__(self, session_id: str, *, fail_connect: bool = False, status: int = 200):
        self.session_id = session_id
        self.fail_connect = fail_connect
        self.status = status
        self.connected = False
        self.close_calls = 0
        self.handled: list[Scope] = []
        self.on_handle: Callable[[Scope], Any] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def mark_closed(self) -> None:
        self._closed = True

    async def connect(self, task_group: TaskGroup) -> None:
        if self.fail_connect:
            raise RuntimeError("connect failed")
        self.connected = True

    async def handle(self, scope: Scope, receive: Receive, send: Send) -> None:
        self.handled.append(scope)
        if self.on_handle is not None:
            await self.on_handle(scope)
        if scope.get("method") == "DELETE":
            self._closed = True
        await send({"type": "http.response.start", "status": self.status, "headers": []})
        await send({"type": "http.response.body", "body": b"", "more_body": False})

    async def close(self) -> None:
        self.close_calls += 1
        self._closed = True


class ManualClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def noop_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


async def noop_send(message: dict[str, Any]) -> None:
    return None


@pytest.fixture
def engines() -> dict[str, FakeEngine]:
    """Every engine the factory built, by session id."""
    return {}


@pytest.fixture
def engine_factory(engines: dict[str, FakeEngine]) -> Callable[[str], FakeEngine]:
    def factory(session_id: str) -> FakeEngine:
        engine = FakeEngine(session_id)
        engines[session_id] = engine
        return engine

    return factory


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


def mock_api_client(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> ApiClient:
    """An ApiClient whose requests are answered by ``handler``."""
    kwargs.setdefault("base_url", "https://api.example.test/")
    kwargs.setdefault("token", "secret-token")
    return ApiClient(transport=httpx.MockTransport(handler), **kwargs)


def failing_handler(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)
