from __future__ import annotations

import json
from collections.abc import Iterator

import pytest
from starlette.testclient import TestClient

import tools.mcp_server
from core.config import Settings
from core.inspiration import QUOTES
from tests.conftest import (
    INITIALIZE_BODY,
    INITIALIZED_NOTIFICATION,
    FakeEngine,
    failing_handler,
    mock_api_client,
)
from transport.app import create_app

API_KEY = "test-server-key"

HEADERS = {
    "accept": "application/json, text/event-stream",
    "content-type": "application/json",
    "x-api-key": API_KEY,
}


@pytest.fixture
def settings() -> Settings:
    return Settings(server_api_key=API_KEY, json_response=True, session_idle_timeout=0)


@pytest.fixture
def client(settings: Settings) -> Iterator[TestClient]:
    with TestClient(create_app(settings)) as client:
        yield client


def _initialize(client: TestClient) -> str:
    response = client.post("/mcp", json=INITIALIZE_BODY, headers=HEADERS)
    assert response.status_code == 200
    session_id = response.headers["mcp-session-id"]

    notified = client.post(
        "/mcp", json=INITIALIZED_NOTIFICATION, headers={**HEADERS, "mcp-session-id": session_id}
    )
    assert notified.status_code == 202
    return session_id


def _call(client: TestClient, session_id: str, method: str, params: dict | None = None, id: int = 2):
    body = {"jsonrpc": "2.0", "id": id, "method": method}
    if params is not None:
        body["params"] = params
    return client.post("/mcp", json=body, headers={**HEADERS, "mcp-session-id": session_id})


# ----------------------------------------------------------------------------
# Session lifecycle over HTTP
# ----------------------------------------------------------------------------
def test_initialize_creates_session(client: TestClient) -> None:
    response = client.post("/mcp", json=INITIALIZE_BODY, headers=HEADERS)

    assert response.status_code == 200
    session_id = response.headers.get("mcp-session-id")
    assert session_id
    assert client.app.state.router.session_ids() == [session_id]

    payload = response.json()
    assert payload["id"] == 1
    assert payload["result"]["serverInfo"]["name"] == "ixfi-crypto-tools"


def test_follow_up_request_reaches_same_session(client: TestClient) -> None:
    session_id = _initialize(client)
    engine = client.app.state.router.get(session_id).engine

    response = _call(client, session_id, "tools/list")

    assert response.status_code == 200
    names = {tool["name"] for tool in response.json()["result"]["tools"]}
    assert names == {"get_global_market", "get_crypto_news", "get_crypto_quotes", "get_random_quote"}
    assert len(client.app.state.router) == 1
    assert client.app.state.router.get(session_id).engine is engine


def test_unknown_session_is_rejected_with_invalid_session(client: TestClient) -> None:
    response = _call(client, "not-a-real-id", "tools/list")

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32600
    assert len(client.app.state.router) == 0


def test_unknown_session_with_initialize_body_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/mcp", json=INITIALIZE_BODY, headers={**HEADERS, "mcp-session-id": "stale-id"}
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32600
    assert len(client.app.state.router) == 0


def test_request_without_session_or_handshake_is_rejected(client: TestClient) -> None:
    response = client.post(
        "/mcp", json={"jsonrpc": "2.0", "id": 1, "method": "tools/list"}, headers=HEADERS
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32600


def test_malformed_json_is_rejected(client: TestClient) -> None:
    response = client.post("/mcp", content=b"{not json", headers=HEADERS)

    assert response.status_code == 400
    assert response.json()["error"]["code"] == -32600


def test_get_with_unknown_session_is_not_found(client: TestClient) -> None:
    response = client.get("/mcp", headers={**HEADERS, "mcp-session-id": "not-a-real-id"})

    assert response.status_code == 404


def test_get_session_id_may_come_from_query(client: TestClient) -> None:
    response = client.get("/mcp", params={"mcp-session-id": "not-a-real-id"}, headers=HEADERS)

    assert response.status_code == 404


def test_get_without_session_is_bad_request(client: TestClient) -> None:
    response = client.get("/mcp", headers=HEADERS)

    assert response.status_code == 400


def test_delete_ends_session(client: TestClient) -> None:
    session_id = _initialize(client)

    response = client.delete("/mcp", headers={**HEADERS, "mcp-session-id": session_id})

    assert response.status_code == 200
    assert session_id not in client.app.state.router
    assert _call(client, session_id, "tools/list").status_code == 400


def test_failed_upstream_is_a_successful_tool_result(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(tools.mcp_server, "api_client", mock_api_client(failing_handler))
    session_id = _initialize(client)

    response = _call(
        client, session_id, "tools/call", {"name": "get_global_market", "arguments": {"view": "summary"}}
    )

    assert response.status_code == 200
    result = response.json()["result"]
    assert not result.get("isError")
    assert result["content"][0]["text"] == "❌ Failed to fetch market data"


def test_refused_handshake_leaves_no_session(client: TestClient) -> None:
    for _ in range(3):
        response = client.post(
            "/mcp", json=INITIALIZE_BODY, headers={**HEADERS, "accept": "text/html"}
        )
        assert response.status_code == 406

    assert len(client.app.state.router) == 0


def test_tool_call_over_sse_stream() -> None:
    settings = Settings(server_api_key=API_KEY, session_idle_timeout=0)
    with TestClient(create_app(settings)) as client:
        session_id = _initialize(client)

        response = _call(client, session_id, "tools/call", {"name": "get_random_quote", "arguments": {}})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/event-stream")
    events = [
        json.loads(line[len("data:"):])
        for line in response.text.splitlines()
        if line.startswith("data:")
    ]
    reply = next(event for event in events if event.get("id") == 2)
    assert reply["result"]["content"][0]["text"] in QUOTES


def test_shutdown_closes_sessions(settings: Settings) -> None:
    app = create_app(settings)
    with TestClient(app) as client:
        _initialize(client)
        assert len(app.state.router) == 1

    assert len(app.state.router) == 0


# ----------------------------------------------------------------------------
# Engine failures
# ----------------------------------------------------------------------------
def test_engine_error_becomes_internal_error(settings: Settings) -> None:
    def factory(session_id: str) -> FakeEngine:
        engine = FakeEngine(session_id)

        async def explode(scope) -> None:
            raise RuntimeError("engine exploded")

        engine.on_handle = explode
        return engine

    with TestClient(create_app(settings, engine_factory=factory)) as client:
        response = client.post("/mcp", json=INITIALIZE_BODY, headers=HEADERS)
        assert len(client.app.state.router) == 0

    assert response.status_code == 500
    assert response.json()["error"]["code"] == -32603


# ----------------------------------------------------------------------------
# Health and authentication
# ----------------------------------------------------------------------------
def test_health_needs_no_key(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "transport": "streamable-http"}


def test_missing_api_key_is_unauthorized(client: TestClient) -> None:
    headers = {key: value for key, value in HEADERS.items() if key != "x-api-key"}

    response = client.post("/mcp", json=INITIALIZE_BODY, headers=headers)

    assert response.status_code == 401
    assert response.json()["error"]["code"] == -32001
    assert len(client.app.state.router) == 0


def test_wrong_api_key_is_unauthorized(client: TestClient) -> None:
    response = client.post(
        "/mcp", json=INITIALIZE_BODY, headers={**HEADERS, "x-api-key": "wrong"}
    )

    assert response.status_code == 401


def test_bearer_token_is_accepted(client: TestClient) -> None:
    headers = {key: value for key, value in HEADERS.items() if key != "x-api-key"}
    headers["authorization"] = f"Bearer {API_KEY}"

    response = client.post("/mcp", json=INITIALIZE_BODY, headers=headers)

    assert response.status_code == 200


def test_missing_configured_key_generates_one() -> None:
    app = create_app(Settings(server_api_key="", json_response=True, session_idle_timeout=0))

    assert app.state.api_key
    with TestClient(app) as client:
        response = client.post(
            "/mcp", json=INITIALIZE_BODY, headers={**HEADERS, "x-api-key": app.state.api_key}
        )
    assert response.status_code == 200


def test_cors_exposes_session_header(client: TestClient) -> None:
    response = client.options(
        "/mcp",
        headers={
            "origin": "https://client.example",
            "access-control-request-method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
