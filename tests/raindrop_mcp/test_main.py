"""Tests for the Starlette application serving MCP over HTTP."""

from typing import Any

import pytest
from httpx import Response
from starlette.testclient import TestClient

from core.config import Settings
from raindrop_mcp.main import create_app
from raindrop_mcp.token_store import TokenStore

MCP_HEADERS = {
    "Accept": "application/json, text/event-stream",
    "Content-Type": "application/json",
}


def _rpc(method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": 1, "method": method, "params": params or {}}


@pytest.fixture
def client(settings: Settings, token_store: TokenStore):
    with TestClient(create_app(settings, token_store)) as test_client:
        yield test_client


def test__health(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test__mcp__lists_tools(client: TestClient) -> None:
    response = client.post("/mcp", json=_rpc("tools/list"), headers=MCP_HEADERS)

    assert response.status_code == 200
    names = [tool["name"] for tool in response.json()["result"]["tools"]]
    assert len(names) == 16
    assert names[0] == "create-bookmark"


def test__mcp__trailing_slash(client: TestClient) -> None:
    response = client.post("/mcp/", json=_rpc("tools/list"), headers=MCP_HEADERS)

    assert response.status_code == 200


def test__mcp__bearer_header_overrides_configured_token(
    client: TestClient, mock_api,
) -> None:
    route = mock_api.get("/collections").mock(
        return_value=Response(200, json={"items": []}),
    )

    response = client.post(
        "/mcp",
        json=_rpc("tools/call", {"name": "list-collections", "arguments": {}}),
        headers={**MCP_HEADERS, "Authorization": "Bearer from-header"},
    )

    result = response.json()["result"]
    assert result["isError"] is False
    assert result["content"][0]["text"] == "No collections found."
    assert route.calls.last.request.headers["Authorization"] == "Bearer from-header"


def test__mcp__falls_back_to_configured_token(client: TestClient, mock_api) -> None:
    route = mock_api.get("/tags").mock(return_value=Response(200, json={"items": []}))

    client.post(
        "/mcp",
        json=_rpc("tools/call", {"name": "list-tags", "arguments": {}}),
        headers=MCP_HEADERS,
    )

    assert route.calls.last.request.headers["Authorization"] == "Bearer test-token"
