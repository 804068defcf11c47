"""Test fixtures for Raindrop MCP server tests."""

from collections.abc import AsyncGenerator
from typing import Any

import pytest
import respx
from fastmcp import Client
from fastmcp.client.transports import FastMCPTransport

from core.config import Settings
from raindrop_mcp.server import RaindropTools, create_server
from raindrop_mcp.token_store import TokenStore

API_BASE = "https://api.raindrop.io/rest/v1"


class _LowLevelServerWrapper:
    """
    Wraps a low-level MCP Server so FastMCPTransport can use it.

    FastMCPTransport expects an object with:
    - `._mcp_server`: the low-level MCP Server (for .run() and .create_initialization_options())
    - `.name`: used by FastMCPTransport.__repr__
    """

    def __init__(self, mcp_server: Any) -> None:
        self._mcp_server = mcp_server

    @property
    def name(self) -> str:
        return self._mcp_server.name


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def settings() -> Settings:
    """Settings with a static token and default Raindrop endpoints."""
    return Settings(_env_file=None, RAINDROP_TOKEN="test-token")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def token_store(clock: FakeClock) -> TokenStore:
    return TokenStore(clock=clock)


@pytest.fixture
def mock_api() -> respx.MockRouter:
    """Context manager for mocking Raindrop API responses."""
    with respx.mock(base_url=API_BASE, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def tools(settings: Settings, token_store: TokenStore) -> AsyncGenerator[RaindropTools]:
    """Tool dispatcher with its own HTTP client, closed after the test."""
    raindrop_tools = RaindropTools(token_store, settings)
    yield raindrop_tools
    await raindrop_tools.aclose()


@pytest.fixture
async def mcp_client(tools: RaindropTools) -> AsyncGenerator[Client]:
    """Create a fastmcp Client connected to the Raindrop MCP server in-memory."""
    transport = FastMCPTransport(_LowLevelServerWrapper(create_server(tools)))
    async with Client(transport=transport) as client:
        yield client


@pytest.fixture
def sample_bookmark() -> dict[str, Any]:
    """Sample raindrop (bookmark) as returned by the API."""
    return {
        "_id": 12345,
        "title": "Example",
        "link": "https://example.com",
        "tags": ["test", "python"],
        "collection": {"$id": 42},
        "created": "2024-03-21T00:00:00.000Z",
        "lastUpdate": "2024-03-22T10:30:00.000Z",
    }


@pytest.fixture
def sample_search_response(sample_bookmark: dict[str, Any]) -> dict[str, Any]:
    """Search response with one bookmark on the page out of 30."""
    return {"result": True, "items": [sample_bookmark], "count": 30}


@pytest.fixture
def sample_collection() -> dict[str, Any]:
    """Fully populated collection."""
    return {
        "_id": 123,
        "title": "Reading",
        "description": "Articles to read",
        "count": 12,
        "view": "grid",
        "sort": 1,
        "public": True,
        "parent": {"$id": 7},
        "created": "2024-03-21T00:00:00Z",
        "lastUpdate": "2024-03-25T08:00:00Z",
        "access": {"level": 4, "draggable": True},
    }


@pytest.fixture
def sample_highlight() -> dict[str, Any]:
    """Highlight attached to a bookmark."""
    return {
        "_id": "62388e9e48b63606f41e44a6",
        "text": "The quick brown fox",
        "note": "Classic pangram",
        "color": "yellow",
        "tags": ["quotes"],
        "created": "2024-03-21T00:00:00Z",
        "lastUpdate": "2024-03-21T00:00:00Z",
        "raindrop": {"$id": 12345, "title": "Example", "link": "https://example.com"},
    }


@pytest.fixture
def sample_tags() -> dict[str, Any]:
    """Tags response."""
    return {
        "result": True,
        "items": [
            {"_id": "python", "count": 10},
            {"_id": "javascript", "count": 5},
        ],
    }
