"""
Tests for the Raindrop MCP server through the MCP protocol.

Tests go through the actual MCP protocol using fastmcp.Client connected
to the server in-memory via FastMCPTransport. API responses are mocked
with respx.
"""

import json
from importlib.metadata import version
from typing import Any

import httpx
from fastmcp import Client
from httpx import Response

from raindrop_mcp.catalog import INSTRUCTIONS
from raindrop_mcp.server import RaindropTools, create_server

EXPECTED_TOOLS = [
    "create-bookmark",
    "search-bookmarks",
    "update-bookmark",
    "delete-bookmark",
    "list-collections",
    "create-collection",
    "update-collection",
    "delete-collection",
    "get-collection",
    "create-highlight",
    "list-highlights",
    "update-highlight",
    "delete-highlight",
    "list-tags",
    "merge-tags",
    "delete-tag",
]


# --- Server configuration tests ---


async def test__server__has_instructions(tools: RaindropTools) -> None:
    """Test that server has instructions configured."""
    server = create_server(tools)

    assert server.name == "raindrop-mcp"
    assert server.instructions == INSTRUCTIONS
    assert "Raindrop" in server.instructions


def test__mcp__installed_major_version_is_supported() -> None:
    """Test that the low-level Server API this package registers against is present."""
    assert version("mcp").split(".")[0] == "1"


# --- list_tools tests ---


async def test__list_tools__returns_catalog_in_order(mcp_client: Client) -> None:
    tools = await mcp_client.list_tools()

    assert [tool.name for tool in tools] == EXPECTED_TOOLS
    assert all(tool.description for tool in tools)


async def test__list_tools__create_bookmark_schema(mcp_client: Client) -> None:
    tools = {tool.name: tool for tool in await mcp_client.list_tools()}
    schema = tools["create-bookmark"].inputSchema

    assert schema["type"] == "object"
    assert schema["required"] == ["url"]
    assert set(schema["properties"]) == {"url", "title", "tags", "collection"}


async def test__list_tools__camel_case_argument_names(mcp_client: Client) -> None:
    tools = {tool.name: tool for tool in await mcp_client.list_tools()}

    assert tools["get-collection"].inputSchema["required"] == ["collectionId"]
    assert tools["create-highlight"].inputSchema["required"] == ["raindropId", "text"]
    assert set(tools["merge-tags"].inputSchema["required"]) == {"tags", "newName"}


async def test__list_tools__annotations(mcp_client: Client) -> None:
    tools = {tool.name: tool for tool in await mcp_client.list_tools()}

    assert tools["search-bookmarks"].annotations.readOnlyHint is True
    assert tools["delete-tag"].annotations.destructiveHint is True
    assert tools["create-bookmark"].annotations.readOnlyHint is False


# --- call_tool tests ---


async def test__call_tool__create_bookmark(mock_api, mcp_client: Client) -> None:
    route = mock_api.post("/raindrop").mock(
        return_value=Response(200, json={"item": {"_id": 123, "link": "https://example.com"}}),
    )

    result = await mcp_client.call_tool(
        "create-bookmark",
        {"url": "https://example.com", "title": "Example", "tags": ["test"]},
    )

    assert result.is_error is False
    assert result.content[0].text == "Bookmark created successfully: https://example.com (ID: 123)"
    assert route.calls.last.request.headers["Authorization"] == "Bearer test-token"
    assert json.loads(route.calls.last.request.content) == {
        "link": "https://example.com",
        "title": "Example",
        "tags": ["test"],
    }


async def test__call_tool__search_bookmarks(
    mock_api, mcp_client: Client, sample_search_response: dict[str, Any],
) -> None:
    mock_api.get("/raindrops/0").mock(return_value=Response(200, json=sample_search_response))

    result = await mcp_client.call_tool("search-bookmarks", {"query": "example"})

    text = result.content[0].text
    assert text.startswith("Found 30 total bookmarks (showing 1 on page 1):")
    assert "Created: 2024-03-21 00:00:00 UTC" in text


async def test__call_tool__invalid_arguments(mock_api, mcp_client: Client) -> None:
    """Test that per-field errors reach the client and nothing is sent."""
    result = await mcp_client.call_tool(
        "search-bookmarks",
        {"query": "x", "perpage": 100, "sort": "random"},
        raise_on_error=False,
    )

    assert result.is_error is True
    assert result.structured_content["error"] == "invalid_arguments"
    fields = {e["field"] for e in result.structured_content["errors"]}
    assert fields == {"perpage", "sort"}
    assert not mock_api.calls


async def test__call_tool__missing_required_argument(mock_api, mcp_client: Client) -> None:
    result = await mcp_client.call_tool("delete-bookmark", {}, raise_on_error=False)

    assert result.is_error is True
    assert result.structured_content["errors"][0]["field"] == "id"
    assert not mock_api.calls


async def test__call_tool__unknown_tool(mcp_client: Client) -> None:
    result = await mcp_client.call_tool("unknown_tool", {}, raise_on_error=False)

    assert result.is_error is True
    assert "Unknown tool: unknown_tool" in result.content[0].text


async def test__call_tool__remote_not_found(mock_api, mcp_client: Client) -> None:
    mock_api.get("/collection/999").mock(
        return_value=Response(404, json={"result": False, "errorMessage": "Not found"}),
    )

    result = await mcp_client.call_tool(
        "get-collection", {"collectionId": 999}, raise_on_error=False,
    )

    assert result.is_error is True
    assert result.content[0].text == "Raindrop API error: Not Found"
    assert result.structured_content["status"] == 404


async def test__call_tool__unauthorized(mock_api, mcp_client: Client) -> None:
    mock_api.get("/collections").mock(
        return_value=Response(401, json={"result": False, "error": "unauthorized"}),
    )

    result = await mcp_client.call_tool("list-collections", {}, raise_on_error=False)

    assert result.is_error is True
    assert result.structured_content["error"] == "auth"
    assert result.structured_content["payload"] == {"result": False, "error": "unauthorized"}


async def test__call_tool__api_unavailable(mock_api, mcp_client: Client) -> None:
    mock_api.get("/tags").mock(side_effect=httpx.ConnectError("Connection refused"))

    result = await mcp_client.call_tool("list-tags", {}, raise_on_error=False)

    assert result.is_error is True
    assert result.content[0].text.startswith("Raindrop API unavailable")
