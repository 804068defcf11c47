"""
MCP Server for Raindrop.io.

Each tool call is validated against its argument model, forwarded as a
single REST request to the Raindrop API and rendered back as text.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from mcp import types
from mcp.server.lowlevel import Server

from core.config import Settings, get_settings

from . import formatting
from .api_client import RaindropClient
from .auth import get_bearer_token
from .catalog import INSTRUCTIONS, get_tool, list_tool_definitions
from .errors import (
    ApiUnavailableError,
    AuthenticationError,
    InvalidArgumentsError,
    RaindropError,
    RemoteError,
    UnknownOperationError,
)
from .schemas import (
    CollectionIdArgs,
    CreateBookmarkArgs,
    CreateCollectionArgs,
    CreateHighlightArgs,
    DeleteBookmarkArgs,
    DeleteHighlightArgs,
    DeleteTagArgs,
    ListCollectionsArgs,
    ListHighlightsArgs,
    ListTagsArgs,
    MergeTagsArgs,
    SearchBookmarksArgs,
    ToolArguments,
    UpdateBookmarkArgs,
    UpdateCollectionArgs,
    UpdateHighlightArgs,
    validate_arguments,
)
from .token_store import TokenStore

logger = logging.getLogger(__name__)

ToolHandler = Callable[[RaindropClient, Any], Awaitable[str]]


def _ref(value: int | None) -> dict[str, int] | None:
    """Raindrop references other objects as ``{"$id": n}``."""
    return {"$id": value} if value is not None else None


def _payload(**fields: Any) -> dict[str, Any]:
    """Build a request body, omitting fields that were not given."""
    return {key: value for key, value in fields.items() if value is not None}


def _item(result: dict[str, Any]) -> dict[str, Any]:
    """The ``item`` object of a single-item response, or {} when absent."""
    item = result.get("item")
    return item if isinstance(item, dict) else {}


# --- Bookmarks ---


async def _handle_create_bookmark(api: RaindropClient, args: CreateBookmarkArgs) -> str:
    result = await api.create_bookmark(_payload(
        link=args.url,
        title=args.title,
        tags=args.tags,
        collection=_ref(args.collection),
    ))
    item = _item(result)
    message = f"Bookmark created successfully: {item.get('link') or args.url}"
    if item.get("_id") is not None:
        message += f" (ID: {item['_id']})"
    return message


async def _handle_search_bookmarks(api: RaindropClient, args: SearchBookmarksArgs) -> str:
    params = {
        "search": args.query,
        "tags": args.tags,
        "page": args.page,
        "perpage": args.perpage,
        "sort": args.sort,
        "word": args.word,
    }
    collection_id = args.collection if args.collection is not None else 0
    result = await api.search_bookmarks(collection_id, params)
    return formatting.format_list(
        formatting.BOOKMARKS,
        result.get("items"),
        total=result.get("count"),
        page=args.page or 0,
    )


async def _handle_update_bookmark(api: RaindropClient, args: UpdateBookmarkArgs) -> str:
    result = await api.update_bookmark(args.id, _payload(
        link=args.url,
        title=args.title,
        tags=args.tags,
        collection=_ref(args.collection),
    ))
    item = _item(result)
    link = item.get("link") or args.url
    if link:
        return f"Bookmark updated successfully: {link} (ID: {args.id})"
    return f"Bookmark updated successfully (ID: {args.id})"


async def _handle_delete_bookmark(api: RaindropClient, args: DeleteBookmarkArgs) -> str:
    result = await api.delete_bookmark(args.id)
    return formatting.format_result(
        result,
        f"Bookmark deleted successfully (ID: {args.id})",
        f"Failed to delete bookmark (ID: {args.id})",
    )


# --- Collections ---


async def _handle_list_collections(api: RaindropClient, args: ListCollectionsArgs) -> str:  # noqa: ARG001
    result = await api.list_collections()
    return formatting.format_list(formatting.COLLECTIONS, result.get("items"))


def _collection_payload(args: CreateCollectionArgs | UpdateCollectionArgs) -> dict[str, Any]:
    return _payload(
        title=args.title,
        description=args.description,
        parent=_ref(args.parent),
        view=args.view,
        sort=args.sort,
        public=args.public,
    )


def _collection_saved(verb: str, result: dict[str, Any]) -> str:
    item = _item(result)
    return f'Collection {verb} successfully: "{item.get("title")}" (ID: {item.get("_id")})'


async def _handle_create_collection(api: RaindropClient, args: CreateCollectionArgs) -> str:
    result = await api.create_collection(_collection_payload(args))
    return _collection_saved("created", result)


async def _handle_update_collection(api: RaindropClient, args: UpdateCollectionArgs) -> str:
    result = await api.update_collection(args.collection_id, _collection_payload(args))
    return _collection_saved("updated", result)


async def _handle_delete_collection(api: RaindropClient, args: CollectionIdArgs) -> str:
    result = await api.delete_collection(args.collection_id)
    return formatting.format_result(
        result,
        f"Collection deleted successfully (ID: {args.collection_id})",
        f"Failed to delete collection (ID: {args.collection_id})",
    )


async def _handle_get_collection(api: RaindropClient, args: CollectionIdArgs) -> str:
    result = await api.get_collection(args.collection_id)
    item = _item(result)
    if not item:
        return f"Collection not found (ID: {args.collection_id})"
    return formatting.format_item(item, formatting.COLLECTION_DETAIL_FIELDS)


# --- Highlights ---


async def _handle_create_highlight(api: RaindropClient, args: CreateHighlightArgs) -> str:
    result = await api.create_highlight(_payload(
        raindrop=_ref(args.raindrop_id),
        text=args.text,
        note=args.note,
        color=args.color,
        tags=args.tags,
    ))
    item = _item(result)
    return (
        f"Highlight created successfully (ID: {item.get('_id')}) "
        f"on bookmark {args.raindrop_id}"
    )


async def _handle_list_highlights(api: RaindropClient, args: ListHighlightsArgs) -> str:
    params = {"raindrop": args.raindrop_id, "page": args.page, "perpage": args.perpage}
    result = await api.list_highlights(params)
    return formatting.format_list(
        formatting.HIGHLIGHTS,
        result.get("items"),
        total=result.get("count"),
        page=args.page or 0,
    )


async def _handle_update_highlight(api: RaindropClient, args: UpdateHighlightArgs) -> str:
    await api.update_highlight(args.highlight_id, _payload(
        text=args.text,
        note=args.note,
        color=args.color,
        tags=args.tags,
    ))
    return f"Highlight updated successfully (ID: {args.highlight_id})"


async def _handle_delete_highlight(api: RaindropClient, args: DeleteHighlightArgs) -> str:
    result = await api.delete_highlight(args.highlight_id)
    return formatting.format_result(
        result,
        f"Highlight deleted successfully (ID: {args.highlight_id})",
        f"Failed to delete highlight (ID: {args.highlight_id})",
    )


# --- Tags ---


async def _handle_list_tags(api: RaindropClient, args: ListTagsArgs) -> str:
    result = await api.list_tags(args.collection_id)
    return formatting.format_list(formatting.TAGS, result.get("items"))


async def _handle_merge_tags(api: RaindropClient, args: MergeTagsArgs) -> str:
    result = await api.merge_tags(args.tags, args.new_name)
    return formatting.format_result(
        result,
        f'Tags merged successfully into "{args.new_name}": {", ".join(args.tags)}',
        f'Failed to merge tags into "{args.new_name}"',
    )


async def _handle_delete_tag(api: RaindropClient, args: DeleteTagArgs) -> str:
    result = await api.delete_tag(args.tag)
    return formatting.format_result(
        result,
        f'Tag "{args.tag}" deleted successfully',
        f'Failed to delete tag "{args.tag}"',
    )


HANDLERS: dict[str, ToolHandler] = {
    "create-bookmark": _handle_create_bookmark,
    "search-bookmarks": _handle_search_bookmarks,
    "update-bookmark": _handle_update_bookmark,
    "delete-bookmark": _handle_delete_bookmark,
    "list-collections": _handle_list_collections,
    "create-collection": _handle_create_collection,
    "update-collection": _handle_update_collection,
    "delete-collection": _handle_delete_collection,
    "get-collection": _handle_get_collection,
    "create-highlight": _handle_create_highlight,
    "list-highlights": _handle_list_highlights,
    "update-highlight": _handle_update_highlight,
    "delete-highlight": _handle_delete_highlight,
    "list-tags": _handle_list_tags,
    "merge-tags": _handle_merge_tags,
    "delete-tag": _handle_delete_tag,
}


def _make_error_result(error: RaindropError) -> types.CallToolResult:
    """Create an isError CallToolResult that keeps the error's structure."""
    error_data: dict[str, Any] = {"message": str(error)}
    if isinstance(error, InvalidArgumentsError):
        error_data["error"] = "invalid_arguments"
        error_data["errors"] = error.to_dict()
    elif isinstance(error, UnknownOperationError):
        error_data["error"] = "unknown_tool"
    elif isinstance(error, RemoteError):
        error_data["error"] = error.category
        error_data["status"] = error.status_code
        if error.payload is not None:
            error_data["payload"] = error.payload
    elif isinstance(error, ApiUnavailableError):
        error_data["error"] = "unavailable"
    elif isinstance(error, AuthenticationError):
        error_data["error"] = "auth"
    else:
        error_data["error"] = "internal"
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=str(error))],
        structuredContent=error_data,
        isError=True,
    )


class RaindropTools:
    """
    Tool dispatch bound to one token store and one HTTP client.

    The HTTP client is created lazily and reused across calls; ``aclose()``
    releases it.
    """

    def __init__(
        self,
        token_store: TokenStore,
        settings: Settings | None = None,
    ) -> None:
        self.token_store = token_store
        self.settings = settings or get_settings()
        self._http_client: httpx.AsyncClient | None = None

    def get_http_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client for API requests."""
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                base_url=self.settings.api_base_url,
                timeout=self.settings.request_timeout,
            )
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()
        self._http_client = None

    def list_tools(self) -> list[types.Tool]:
        """List available tools."""
        return list_tool_definitions()

    async def run_tool(self, name: str, arguments: dict[str, Any] | None) -> str:
        """
        Validate, execute and format one tool call.

        Raises:
            UnknownOperationError: If the tool is not in the catalog.
            InvalidArgumentsError: If the arguments fail validation.
            AuthenticationError: If no access token is available.
            RemoteError: If the Raindrop API returns a non-2xx response.
            ApiUnavailableError: If the Raindrop API cannot be reached.
        """
        tool = get_tool(name)
        args: ToolArguments = validate_arguments(tool.arguments, arguments)
        token = get_bearer_token(self.token_store, self.settings)
        api = RaindropClient(self.get_http_client(), token)
        logger.debug("Calling tool %s", name)
        return await HANDLERS[name](api, args)

    async def call_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None,
    ) -> list[types.TextContent] | types.CallToolResult:
        """Handle tool calls, turning known failures into error results."""
        try:
            text = await self.run_tool(name, arguments)
        except RaindropError as e:
            logger.info("Tool %s failed: %s", name, e)
            return _make_error_result(e)
        return [types.TextContent(type="text", text=text)]


def create_server(tools: RaindropTools) -> Server:
    """Create the MCP server and register its handlers."""
    server = Server("raindrop-mcp", instructions=INSTRUCTIONS)

    @server.list_tools()
    async def handle_list_tools() -> list[types.Tool]:
        return tools.list_tools()

    # Arguments are validated by the pydantic models so failures can be
    # reported per field.
    @server.call_tool(validate_input=False)
    async def handle_call_tool(
        name: str,
        arguments: dict[str, Any] | None,
    ) -> list[types.TextContent] | types.CallToolResult:
        return await tools.call_tool(name, arguments)

    return server
