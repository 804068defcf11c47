"""
Starlette application for serving the Raindrop MCP server over HTTP.

Mounts the MCP server at /mcp with authentication middleware that extracts
Bearer tokens and makes them available to MCP handlers via contextvars,
plus the OAuth routes under /auth/raindrop that fill the token store.
"""

from contextlib import asynccontextmanager
from typing import Any

from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from core.config import Settings, get_settings

from . import oauth
from .auth import clear_current_token, parse_bearer_header, set_current_token
from .server import RaindropTools, create_server
from .token_store import TokenStore


async def health_check(request: Request) -> JSONResponse:  # noqa: ARG001
    """Health check endpoint."""
    return JSONResponse({"status": "healthy"})


class MCPRouteHandler:
    """
    ASGI wrapper that routes /mcp and /mcp/* to the MCP session manager.

    This avoids Starlette's Mount redirect behavior (307 from /mcp to /mcp/)
    by handling path normalization ourselves.
    """

    def __init__(self, session_manager: StreamableHTTPSessionManager) -> None:
        self.session_manager = session_manager

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:
        """Route MCP requests, normalizing path for the session manager."""
        path = scope.get("path", "")
        if path == "/mcp":
            scope = {**scope, "path": "/"}
        elif path.startswith("/mcp/"):
            scope = {**scope, "path": path[4:]}  # Strip "/mcp" prefix

        await self.session_manager.handle_request(scope, receive, send)


class AuthMiddleware:
    """
    ASGI middleware that extracts Bearer token and sets in context.

    The token is extracted from the Authorization header before MCP
    dispatch and cleared after the request completes.
    """

    def __init__(self, app: Any) -> None:
        self.app = app

    async def __call__(self, scope: dict, receive: Any, send: Any) -> None:  # noqa: D102
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers", []))
        token = parse_bearer_header(headers.get(b"authorization", b"").decode())
        if token:
            set_current_token(token)

        try:
            await self.app(scope, receive, send)
        finally:
            clear_current_token()


def create_app(
    settings: Settings | None = None,
    token_store: TokenStore | None = None,
) -> Starlette:
    """Build the HTTP application around one token store."""
    settings = settings or get_settings()
    token_store = token_store or TokenStore()
    tools = RaindropTools(token_store, settings)

    session_manager = StreamableHTTPSessionManager(
        app=create_server(tools),
        event_store=None,
        json_response=True,
        stateless=True,
    )

    @asynccontextmanager
    async def lifespan(app: Starlette):  # noqa: ARG001, ANN202
        async with session_manager.run():
            yield
        await tools.aclose()

    mcp_handler = MCPRouteHandler(session_manager)

    app = Starlette(
        routes=[
            Route("/health", health_check, methods=["GET"]),
            Mount("/auth/raindrop", routes=oauth.routes),
            # Handle /mcp exactly (no trailing slash)
            Route("/mcp", mcp_handler, methods=["GET", "POST", "DELETE"]),
            # Handle /mcp/* with any sub-path
            Route("/mcp/{path:path}", mcp_handler, methods=["GET", "POST", "DELETE"]),
        ],
        middleware=[Middleware(AuthMiddleware)],
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.token_store = token_store
    app.state.tools = tools
    app.state.oauth_states = oauth.PendingStates()
    return app
