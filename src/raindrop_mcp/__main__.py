"""Entry point for running the Raindrop MCP server."""

import asyncio
import logging
import sys

import uvicorn
from mcp.server.stdio import stdio_server

from core.config import ConfigurationError, Settings, get_settings

from .server import RaindropTools, create_server
from .token_store import TokenStore

logger = logging.getLogger("raindrop_mcp")


async def run_stdio(settings: Settings) -> None:
    """Serve MCP over stdin/stdout until the client disconnects."""
    tools = RaindropTools(TokenStore(), settings)
    server = create_server(tools)
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Raindrop MCP server running on stdio")
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    finally:
        await tools.aclose()


def main() -> None:
    """Validate configuration, then serve on the configured transport."""
    settings = get_settings()
    # stdout carries JSON-RPC frames on stdio; logs go to stderr
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings.require_credentials()
    except ConfigurationError as e:
        logger.error("%s", e)
        sys.exit(1)

    if settings.transport == "http":
        uvicorn.run(
            "raindrop_mcp.main:create_app",
            factory=True,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
        )
    else:
        asyncio.run(run_stdio(settings))


if __name__ == "__main__":
    main()
