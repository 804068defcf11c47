"""MCP server for the Raindrop.io bookmarks API."""

from .errors import (
    ApiUnavailableError,
    AuthenticationError,
    ConfigurationError,
    InvalidArgumentsError,
    RaindropError,
    RemoteError,
    UnknownOperationError,
)
from .server import RaindropTools, create_server
from .token_store import TokenSet, TokenStore

__all__ = [
    "ApiUnavailableError",
    "AuthenticationError",
    "ConfigurationError",
    "InvalidArgumentsError",
    "RaindropError",
    "RaindropTools",
    "RemoteError",
    "TokenSet",
    "TokenStore",
    "UnknownOperationError",
    "create_server",
]
