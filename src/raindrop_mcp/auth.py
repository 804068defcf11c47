"""
Access token resolution for outbound Raindrop API calls.

Uses Python contextvars for request-scoped token storage when serving over
HTTP: the ASGI middleware sets the caller's Bearer token before MCP
dispatch. Otherwise the configured static token is used, then whatever
the OAuth flow left in the token store.
"""

from contextvars import ContextVar

from core.config import Settings, get_settings

from .errors import AuthenticationError
from .token_store import TokenStore

LOGIN_PATH = "/auth/raindrop/login"

# Request-scoped token storage
_current_token: ContextVar[str | None] = ContextVar("current_token", default=None)


def set_current_token(token: str) -> None:
    """
    Set the Bearer token for the current request context.

    Called by ASGI middleware before MCP dispatch.

    Args:
        token: The Bearer token (without 'Bearer ' prefix).
    """
    _current_token.set(token)


def clear_current_token() -> None:
    """
    Clear the token after request completes.

    Called by ASGI middleware in finally block.
    """
    _current_token.set(None)


def parse_bearer_header(auth_header: str) -> str | None:
    """Extract the token from an Authorization header value, if it is a Bearer one."""
    parts = auth_header.split(maxsplit=1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1].strip() or None


def get_bearer_token(store: TokenStore, settings: Settings | None = None) -> str:
    """
    Resolve the token to send to Raindrop.

    Order: request-scoped token, RAINDROP_TOKEN, then a still-valid OAuth
    access token from the store.

    Returns:
        The token string.

    Raises:
        AuthenticationError: If no usable token is available.
    """
    token = _current_token.get()
    if token:
        return token

    settings = settings or get_settings()
    if settings.raindrop_token:
        return settings.raindrop_token

    token = store.access_token_if_valid()
    if token:
        return token

    if store.refresh_token():
        raise AuthenticationError(
            "Raindrop access token expired. Refresh it via POST /auth/raindrop/refresh-token",
        )
    raise AuthenticationError(
        f"No Raindrop access token available. Authenticate via {LOGIN_PATH}",
    )
