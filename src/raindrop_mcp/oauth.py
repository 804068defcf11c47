"""
OAuth authorization-code flow against Raindrop.io.

Routes (mounted under /auth/raindrop by main.py):
- GET  /login          redirect to the provider with a one-shot CSRF state
- GET  /callback       validate state, exchange the code, store tokens
- POST /refresh-token  exchange the stored refresh token for a new set
- POST /logout         forget the stored tokens
- GET  /status         whether a valid access token is held
- GET  /collections    the account's collections, fetched with the stored token

Handlers read the token store, settings, pending states and tool
dispatcher from ``request.app.state``. Token values are never returned
to the browser.
"""

import logging
import secrets
import threading
import time
from collections.abc import Callable
from typing import Any
from urllib.parse import urlencode

import httpx
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, RedirectResponse, Response
from starlette.routing import Route

from core.config import Settings

from .api_client import RaindropClient
from .auth import LOGIN_PATH
from .errors import ApiUnavailableError, RemoteError
from .server import RaindropTools
from .token_store import TokenSet, TokenStore

logger = logging.getLogger(__name__)

# Seconds a state issued by /login stays redeemable
STATE_TTL_SECONDS = 600


class PendingStates:
    """Server-side record of issued OAuth states; each can be redeemed once."""

    def __init__(
        self,
        ttl: float = STATE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._issued: dict[str, float] = {}

    def issue(self) -> str:
        """Generate and remember a new state value."""
        state = secrets.token_urlsafe(32)
        now = self._clock()
        with self._lock:
            self._issued = {s: t for s, t in self._issued.items() if now - t < self._ttl}
            self._issued[state] = now
        return state

    def consume(self, state: str | None) -> bool:
        """Redeem a state; False if it was never issued, already used or expired."""
        if not state:
            return False
        with self._lock:
            issued_at = self._issued.pop(state, None)
        return issued_at is not None and self._clock() - issued_at < self._ttl


def _settings(request: Request) -> Settings:
    return request.app.state.settings


def _store(request: Request) -> TokenStore:
    return request.app.state.token_store


def _states(request: Request) -> PendingStates:
    return request.app.state.oauth_states


def _tools(request: Request) -> RaindropTools:
    return request.app.state.tools


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


async def _request_tokens(settings: Settings, payload: dict[str, str]) -> httpx.Response:
    """POST a grant to the provider's token endpoint."""
    async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
        return await client.post(
            settings.token_url,
            json=payload,
            headers={"Content-Type": "application/json"},
        )


async def login(request: Request) -> Response:
    """Redirect the user to Raindrop's authorization page."""
    settings = _settings(request)
    if not settings.client_id or not settings.redirect_uri:
        logger.error("RAINDROP_CLIENT_ID or RAINDROP_REDIRECT_URI is not set")
        return PlainTextResponse("OAuth is not configured on this server.", status_code=500)

    params = urlencode({
        "client_id": settings.client_id,
        "redirect_uri": settings.redirect_uri,
        "response_type": "code",
        "state": _states(request).issue(),
    })
    return RedirectResponse(f"{settings.authorize_url}?{params}")


async def callback(request: Request) -> Response:  # noqa: PLR0911
    """Handle the provider's redirect: validate state and exchange the code."""
    settings = _settings(request)
    query = request.query_params

    if not _states(request).consume(query.get("state")):
        logger.warning("Rejected OAuth callback with missing or unknown state")
        return PlainTextResponse(
            "Invalid or missing OAuth state. Possible CSRF attempt.", status_code=403,
        )
    if query.get("error"):
        logger.warning("Raindrop returned an OAuth error: %s", query["error"])
        return PlainTextResponse(f"Raindrop error: {query['error']}", status_code=400)
    if not query.get("code"):
        return PlainTextResponse("Missing authorization code.", status_code=400)
    if not settings.oauth_configured:
        logger.error("OAuth client settings are incomplete; cannot exchange code")
        return PlainTextResponse(
            "OAuth is not configured on this server.", status_code=500,
        )

    try:
        response = await _request_tokens(settings, {
            "client_id": settings.client_id,
            "client_secret": settings.client_secret,
            "grant_type": "authorization_code",
            "code": query["code"],
            "redirect_uri": settings.redirect_uri,
        })
    except httpx.RequestError as e:
        logger.error("Token exchange request failed: %s", e, exc_info=True)
        return PlainTextResponse("Token exchange failed.", status_code=500)

    if response.is_error:
        logger.warning("Token exchange rejected with status %s", response.status_code)
        return JSONResponse(
            {
                "message": "Failed to exchange authorization code for a token.",
                "error": _error_body(response),
            },
            status_code=response.status_code,
        )

    _store(request).store(TokenSet.from_response(response.json()))
    logger.info("OAuth authorization completed")
    return JSONResponse({"message": "Authentication successful. Tokens stored in memory."})


async def refresh_token(request: Request) -> Response:
    """Exchange the stored refresh token for a new access token."""
    settings = _settings(request)
    store = _store(request)

    current = store.refresh_token()
    if not current:
        return JSONResponse(
            {
                "message": "No refresh token available. Please authenticate again.",
                "redirectTo": LOGIN_PATH,
            },
            status_code=401,
        )
    if not settings.client_id or not settings.client_secret:
        logger.error("RAINDROP_CLIENT_ID or RAINDROP_CLIENT_SECRET is not set")
        return PlainTextResponse("OAuth is not configured on this server.", status_code=500)

    try:
        response = await _request_tokens(settings, {
            "grant_type": "refresh_token",
            "refresh_token": current,
            "client_id": settings.client_id,
            "client_secret": settings.client_secret,
        })
    except httpx.RequestError as e:
        logger.error("Token refresh request failed: %s", e, exc_info=True)
        return JSONResponse(
            {"message": "Token refresh failed.", "error": str(e)}, status_code=500,
        )

    if response.status_code in (400, 401):
        # Invalid or revoked grant: the stored tokens are useless now
        store.clear()
        logger.warning("Refresh token rejected with status %s", response.status_code)
        return JSONResponse(
            {
                "message": "Could not refresh the token. The refresh token may be "
                           "invalid or revoked. Please authenticate again.",
                "error": _error_body(response),
                "redirectTo": LOGIN_PATH,
            },
            status_code=response.status_code,
        )
    if response.is_error:
        logger.warning("Token refresh failed with status %s", response.status_code)
        return JSONResponse(
            {"message": "Token refresh failed.", "error": _error_body(response)},
            status_code=500,
        )

    tokens = TokenSet.from_response(response.json())
    if not tokens.refresh_token:
        # Raindrop may omit a new refresh token; keep using the old one
        tokens = TokenSet(
            access_token=tokens.access_token,
            refresh_token=current,
            expires_in=tokens.expires_in,
            token_type=tokens.token_type,
        )
    store.store(tokens)
    logger.info("OAuth access token refreshed")
    return JSONResponse({"message": "Token refreshed successfully."})


async def logout(request: Request) -> JSONResponse:
    """Forget the stored tokens."""
    _store(request).clear()
    return JSONResponse({"message": "Logged out."})


async def status(request: Request) -> JSONResponse:
    """Report token state without revealing token values."""
    store = _store(request)
    tokens = store.read()
    return JSONResponse({
        "authenticated": store.access_token_if_valid() is not None,
        "has_refresh_token": store.refresh_token() is not None,
        "expires_at": tokens.expires_at if tokens else None,
    })


async def collections(request: Request) -> JSONResponse:
    """Fetch the account's collections with the OAuth access token."""
    token = _store(request).access_token_if_valid()
    if not token:
        return JSONResponse(
            {
                "message": "Authentication required. No valid access token is stored.",
                "redirectTo": LOGIN_PATH,
            },
            status_code=401,
        )

    api = RaindropClient(_tools(request).get_http_client(), token)
    try:
        result = await api.list_collections()
    except RemoteError as e:
        body: dict[str, Any] = {"message": str(e), "error": e.payload}
        if e.status_code == 401:
            body["redirectTo"] = LOGIN_PATH
        # Malformed bodies arrive with a 2xx status
        status_code = e.status_code if e.status_code >= 400 else 502
        return JSONResponse(body, status_code=status_code)
    except ApiUnavailableError as e:
        return JSONResponse({"message": str(e)}, status_code=500)
    return JSONResponse(result)


routes = [
    Route("/login", login, methods=["GET"]),
    Route("/callback", callback, methods=["GET"]),
    Route("/refresh-token", refresh_token, methods=["POST"]),
    Route("/logout", logout, methods=["POST"]),
    Route("/status", status, methods=["GET"]),
    Route("/collections", collections, methods=["GET"]),
]
