"""HTTP client helpers for forwarding tool calls to the Raindrop REST API."""

import logging
from typing import Any, Literal
from urllib.parse import quote

import httpx

from .errors import ApiUnavailableError, RemoteError, parse_http_error

logger = logging.getLogger(__name__)

HttpMethod = Literal["GET", "POST", "PUT", "DELETE"]


def _get_headers(token: str) -> dict[str, str]:
    """Get common headers for API requests."""
    return {
        "Authorization": f"Bearer {token}",
        "Content-Type": "application/json",
    }


def encode_params(params: dict[str, Any] | None) -> dict[str, str] | None:
    """
    Flatten query parameters the way the Raindrop API expects them.

    None values are dropped, lists are joined with commas and booleans are
    lower-cased. Percent-encoding is left to httpx.
    """
    if not params:
        return None
    encoded: dict[str, str] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded[key] = "true" if value else "false"
        elif isinstance(value, list | tuple):
            encoded[key] = ",".join(str(v) for v in value)
        else:
            encoded[key] = str(value)
    return encoded or None


async def api_request(
    client: httpx.AsyncClient,
    method: HttpMethod,
    path: str,
    token: str,
    params: dict[str, Any] | None = None,
    json: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Make one authenticated request to the API and decode the JSON body.

    A body is only sent when ``json`` is not None.

    Raises:
        RemoteError: On any non-2xx response.
        ApiUnavailableError: When the request never got a response.
    """
    kwargs: dict[str, Any] = {"headers": _get_headers(token)}
    encoded = encode_params(params)
    if encoded is not None:
        kwargs["params"] = encoded
    if json is not None:
        kwargs["json"] = json

    try:
        response = await client.request(method, path, **kwargs)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        error = parse_http_error(e)
        logger.warning(
            "Raindrop API %s %s failed: %s %s",
            method, path, error.status_code, error.status_text,
        )
        raise error from e
    except httpx.RequestError as e:
        logger.warning("Raindrop API %s %s unreachable: %s", method, path, e)
        raise ApiUnavailableError(str(e) or type(e).__name__) from e

    if not response.content:
        return {}
    return _decode_body(response, method, path)


def _decode_body(response: httpx.Response, method: str, path: str) -> dict[str, Any]:
    """
    Decode a 2xx body, which must be a JSON object.

    Raises:
        RemoteError: With the response status when the body is not JSON or
            not an object.
    """
    try:
        body = response.json()
    except ValueError:
        body = None
    else:
        if isinstance(body, dict):
            return body

    logger.warning(
        "Raindrop API %s %s returned an unexpected body (status %s)",
        method, path, response.status_code,
    )
    payload = response.text[:500] if body is None else body
    raise RemoteError(
        status_code=response.status_code,
        status_text="Unexpected response body",
        payload=payload,
        category="internal",
    )


async def api_get(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    params: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Make an authenticated GET request to the API."""
    return await api_request(client, "GET", path, token, params=params)


async def api_post(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    json: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Make an authenticated POST request to the API."""
    return await api_request(client, "POST", path, token, json=json)


async def api_put(
    client: httpx.AsyncClient,
    path: str,
    token: str,
    json: dict[str, Any],
) -> dict[str, Any]:
    """Make an authenticated PUT request to the API."""
    return await api_request(client, "PUT", path, token, json=json)


async def api_delete(
    client: httpx.AsyncClient,
    path: str,
    token: str,
) -> dict[str, Any]:
    """Make an authenticated DELETE request to the API."""
    return await api_request(client, "DELETE", path, token)


def _segment(value: str | int) -> str:
    """Encode a value for use as a single path segment."""
    return quote(str(value), safe="")


class RaindropClient:
    """One method per Raindrop REST call, bound to a token."""

    def __init__(self, client: httpx.AsyncClient, token: str) -> None:
        self.client = client
        self.token = token

    # Bookmarks

    async def create_bookmark(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await api_post(self.client, "/raindrop", self.token, payload)

    async def search_bookmarks(
        self, collection_id: int, params: dict[str, Any],
    ) -> dict[str, Any]:
        return await api_get(self.client, f"/raindrops/{collection_id}", self.token, params)

    async def update_bookmark(self, bookmark_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return await api_put(self.client, f"/raindrop/{bookmark_id}", self.token, payload)

    async def delete_bookmark(self, bookmark_id: int) -> dict[str, Any]:
        return await api_delete(self.client, f"/raindrop/{bookmark_id}", self.token)

    # Collections

    async def list_collections(self) -> dict[str, Any]:
        return await api_get(self.client, "/collections", self.token)

    async def get_collection(self, collection_id: int) -> dict[str, Any]:
        return await api_get(self.client, f"/collection/{collection_id}", self.token)

    async def create_collection(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await api_post(self.client, "/collection", self.token, payload)

    async def update_collection(
        self, collection_id: int, payload: dict[str, Any],
    ) -> dict[str, Any]:
        return await api_put(self.client, f"/collection/{collection_id}", self.token, payload)

    async def delete_collection(self, collection_id: int) -> dict[str, Any]:
        return await api_delete(self.client, f"/collection/{collection_id}", self.token)

    # Highlights

    async def list_highlights(self, params: dict[str, Any]) -> dict[str, Any]:
        return await api_get(self.client, "/highlights", self.token, params)

    async def create_highlight(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await api_post(self.client, "/highlights", self.token, payload)

    async def update_highlight(
        self, highlight_id: str, payload: dict[str, Any],
    ) -> dict[str, Any]:
        return await api_put(
            self.client, f"/highlights/{_segment(highlight_id)}", self.token, payload,
        )

    async def delete_highlight(self, highlight_id: str) -> dict[str, Any]:
        return await api_delete(self.client, f"/highlights/{_segment(highlight_id)}", self.token)

    # Tags

    async def list_tags(self, collection_id: int | None = None) -> dict[str, Any]:
        path = "/tags" if collection_id is None else f"/tags/{collection_id}"
        return await api_get(self.client, path, self.token)

    async def merge_tags(self, tags: list[str], new_name: str) -> dict[str, Any]:
        return await api_put(
            self.client, "/tags", self.token, {"tags": tags, "new_name": new_name},
        )

    async def delete_tag(self, tag: str) -> dict[str, Any]:
        return await api_delete(self.client, f"/tags/{_segment(tag)}", self.token)
