"""
Error types raised by the Raindrop MCP server.

Argument validation and unknown tool names are caught before any network
access. Remote failures keep the upstream status text and, when the
service returned one, its JSON error body so callers can tell a missing
resource from an expired token.
"""

from dataclasses import dataclass
from typing import Any, Literal

import httpx
from pydantic import ValidationError

from core.config import ConfigurationError

__all__ = [
    "ApiUnavailableError",
    "AuthenticationError",
    "ConfigurationError",
    "ErrorCategory",
    "FieldError",
    "InvalidArgumentsError",
    "RaindropError",
    "RemoteError",
    "UnknownOperationError",
    "parse_http_error",
]

ErrorCategory = Literal[
    "auth",          # 401 - Invalid or expired token
    "forbidden",     # 403 - Access denied
    "not_found",     # 404 - Resource not found
    "validation",    # 400/422 - Rejected by the service
    "rate_limited",  # 429 - Too many requests
    "internal",      # 5xx or unexpected errors
]


class RaindropError(Exception):
    """Base class for errors surfaced to MCP callers."""

    pass


class AuthenticationError(RaindropError):
    """Raised when no usable access token is available."""

    pass


class UnknownOperationError(RaindropError):
    """Raised when a tool name is not in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


@dataclass(frozen=True)
class FieldError:
    """A single violated constraint on a tool argument."""

    field: str
    reason: str

    def __str__(self) -> str:
        return f"{self.field}: {self.reason}" if self.field else self.reason


class InvalidArgumentsError(RaindropError):
    """Raised when tool arguments fail schema validation."""

    def __init__(self, errors: list[FieldError]) -> None:
        self.errors = errors
        super().__init__(
            "Invalid arguments: " + ", ".join(str(error) for error in errors),
        )

    @classmethod
    def from_validation_error(cls, e: ValidationError) -> "InvalidArgumentsError":
        """Flatten a pydantic ValidationError into one FieldError per location."""
        return cls([
            FieldError(
                field=".".join(str(part) for part in error["loc"]),
                reason=error["msg"],
            )
            for error in e.errors()
        ])

    def to_dict(self) -> list[dict[str, str]]:
        """Serialize as a list of {field, reason} pairs."""
        return [{"field": error.field, "reason": error.reason} for error in self.errors]


class ApiUnavailableError(RaindropError):
    """Raised when the Raindrop API could not be reached at all."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Raindrop API unavailable: {reason}")


class RemoteError(RaindropError):
    """Raised for any non-2xx response from the Raindrop API."""

    def __init__(
        self,
        status_code: int,
        status_text: str,
        payload: Any = None,
        category: ErrorCategory = "internal",
    ) -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.payload = payload
        self.category = category
        super().__init__(f"Raindrop API error: {status_text}")

    @property
    def detail(self) -> str | None:
        """The service's own error description, if it sent one."""
        if isinstance(self.payload, dict):
            return self.payload.get("errorMessage") or self.payload.get("error")
        return None


_CATEGORIES: dict[int, ErrorCategory] = {
    400: "validation",
    401: "auth",
    403: "forbidden",
    404: "not_found",
    422: "validation",
    429: "rate_limited",
}


def parse_http_error(e: httpx.HTTPStatusError) -> RemoteError:
    """
    Convert an httpx status error into a RemoteError.

    Args:
        e: The HTTP status error raised by ``response.raise_for_status()``.

    Returns:
        RemoteError carrying the status text and the decoded JSON body
        (None when the body is empty or not JSON).
    """
    response = e.response
    status = response.status_code
    return RemoteError(
        status_code=status,
        status_text=response.reason_phrase or f"HTTP {status}",
        payload=_safe_get_payload(response),
        category=_CATEGORIES.get(status, "internal"),
    )


def _safe_get_payload(response: httpx.Response) -> Any:
    """Safely decode the error body."""
    try:
        return response.json()
    except ValueError:
        return None
