"""
In-memory holder for the current OAuth token set.

One slot, one lock. Tokens are lost on restart; nothing is written to
disk. The store is owned by the server and passed to the OAuth routes and
the token resolver rather than living in module-level state.
"""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenSet:
    """Tokens returned by the provider's token endpoint."""

    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None  # seconds, relative to obtained_at
    token_type: str | None = None
    obtained_at: int | None = None  # unix seconds, stamped by TokenStore.store()

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "TokenSet":
        """Build from a token endpoint JSON body."""
        expires_in = data.get("expires_in")
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token"),
            expires_in=int(expires_in) if expires_in is not None else None,
            token_type=data.get("token_type"),
        )

    @property
    def expires_at(self) -> int | None:
        """Unix time at which the access token stops being valid."""
        if self.expires_in is None or self.obtained_at is None:
            return None
        return self.obtained_at + self.expires_in

    def is_valid(self, now: float) -> bool:
        """A token without an expiry never expires."""
        expires_at = self.expires_at
        return expires_at is None or expires_at > now


class TokenStore:
    """Thread-safe single-slot token store with an injectable clock."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._tokens: TokenSet | None = None

    def store(self, tokens: TokenSet) -> TokenSet:
        """Overwrite the slot, stamping obtained_at with the current time."""
        stamped = replace(tokens, obtained_at=int(self._clock()))
        with self._lock:
            self._tokens = stamped
        logger.info(
            "Stored OAuth tokens in memory",
            extra={"expires_in": stamped.expires_in, "has_refresh": bool(stamped.refresh_token)},
        )
        return stamped

    def read(self) -> TokenSet | None:
        """Return the stored set, expired or not."""
        with self._lock:
            return self._tokens

    def access_token_if_valid(self) -> str | None:
        """Return the access token only while it has not expired."""
        with self._lock:
            tokens = self._tokens
            if tokens is None:
                return None
            if not tokens.is_valid(self._clock()):
                logger.info("Stored access token has expired")
                return None
            return tokens.access_token

    def refresh_token(self) -> str | None:
        """Return the refresh token regardless of access-token expiry."""
        with self._lock:
            return self._tokens.refresh_token if self._tokens else None

    def clear(self) -> None:
        """Empty the slot."""
        with self._lock:
            self._tokens = None
        logger.info("Cleared OAuth tokens from memory")
