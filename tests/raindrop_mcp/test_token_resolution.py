"""Tests for resolving the access token used for outbound calls."""

import pytest

from core.config import Settings
from raindrop_mcp.auth import (
    clear_current_token,
    get_bearer_token,
    parse_bearer_header,
    set_current_token,
)
from raindrop_mcp.errors import AuthenticationError
from raindrop_mcp.token_store import TokenSet, TokenStore

from .conftest import FakeClock


@pytest.fixture
def oauth_settings() -> Settings:
    """Settings without a static token."""
    return Settings(
        _env_file=None,
        RAINDROP_CLIENT_ID="client",
        RAINDROP_CLIENT_SECRET="secret",
        RAINDROP_REDIRECT_URI="http://localhost/auth/raindrop/callback",
    )


@pytest.fixture(autouse=True)
def reset_request_token():
    yield
    clear_current_token()


def test__parse_bearer_header__valid() -> None:
    assert parse_bearer_header("Bearer abc") == "abc"


def test__parse_bearer_header__case_insensitive() -> None:
    assert parse_bearer_header("bearer abc") == "abc"


@pytest.mark.parametrize("header", ["", "Basic abc123", "Bearer ", "Bearer"])
def test__parse_bearer_header__invalid(header: str) -> None:
    assert parse_bearer_header(header) is None


def test__get_bearer_token__static_token(settings: Settings, token_store: TokenStore) -> None:
    token_store.store(TokenSet(access_token="oauth-token"))

    assert get_bearer_token(token_store, settings) == "test-token"


def test__get_bearer_token__request_token_wins(
    settings: Settings, token_store: TokenStore,
) -> None:
    set_current_token("from-header")

    assert get_bearer_token(token_store, settings) == "from-header"


def test__get_bearer_token__falls_back_to_store(
    oauth_settings: Settings, token_store: TokenStore,
) -> None:
    token_store.store(TokenSet(access_token="oauth-token", expires_in=3600))

    assert get_bearer_token(token_store, oauth_settings) == "oauth-token"


def test__get_bearer_token__expired_with_refresh(
    oauth_settings: Settings, token_store: TokenStore, clock: FakeClock,
) -> None:
    token_store.store(TokenSet(access_token="old", refresh_token="r", expires_in=10))
    clock.advance(11)

    with pytest.raises(AuthenticationError, match="refresh-token"):
        get_bearer_token(token_store, oauth_settings)


def test__get_bearer_token__nothing_available(
    oauth_settings: Settings, token_store: TokenStore,
) -> None:
    with pytest.raises(AuthenticationError, match="/auth/raindrop/login"):
        get_bearer_token(token_store, oauth_settings)
