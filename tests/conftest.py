"""Shared fixtures for all tests."""

import pytest

from core.config import get_settings

_ENV_VARS = (
    "RAINDROP_TOKEN",
    "RAINDROP_CLIENT_ID",
    "RAINDROP_CLIENT_SECRET",
    "RAINDROP_REDIRECT_URI",
    "RAINDROP_API_URL",
    "RAINDROP_OAUTH_URL",
    "RAINDROP_API_TIMEOUT",
    "RAINDROP_MCP_TRANSPORT",
    "RAINDROP_MCP_HOST",
    "RAINDROP_MCP_PORT",
    "RAINDROP_MCP_LOG_LEVEL",
    "PORT",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch):
    """Keep the developer's shell environment out of settings under test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
