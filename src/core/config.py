"""Application configuration using pydantic-settings."""
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when a required credential or setting is missing."""

    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Static personal access token (test token from the Raindrop app console)
    raindrop_token: str = Field(default="", validation_alias="RAINDROP_TOKEN")

    # OAuth client - only needed when tokens come from the authorization-code flow
    client_id: str = Field(default="", validation_alias="RAINDROP_CLIENT_ID")
    client_secret: str = Field(default="", validation_alias="RAINDROP_CLIENT_SECRET")
    redirect_uri: str = Field(default="", validation_alias="RAINDROP_REDIRECT_URI")

    # Upstream endpoints
    api_base_url: str = Field(
        default="https://api.raindrop.io/rest/v1",
        validation_alias="RAINDROP_API_URL",
    )
    oauth_base_url: str = Field(
        default="https://raindrop.io/oauth",
        validation_alias="RAINDROP_OAUTH_URL",
    )
    request_timeout: float = Field(
        default=30.0, gt=0, validation_alias="RAINDROP_API_TIMEOUT",
    )

    # Serving
    transport: Literal["stdio", "http"] = Field(
        default="stdio", validation_alias="RAINDROP_MCP_TRANSPORT",
    )
    host: str = Field(default="127.0.0.1", validation_alias="RAINDROP_MCP_HOST")
    # RAINDROP_MCP_PORT for local dev, PORT for PaaS platforms
    port: int = Field(
        default=8003, validation_alias=AliasChoices("RAINDROP_MCP_PORT", "PORT"),
    )
    log_level: str = Field(default="INFO", validation_alias="RAINDROP_MCP_LOG_LEVEL")

    @field_validator("api_base_url", "oauth_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs so paths can be appended with a leading slash."""
        return v.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Log level names are upper case in the logging module."""
        return v.upper()

    @property
    def oauth_configured(self) -> bool:
        """True when every value the authorization-code flow needs is set."""
        return bool(self.client_id and self.client_secret and self.redirect_uri)

    @property
    def authorize_url(self) -> str:
        """Get the provider's authorization endpoint."""
        return f"{self.oauth_base_url}/authorize"

    @property
    def token_url(self) -> str:
        """Get the provider's token exchange endpoint."""
        return f"{self.oauth_base_url}/access_token"

    def require_credentials(self) -> None:
        """
        Fail fast when the server has no way to authenticate upstream.

        Either a static RAINDROP_TOKEN or a complete OAuth client
        configuration (client id, secret and redirect URI) must be present.

        Raises:
            ConfigurationError: If neither is configured.
        """
        if self.raindrop_token or self.oauth_configured:
            return
        raise ConfigurationError(
            "RAINDROP_TOKEN is not set. Provide a token or configure "
            "RAINDROP_CLIENT_ID, RAINDROP_CLIENT_SECRET and RAINDROP_REDIRECT_URI.",
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
