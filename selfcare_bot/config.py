"""Application configuration using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from selfcare_bot.constants import (
    FACEBOOK_API_TIMEOUT_SECONDS,
    FACEBOOK_GRAPH_API_VERSION,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings are frozen: the core receives one read-only instance and never
    mutates it between requests.
    """

    model_config = SettingsConfigDict(
        # Load .env first, then .env.local (for local/test overrides)
        # Later files override earlier ones, so .env.local takes precedence
        env_file=[".env", ".env.local"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
    )

    # Messenger Configuration
    messenger_app_secret: str = Field(
        ..., description="App secret used to verify webhook signatures"
    )
    messenger_validation_token: str = Field(
        ..., description="Webhook subscription verify token"
    )
    messenger_page_access_token: str = Field(
        ..., description="Page access token for the Send API"
    )
    server_url: str = Field(
        ...,
        description="Public base URL of this app (assets and account linking)",
    )
    allow_unsigned_webhooks: bool = Field(
        default=False,
        description="Accept webhook POSTs without a signature header (local only)",
    )
    graph_api_version: str = Field(
        default=FACEBOOK_GRAPH_API_VERSION,
        description="Graph API version used for Send API calls",
    )
    facebook_api_timeout_seconds: float = Field(
        default=FACEBOOK_API_TIMEOUT_SECONDS,
        description="Timeout for Facebook Graph API calls (seconds)",
    )

    # Environment
    env: Literal["local", "railway", "prod"] = Field(
        default="local", description="Current environment"
    )
    log_level: str = Field(default="INFO", description="Python logging level")

    # Sentry Configuration
    sentry_dsn: str | None = Field(
        default=None, description="Sentry DSN for error tracking (optional)"
    )
    sentry_traces_sample_rate: float = Field(
        default=1.0, description="Sentry traces sample rate (0.0 to 1.0)"
    )

    # Logfire Configuration
    logfire_token: str | None = Field(
        default=None, description="Pydantic Logfire token for cloud logging"
    )

    @property
    def public_base_url(self) -> str:
        """Server URL without a trailing slash."""
        return self.server_url.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
