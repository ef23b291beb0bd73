"""
Application configuration models and helpers.

Centralizes settings management so both the FastAPI app and the interactive
console share a consistent configuration surface.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from converty_bridge.core.errors import ConfigError

_ENV_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    populate_by_name=True,
)


class ConvertySettings(BaseSettings):
    """Configuration required for talking to the Converty partner platform."""

    model_config = _ENV_CONFIG

    client_id: str = Field(..., validation_alias="CONVERTY_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="CONVERTY_CLIENT_SECRET")
    redirect_uri: str = Field(
        "https://convertyapi.serveo.net/api/v1/callback",
        validation_alias="CONVERTY_REDIRECT_URI",
    )
    auth_url: str = Field(
        "https://partner.converty.shop/oauth2/authorize",
        validation_alias="CONVERTY_AUTH_URL",
    )
    token_url: str = Field(
        "https://partner.converty.shop/oauth2/token",
        validation_alias="CONVERTY_TOKEN_URL",
    )
    api_base_url: str = Field(
        "https://api.converty.shop/api/v1",
        validation_alias="CONVERTY_API_BASE_URL",
    )
    scope: str = Field(
        "read-products create-orders update-orders read-orders",
        validation_alias="CONVERTY_SCOPES",
    )
    store_id: Optional[str] = Field(
        None,
        validation_alias="CONVERTY_STORE_ID",
        description="Store identifier sent with order queries when set.",
    )
    refresh_token_ttl_seconds: Optional[int] = Field(
        None,
        gt=0,
        validation_alias="CONVERTY_REFRESH_TOKEN_TTL",
        description=(
            "Refresh-token lifetime used when the token response does not "
            "report one. Left open when unset, so only the token endpoint decides."
        ),
    )

    @field_validator("scope")
    @classmethod
    def _normalize_scope(cls, value: str) -> str:
        """Support providing scopes as a comma or space separated string."""
        return " ".join(part for part in value.replace(",", " ").split() if part)

    @field_validator("client_id", "client_secret")
    @classmethod
    def _require_credentials(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be empty")
        return value


class OAuthSettings(BaseSettings):
    """OAuth flow configuration."""

    model_config = _ENV_CONFIG

    state_ttl_seconds: int = Field(900, validation_alias="OAUTH_STATE_TTL")
    http_timeout_seconds: float = Field(10.0, validation_alias="HTTP_TIMEOUT_SECONDS")


class DatabaseSettings(BaseSettings):
    """Location of the SQLite database holding tokens and records."""

    model_config = _ENV_CONFIG

    path: str = Field("data/converty_bridge.db", validation_alias="DATABASE_PATH")


class AppSettings(BaseSettings):
    """Root settings object for the bridge."""

    model_config = _ENV_CONFIG

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    default_user_id: str = Field("user1", validation_alias="DEFAULT_USER_ID")
    host: str = Field("0.0.0.0", validation_alias="APP_HOST")
    port: int = Field(9001, validation_alias="APP_PORT")
    converty: ConvertySettings = Field(default_factory=ConvertySettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)


def load_settings() -> AppSettings:
    """Build settings from the environment, failing with ``ConfigError``."""
    try:
        return AppSettings()  # type: ignore[call-arg]
    except ValidationError as exc:
        missing = ", ".join(
            str(error["loc"][-1]) for error in exc.errors() if error.get("loc")
        )
        raise ConfigError(
            f"Invalid or missing configuration: {missing or exc}"
        ) from exc


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return load_settings()


__all__ = [
    "AppSettings",
    "ConvertySettings",
    "DatabaseSettings",
    "OAuthSettings",
    "get_settings",
    "load_settings",
]
