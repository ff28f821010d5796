"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the operator scripts and
the services share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

import os

from pydantic import AnyHttpUrl, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from gateway.core.errors import MISSING_ENV, ConfigurationError


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class ProviderSettings(BaseSettings):
    """Credentials and endpoints for the upstream storefront provider."""

    model_config = SettingsConfigDict(populate_by_name=True)

    api_key: str = Field(..., validation_alias="SHOPIFY_API_KEY")
    api_secret: str = Field(..., validation_alias="SHOPIFY_API_SECRET")
    api_version: str = Field("2024-01", validation_alias="SHOPIFY_API_VERSION")
    app_handle: Optional[str] = Field(
        None,
        validation_alias="SHOPIFY_APP_HANDLE",
        description="Admin app handle used for post-install redirects.",
    )
    provider_domain: str = Field(
        "myshopify.com",
        validation_alias="SHOPIFY_PROVIDER_DOMAIN",
        description="Suffix every merchant domain must carry.",
    )
    scopes: Annotated[tuple[str, ...], NoDecode] = Field(
        ("read_products", "read_orders"),
        validation_alias="OAUTH_SCOPES",
    )

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(
        cls, value: str | tuple[str, ...] | list[str]
    ) -> tuple[str, ...]:
        """Support providing scopes as a comma-separated string."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(value)
        return tuple(scope.strip() for scope in value.split(",") if scope.strip())

    @property
    def admin_app_slug(self) -> str:
        return self.app_handle or self.api_key

    @property
    def app_listing_url(self) -> str:
        return f"https://apps.shopify.com/{self.admin_app_slug}"


class OAuthSettings(BaseSettings):
    """OAuth flow and issued credential lifetimes."""

    model_config = SettingsConfigDict(populate_by_name=True)

    state_ttl_seconds: int = Field(600, validation_alias="OAUTH_STATE_TTL")
    client_key_ttl_days: int = Field(90, validation_alias="CLIENT_KEY_TTL_DAYS")
    upstream_timeout_seconds: float = Field(
        10.0,
        validation_alias="UPSTREAM_TIMEOUT_SECONDS",
        description="Upper bound for every outbound call to the provider.",
    )

    @property
    def client_key_ttl_seconds(self) -> int:
        return self.client_key_ttl_days * 86400


class StorageSettings(BaseSettings):
    """Location of the durable key-value store."""

    model_config = SettingsConfigDict(populate_by_name=True)

    db_path: str = Field("data/gateway.db", validation_alias="GATEWAY_DB_PATH")


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    model_config = SettingsConfigDict(populate_by_name=True)

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )
    strict_host_validation: bool = Field(
        True,
        validation_alias="STRICT_HOST_VALIDATION",
        description="Deny embedded access when the host parameter does not match.",
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    app_url: Optional[AnyHttpUrl] = Field(
        None,
        validation_alias="APP_URL",
        description="Public base URL; falls back to the request origin when unset.",
    )
    provider: ProviderSettings = Field(default_factory=ProviderSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)


def missing_settings(exc: ValidationError) -> list[str]:
    """Return the environment variable names reported missing by ``exc``."""
    return [
        str(error["loc"][-1])
        for error in exc.errors()
        if error.get("type") == "missing" and error.get("loc")
    ]


def load_settings() -> AppSettings:
    """Build settings, reporting missing variables as ``ConfigurationError``."""
    try:
        return AppSettings()  # type: ignore[call-arg]
    except ValidationError as exc:
        missing = missing_settings(exc)
        if missing:
            raise ConfigurationError(f"{MISSING_ENV}: {', '.join(missing)}") from exc
        raise ConfigurationError(f"Invalid configuration: {exc.error_count()} error(s)") from exc


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return load_settings()


__all__ = [
    "AppSettings",
    "OAuthSettings",
    "ProviderSettings",
    "SecuritySettings",
    "StorageSettings",
    "get_settings",
    "load_settings",
    "missing_settings",
]
