"""Configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="HMAC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Signing
    secret: SecretStr | None = Field(
        default=None,
        description="Shared HMAC secret (required)",
    )
    algorithm: Literal["sha256", "sha512", "sha1"] = Field(
        default="sha256",
        description="Hash function for the keyed digest",
    )
    max_token_age_ms: int = Field(
        default=300_000,
        description="Max age (milliseconds) for timestamp tokens and signed requests",
    )
    min_secret_length: int = Field(
        default=32,
        description="Recommended minimum secret length; shorter secrets log a warning",
    )
    timestamp_header: str = Field(
        default="x-timestamp",
        description="Header carrying the request timestamp",
    )
    signature_header: str = Field(
        default="x-signature",
        description="Header carrying the request signature",
    )

    # Auth gate
    protected_path_prefixes: tuple[str, ...] = Field(
        default=("/api/protected",),
        description="Path prefixes that require a signed request",
    )
    auth_exempt_paths: tuple[str, ...] = Field(
        default=("/health", "/metrics"),
        description="Paths exempt from HMAC auth",
    )

    # API server
    api_host: str = Field(
        default="0.0.0.0",
        description="Host for the API server",
    )
    api_port: int = Field(
        default=3000,
        description="Port for the API server",
    )

    # API client
    api_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL used by the signing API client",
    )
    http_timeout: float = Field(
        default=10.0,
        description="HTTP request timeout in seconds",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Log level",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON instead of console output",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
