"""Base configuration using Pydantic Settings.

All service-specific settings should inherit from ``BaseServiceSettings``.
Values are loaded from environment variables and .env files.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseServiceSettings(BaseSettings):
    """Common settings shared by every status service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ── General ───────────────────────────────
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"
    service_name: str = "purchase"

    # ── Listener ──────────────────────────────
    host: str = "0.0.0.0"
    service_port: int = Field(
        default=3000,
        ge=0,
        le=65535,
        validation_alias=AliasChoices("PORT", "SERVICE_PORT"),
    )
    graceful_shutdown_seconds: int = 10

    # ── Request handling ──────────────────────
    request_timeout_seconds: float = 30.0
    max_body_bytes: int = 1_048_576
    cors_origins: list[str] = ["*"]
    security_headers_enabled: bool = True

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def json_logs(self) -> bool:
        return self.is_production
