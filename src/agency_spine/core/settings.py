"""Application settings with Pydantic.

Two settings groups, each read from its own environment prefix and an
optional ``.env`` file:

- ``StoreSettings`` (``DB_*``) -- how to reach the relational store
- ``APISettings`` (``API_*``) -- the boundary HTTP process

Order of precedence (highest → lowest):
    1. Explicit constructor arguments (tests)
    2. Environment variables
    3. ``.env`` file
    4. Defaults below (suitable for local development)
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Store connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Backend ──────────────────────────────────────────────────────────
    backend: str = Field(default="postgresql", description="postgresql | sqlite")
    path: str = Field(default="./data/agency.db", description="sqlite database file")

    # ── Server ───────────────────────────────────────────────────────────
    host: str = Field(default="localhost", description="Store host")
    port: int = Field(default=5432, description="Store port")
    user: str = Field(default="agency", description="Login name")
    password: str = Field(default="", description="Login password")
    name: str = Field(default="Real_Estate_Agency", description="Database (resource set) name")

    # ── Transport ────────────────────────────────────────────────────────
    encrypt: bool = Field(default=False, description="Encrypt the connection")
    trust_server_certificate: bool = Field(
        default=True,
        description="Accept the server certificate without verification",
    )
    keep_alive: bool = Field(default=True, description="Enable TCP keep-alive probes")

    # ── Pool / timeouts ──────────────────────────────────────────────────
    pool_min_size: int = Field(default=1, ge=1)
    pool_max_size: int = Field(default=10, ge=1)
    connect_timeout: int = Field(default=15, ge=1, description="Seconds")
    statement_timeout_ms: int = Field(default=30_000, ge=0, description="0 disables")
    drain_timeout: float = Field(
        default=10.0,
        ge=0,
        description="Seconds close() waits for in-flight operations",
    )

    @field_validator("backend")
    @classmethod
    def _normalize_backend(cls, value: str) -> str:
        value = value.strip().lower()
        return "postgresql" if value == "postgres" else value

    @property
    def ssl_mode(self) -> str:
        """libpq ``sslmode`` derived from the encrypt / trust toggles."""
        if not self.encrypt:
            return "disable"
        return "require" if self.trust_server_certificate else "verify-full"


class APISettings(BaseSettings):
    """Settings for the boundary REST API."""

    model_config = SettingsConfigDict(
        env_prefix="API_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3001, description="Bind port")
    title: str = Field(default="Agency Spine API", description="OpenAPI title")
    version: str = Field(default="0.1.0", description="OpenAPI version string")
    debug: bool = Field(default=False, description="Expose exception text on 500s")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_store_settings() -> StoreSettings:
    """Get cached store settings instance."""
    return StoreSettings()


@lru_cache
def get_api_settings() -> APISettings:
    """Get cached API settings instance."""
    return APISettings()


__all__ = [
    "StoreSettings",
    "APISettings",
    "get_store_settings",
    "get_api_settings",
]
