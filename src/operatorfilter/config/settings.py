"""Application settings using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from operatorfilter.core.address import is_valid_address


class Settings(BaseSettings):
    """Operator filter configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore extra env vars
    )

    # Application
    app_name: str = Field(default="OperatorFilter", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Minimum log level"
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, ge=1, le=65535, description="Server port")

    # Chain
    chain_id: int = Field(default=1, ge=1, description="EVM chain id")
    eth_rpc_url: str = Field(
        default="https://ethereum-rpc.publicnode.com",
        description="EVM JSON-RPC endpoint URL",
    )
    rpc_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Timeout for a single eth_call"
    )
    opensea_registry_address: str | None = Field(
        default=None, description="Override of the OpenSea operator filter registry"
    )
    blur_registry_address: str | None = Field(
        default=None, description="Override of the Blur operator filter registry"
    )

    # Circuit Breaker
    circuit_breaker_threshold: int = Field(
        default=5, ge=1, description="Failures before circuit opens"
    )
    circuit_breaker_cooldown: int = Field(
        default=30, ge=1, description="Seconds before half-open"
    )

    # Database - Supabase
    supabase_url: str = Field(description="Supabase project URL")
    supabase_key: SecretStr = Field(description="Supabase API key")
    postgres_schema: str = Field(
        default="public", description="PostgreSQL schema holding the contracts table"
    )

    # Fast cache
    redis_url: str | None = Field(
        default=None, description="Redis URL; in-process cache when unset"
    )
    blacklist_cache_ttl_seconds: int = Field(
        default=24 * 3600, ge=1, description="Expiry of cached registry blacklists"
    )
    custom_logic_cache_ttl_seconds: int = Field(
        default=24 * 3600, ge=1, description="Expiry of cached custom-logic verdicts"
    )
    custom_logic_transient_ttl_seconds: int = Field(
        default=300,
        ge=1,
        description="Expiry of negative verdicts reached after transient RPC failures",
    )

    @field_validator("supabase_url", "eth_rpc_url")
    @classmethod
    def validate_http_url(cls, v: str) -> str:
        """Validate HTTP URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v

    @field_validator("redis_url")
    @classmethod
    def validate_redis_url(cls, v: str | None) -> str | None:
        """Validate Redis URL format."""
        if v is not None and not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("Redis URL must start with redis://, rediss:// or unix://")
        return v

    @field_validator("opensea_registry_address", "blur_registry_address")
    @classmethod
    def validate_registry_address(cls, v: str | None) -> str | None:
        """Validate and lowercase registry address overrides."""
        if v is None:
            return v
        if not is_valid_address(v):
            raise ValueError("Registry address must be 0x-prefixed 20-byte hex")
        return v.lower()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]  # Values from env
