"""
AgentWiki Configuration Management

Centralized configuration using Pydantic Settings for type-safe environment
variable loading with validation.
"""

import logging
from functools import lru_cache
from typing import Literal
from urllib.parse import urlparse

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ═══════════════════════════════════════════════════════════════
    # APPLICATION
    # ═══════════════════════════════════════════════════════════════
    app_name: str = Field(default="agentwiki", description="Application name")
    app_env: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    log_json: bool | None = Field(
        default=None, description="Force JSON log output (defaults to on in production)"
    )

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, ge=1, le=65535, description="API port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        description="Comma-separated CORS origins",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into list."""
        origins = [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]
        if self.app_env == "production" and "*" in origins:
            raise ValueError("Wildcard CORS origin not allowed in production")
        return origins

    @property
    def use_json_logs(self) -> bool:
        if self.log_json is not None:
            return self.log_json
        return self.app_env == "production"

    # ═══════════════════════════════════════════════════════════════
    # DATABASE
    # ═══════════════════════════════════════════════════════════════
    database_path: str = Field(
        default="agentwiki.db", description="SQLite database file (or :memory:)"
    )
    database_busy_timeout_seconds: float = Field(
        default=5.0, ge=0, description="SQLite busy timeout before 'database is locked'"
    )

    # ═══════════════════════════════════════════════════════════════
    # SOLANA
    # ═══════════════════════════════════════════════════════════════
    solana_rpc_url: str = Field(
        default="https://api.devnet.solana.com", description="Solana RPC endpoint"
    )
    rpc_timeout_seconds: float = Field(
        default=30.0, gt=0, description="HTTP timeout for Solana RPC calls"
    )
    treasury_wallet_address: str | None = Field(
        default=None, description="Treasury wallet that receives agent deposits"
    )

    @field_validator("solana_rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Solana RPC URL must be an absolute http(s) URL")
        return v

    @field_validator("treasury_wallet_address")
    @classmethod
    def validate_treasury(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        if v is None:
            logger.warning("treasury_wallet_not_configured: deposits cannot be verified")
        return v

    # ═══════════════════════════════════════════════════════════════
    # PARTICIPATION RULES
    # ═══════════════════════════════════════════════════════════════
    min_deposit_sol: float = Field(
        default=0.001, description="Minimum deposit for gated actions (<= 0 disables the gate)"
    )
    slash_vote_reputation: bool = Field(
        default=True, description="Award vote reputation for slash proposal votes"
    )

    # ═══════════════════════════════════════════════════════════════
    # EVENTS
    # ═══════════════════════════════════════════════════════════════
    event_queue_size: int = Field(
        default=100, ge=1, description="Per-subscriber event buffer before drops"
    )
    sse_ping_interval_seconds: float = Field(
        default=30.0, gt=0, description="Keep-alive interval for the event stream"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
