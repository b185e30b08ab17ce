"""
Environment configuration for leo-executor.

Loads configuration from environment variables (prefix LEO_EXECUTOR_)
and an optional .env file using pydantic-settings.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LEO_EXECUTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="HTTP bind address")
    port: int = Field(default=3001, ge=1, le=65535, description="HTTP API port")
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )
    log_format: Literal["text", "json"] = Field(
        default="text", description="Logging format - text for human-readable, json for structured logs"
    )

    # Backend Configuration
    backend: Literal["cli", "library"] = Field(
        default="cli", description="Execution backend: Leo CLI subprocesses or an in-process library"
    )
    leo_binary: str = Field(default="leo", description="Leo CLI executable name or path")
    library_entry_point: Optional[str] = Field(
        default=None, description="'module:callable' program runner for the library backend"
    )
    library_initializer: Optional[str] = Field(
        default=None, description="Optional 'module:callable' run once before the first library call"
    )
    worker_threads: int = Field(default=2, ge=1, le=32, description="Concurrent calls for the library backend")
    abandoned_threads: int = Field(
        default=8, ge=1, le=64, description="Timed-out library calls tolerated while their threads still run"
    )

    # Workspace Configuration
    workspace_root: Optional[str] = Field(
        default=None, description="Parent directory for workspaces (system temp dir when unset)"
    )
    network: str = Field(default="testnet", description="NETWORK written to the workspace .env")
    private_key: str = Field(
        default="APrivateKey1zkpHtqVWT6fSHgUMNxsuVf7eaR6id2cj7TieKY1Z8CP5rCD",
        description="Throwaway PRIVATE_KEY written to the workspace .env",
    )
    endpoint: str = Field(
        default="https://api.explorer.provable.com/v1", description="ENDPOINT written to the workspace .env"
    )

    # Execution Configuration
    default_timeout_ms: int = Field(default=60000, ge=1, description="Default per-process timeout")
    max_timeout_ms: int = Field(default=300000, ge=1, description="Largest accepted per-process timeout")
    probe_timeout_ms: int = Field(default=5000, ge=1, description="Timeout for the toolchain version probe")
    health_ttl_seconds: float = Field(default=30.0, ge=0, description="How long a health probe stays fresh")
    max_error_chars: int = Field(default=4000, ge=100, description="Longest error message returned to callers")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
