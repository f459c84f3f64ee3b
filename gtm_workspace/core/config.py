"""Settings for the workspace backend.

Read from the environment (and ``.env`` when present); names are
case-insensitive. Only ``DATABASE_URL`` is required. Without
``ANTHROPIC_API_KEY`` the AI features return submitted values unchanged.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="GTM Workspace API")
    app_version: str = Field(default="1.0.0")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # Server
    port: int = Field(default=8000, description="Port to bind to")
    host: str = Field(default="0.0.0.0", description="Host to bind to")
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Allowed CORS origin for the workspace frontend",
    )

    # Auth
    auth_required: bool = Field(
        default=True,
        description="Validate bearer sessions; when false a dev user is used",
    )

    # Database
    database_url: PostgresDsn = Field(
        ...,
        description="PostgreSQL connection string",
    )
    db_pool_size: int = Field(default=5, description="Database connection pool size")
    db_max_overflow: int = Field(default=10, description="Max overflow connections")
    db_pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    db_slow_query_threshold_ms: int = Field(
        default=100, description="Threshold for slow query warnings (ms)"
    )
    db_connect_timeout: int = Field(
        default=60, description="Connection timeout in seconds"
    )
    db_command_timeout: int = Field(
        default=60, description="Command timeout in seconds"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Root log level")
    log_format: Literal["json", "text"] = Field(default="json")

    # Claude/Anthropic LLM
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key for Claude models",
    )
    claude_model: str = Field(
        default="claude-3-haiku-20240307",
        description="Claude model used for refinement and enrichment",
    )
    claude_timeout: float = Field(
        default=60.0, description="Claude API request timeout in seconds"
    )
    claude_max_tokens: int = Field(
        default=1024, description="Maximum tokens in Claude response"
    )
    # Circuit breaker settings for Claude
    claude_circuit_failure_threshold: int = Field(
        default=5, description="Failures before circuit opens"
    )
    claude_circuit_recovery_timeout: float = Field(
        default=60.0, description="Seconds before attempting recovery"
    )

    # Generation (refinement, suggestions, enrichment)
    generation_timeout: float = Field(
        default=45.0,
        description="Upper bound in seconds for a single generation call",
    )
    refinement_temperature: float = Field(
        default=0.3, description="Sampling temperature for field refinement"
    )
    refinement_max_tokens: int = Field(
        default=500, description="Maximum tokens for a refined field"
    )
    suggestion_temperature: float = Field(
        default=0.7, description="Sampling temperature for field suggestions"
    )
    suggestion_max_tokens: int = Field(
        default=1000, description="Maximum tokens for field suggestions"
    )
    enrichment_temperature: float = Field(
        default=0.7, description="Sampling temperature for entity enrichment"
    )
    enrichment_max_tokens: int = Field(
        default=2000, description="Maximum tokens for entity enrichment"
    )
    icp_enrichment_max_tokens: int = Field(
        default=4000, description="Maximum tokens per ICP enrichment variant"
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
