"""Client settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="COMMENTSYNC_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="commentsync", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Literal["development", "staging", "production", "testing"] = Field(
        default="development", description="Environment name"
    )

    # Data service
    api_url: str = Field(
        default="http://localhost:5000/api/v1",
        description="Base URL of the comments REST API",
    )
    request_timeout: float = Field(
        default=10.0, description="HTTP request timeout (seconds)"
    )
    page_size: int = Field(
        default=10, ge=1, le=100, description="Comments requested per page"
    )
    max_content_length: int = Field(
        default=1000, ge=1, le=1000, description="Maximum comment length (code points)"
    )

    # Realtime
    socket_url: str = Field(
        default="http://localhost:5000", description="Socket.IO server URL"
    )
    socket_transports: list[str] = Field(
        default=["websocket", "polling"], description="Socket.IO transports"
    )
    socket_reconnection_attempts: int = Field(
        default=5, description="Reconnection attempts before giving up"
    )
    socket_reconnection_delay: float = Field(
        default=1.0, description="Initial reconnection delay (seconds)"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_format: Literal["json", "console"] = Field(
        default="console", description="Log format"
    )
    log_include_caller_info: bool = Field(
        default=False, description="Include caller info"
    )
    log_dir: str | None = Field(
        default=None, description="Directory for log files (disabled when unset)"
    )
    log_file_max_bytes: int = Field(
        default=10 * 1024 * 1024, description="Max size per log file (10MB default)"
    )
    log_file_backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
