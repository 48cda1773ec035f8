"""
Configuration management for Foosrank.

Uses Pydantic Settings to load configuration from environment variables
with sensible defaults for development. The database URL and the upstream
site URLs can be overridden via environment variables or a .env file.

Usage:
    from foosrank.config import settings
    print(settings.database_url)
"""

from datetime import date
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables can be set directly or via a .env file
    in the project root directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ==========================================================================
    # Database Configuration
    # ==========================================================================

    database_url: str = Field(
        default="sqlite:///foosrank.db",
        description="SQLAlchemy URL of the player database",
    )

    store_lock_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for the player store lock before failing",
    )

    # ==========================================================================
    # Fetching Configuration
    # ==========================================================================

    fetch_concurrency: int = Field(
        default=10,
        ge=1,
        description="Maximum number of upstream requests in flight at once",
    )
    ranking_count: int = Field(
        default=100,
        ge=1,
        description="Number of places requested from each ITSF ranking page",
    )
    http_timeout: float = Field(
        default=30.0,
        description="Timeout for a single upstream request (seconds)",
    )
    http_max_retries: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts for a failed upstream request",
    )
    http_retry_base_delay: float = Field(
        default=1.0,
        description="Initial delay between retries (doubles each attempt)",
    )
    http_user_agent: str = Field(
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36"
        ),
        description="User agent sent with upstream requests",
    )

    # ==========================================================================
    # Upstream Sites
    # ==========================================================================

    itsf_base_url: str = Field(
        default="https://www.tablesoccer.org",
        description="ITSF website (rankings and player profiles)",
    )
    itsf_image_base_url: str = Field(
        default="https://media.fast4foos.org/photos/players",
        description="Base URL of ITSF player photos",
    )
    dtfb_base_url: str = Field(
        default="https://dtfb.de",
        description="DTFB website (national rankings and player details)",
    )

    itsf_first_year: int = Field(
        default=2010,
        description="First season included in a full ITSF download",
    )
    itsf_last_year: Optional[int] = Field(
        default=None,
        description="Last season included in a full ITSF download (default: current year)",
    )

    # ==========================================================================
    # API Configuration
    # ==========================================================================

    api_host: str = Field(
        default="0.0.0.0",
        description="Host to bind the API server to",
    )
    api_port: int = Field(
        default=8080,
        description="Port for the API server",
    )
    api_reload: bool = Field(
        default=False,
        description="Enable auto-reload for development",
    )

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
    )
    log_format: str = Field(
        default="console",
        description="Log format: 'json' for production, 'console' for dev",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper_v = v.upper()
        if upper_v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper_v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        lower_v = v.lower()
        if lower_v not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return lower_v

    def full_download_years(self) -> list[int]:
        """Seasons covered by a full ITSF download, oldest first."""
        last_year = self.itsf_last_year or date.today().year
        return list(range(self.itsf_first_year, last_year + 1))


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Using lru_cache ensures we only load settings once,
    which is important because loading from .env can be slow.
    """
    return Settings()


# Convenience alias for importing
settings = get_settings()
