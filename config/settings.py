"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # CSV PREVIEW CACHE
    # ===================
    csv_preview_ttl_minutes: int = Field(
        default=30,
        ge=1,
        le=24 * 60,
        description="Minutes a preview stays committable"
    )
    csv_preview_max_entries: int = Field(
        default=200,
        ge=1,
        le=10000,
        description="Maximum previews held at once (oldest evicted first)"
    )
    csv_preview_error_sample: int = Field(
        default=20,
        ge=0,
        le=500,
        description="Error rows returned in a preview response"
    )

    # ===================
    # CSV JOB QUEUE
    # ===================
    csv_job_start_delay_ms: int = Field(
        default=10,
        ge=0,
        le=10000,
        description="Yield before a dequeued job starts processing"
    )
    csv_job_row_interval_ms: int = Field(
        default=15,
        ge=0,
        le=10000,
        description="Pause between row applications (apply throttle)"
    )
    csv_job_retention: int = Field(
        default=500,
        ge=1,
        le=100000,
        description="Maximum jobs kept in memory (oldest finished evicted first)"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def csv_job_start_delay_seconds(self) -> float:
        return self.csv_job_start_delay_ms / 1000

    @property
    def csv_job_row_interval_seconds(self) -> float:
        return self.csv_job_row_interval_ms / 1000


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
