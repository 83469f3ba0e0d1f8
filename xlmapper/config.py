"""
Library configuration using pydantic-settings.

Loads configuration from environment variables with sensible defaults.
"""
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from XLMAPPER_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="XLMAPPER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Dates
    date_format_zone: str = "UTC"

    # Sheet defaults, used when a sheet declaration leaves them unset
    default_row_height_in_points: float = 15.0
    default_column_width: int = 8

    # Logging
    log_level: str = "INFO"
    log_json: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
