"""
Application configuration, read from environment variables or a .env file.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Limits, in bytes
    MAX_FILE_SIZE: int = 10 * 1024 * 1024
    MAX_TOTAL_SIZE: int = 50 * 1024 * 1024

    # Durations, in seconds
    FILE_TTL: float = 600
    CLEANUP_INTERVAL: float = 300

    LOG_LEVEL: str = "INFO"
    CLIENT_ORIGIN: str = "*"

    # extra='ignore' prevents validation errors from extra env vars
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get settings instance, cached for performance
    """
    return Settings()
