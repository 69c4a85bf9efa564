"""Environment-driven defaults using Pydantic Settings.

Only the factory and logging setup read these; a RateLimiter built by hand
takes its configuration explicitly.

Configuration precedence:
    1. Environment variables (ADMISSION_REDIS_URL, ADMISSION_LOG_LEVEL, ...)
    2. Default values

Usage:
    from admission.settings import get_settings

    settings = get_settings()
    redis_url = settings.redis_url
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AdmissionSettings(BaseSettings):
    """Admission engine settings (flat structure).

    Returns:
        AdmissionSettings: Configuration loaded from environment.
    """

    model_config = SettingsConfigDict(env_prefix="ADMISSION_", extra="ignore")

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the shared counter store",
    )
    store_timeout: float = Field(
        default=1.0,
        gt=0,
        description="Seconds before a store call fails with StoreError",
    )
    key_prefix: str = Field(
        default="rate_limit:",
        description="Prefix for every rate limit key in the store",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_json: bool = Field(
        default=False,
        description="Render logs as JSON (CI/production) instead of console",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalise and validate the log level name."""
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Invalid log level: {value}")
        return level


@lru_cache
def get_settings() -> AdmissionSettings:
    """Get cached settings instance."""
    return AdmissionSettings()
