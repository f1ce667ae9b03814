"""Application settings using Pydantic BaseSettings."""

import logging
from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Chart Render Service"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        upper = v.upper()
        if upper not in _VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_VALID_LOG_LEVELS}, got '{v}'")
        return upper

    @model_validator(mode="after")
    def validate_timeouts_positive(self) -> "Settings":
        for field_name in (
            "cache_socket_timeout",
            "browser_launch_timeout",
            "content_load_timeout",
            "content_fallback_timeout",
            "render_poll_timeout",
            "capture_timeout",
        ):
            value = getattr(self, field_name)
            if value <= 0:
                raise ValueError(f"{field_name} must be positive, got {value}")
        if self.render_poll_attempts < 1:
            raise ValueError(f"render_poll_attempts must be at least 1, got {self.render_poll_attempts}")
        if self.render_poll_delay < 0:
            raise ValueError(f"render_poll_delay must not be negative, got {self.render_poll_delay}")
        return self

    @model_validator(mode="after")
    def warn_wildcard_origins(self) -> "Settings":
        if self.allowed_origins == ["*"]:
            logging.getLogger(__name__).warning(
                "allowed_origins is set to ['*'], consider restricting in production"
            )
        return self

    # CORS
    allowed_origins: list[str] = ["*"]

    # Render cache (empty redis_url selects the in-process cache)
    redis_url: str = "redis://localhost:6379/0"
    cache_key_prefix: str = "chart_cache"
    cache_ttl_seconds: int = 3600
    cache_socket_timeout: float = 2.0
    memory_cache_max_size: int = 256

    # Browser
    chromium_path: str | None = None
    browser_launch_timeout: float = 30.0
    content_load_timeout: float = 15.0
    content_fallback_timeout: float = 10.0
    capture_timeout: float = 30.0

    # Render completion polling
    render_poll_attempts: int = 3
    render_poll_timeout: float = 5.0
    render_poll_delay: float = 1.0

    # Chart document
    chartjs_url: str = "https://cdn.jsdelivr.net/npm/chart.js@4.5.1/dist/chart.umd.js"

    # Collapse concurrent renders of the same cache key into one browser run
    render_single_flight: bool = False

    # JSON array of stored chart records served by GET /charts/{hash}/png
    chart_records_path: str | None = None


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
