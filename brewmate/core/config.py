"""Application settings parsed from environment variables and defaults."""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOG_LEVEL = "INFO"
LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


class Settings(BaseSettings):
    """Personalization configuration loaded from environment variables."""

    app_name: str = "BrewMate Personalization"
    environment: str = "development"
    log_level: str = DEFAULT_LOG_LEVEL
    local_user_id: str = "local-user"

    learning_rate: float = 0.1
    decay_factor: float = 0.95
    history_cache_limit: int = 200

    recommendation_cache_ttl_minutes: int = 15
    recommendation_default_limit: int = 3
    candidate_multiplier: int = 4

    database_url: str = "sqlite+aiosqlite:///./brewmate.db"
    redis_url: Optional[str] = None

    weather_api_url: str = "https://api.open-meteo.com/v1/forecast"
    weather_timeout_seconds: float = 10.0
    default_latitude: Optional[float] = None
    default_longitude: Optional[float] = None

    travel_mode_default_hours: int = Field(default=48, ge=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str | None) -> str:
        """Upper-case log levels and fall back to INFO for unknown names."""
        if not isinstance(value, str) or not value.strip():
            return DEFAULT_LOG_LEVEL
        level = value.strip().upper()
        return level if level in LOG_LEVELS else DEFAULT_LOG_LEVEL

    @field_validator("learning_rate", "decay_factor")
    @classmethod
    def _validate_unit_interval(cls, value: float) -> float:
        """Learning rate and decay factor must lie in (0, 1]."""
        if not 0 < value <= 1:
            raise ValueError("must be within (0, 1]")
        return value

    @field_validator("history_cache_limit", "recommendation_default_limit", "candidate_multiplier")
    @classmethod
    def _validate_positive(cls, value: int) -> int:
        """Reject non-positive sizes."""
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @model_validator(mode="after")
    def _validate_default_location(self) -> "Settings":
        """Require both coordinates when a default location is configured."""
        if (self.default_latitude is None) != (self.default_longitude is None):
            msg = "BREWMATE_DEFAULT_LATITUDE and BREWMATE_DEFAULT_LONGITUDE must be set together"
            raise ValueError(msg)
        return self

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="BREWMATE_", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings to avoid re-parsing environment variables."""
    return Settings()


settings = get_settings()
