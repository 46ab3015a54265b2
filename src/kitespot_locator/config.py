"""Typed settings loader for the kitespot locator."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import AnyHttpUrl, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigError


class Settings(BaseSettings):
    """Application settings loaded from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: Literal["dev", "staging", "prod"] = Field(default="dev", alias="APP_ENV")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="LOG_LEVEL"
    )

    internal_weather_base_url: AnyHttpUrl = Field(
        default="http://localhost:8000/api",
        alias="INTERNAL_WEATHER_BASE_URL",
    )
    internal_api_token: str | None = Field(
        default=None, alias="INTERNAL_API_TOKEN", repr=False
    )
    internal_timeout_seconds: float = Field(default=5.0, alias="INTERNAL_TIMEOUT_SECONDS")
    internal_max_age_seconds: int = Field(default=3600, alias="INTERNAL_MAX_AGE_SECONDS")

    open_meteo_url: AnyHttpUrl = Field(
        default="https://api.open-meteo.com/v1/forecast",
        alias="OPEN_METEO_URL",
    )
    public_timeout_seconds: float = Field(default=5.0, alias="PUBLIC_TIMEOUT_SECONDS")
    http_user_agent: str = Field(
        default="kitespot-locator/0.1 (contact: ops@example.com)",
        alias="HTTP_USER_AGENT",
    )

    catalog_path: Path | None = Field(default=None, alias="CATALOG_PATH")
    nearest_max_distance_km: float | None = Field(
        default=None, alias="NEAREST_MAX_DISTANCE_KM"
    )
    mock_seed: int | None = Field(default=None, alias="MOCK_SEED")

    forecast_default_hours: int = Field(default=48, alias="FORECAST_DEFAULT_HOURS")
    forecast_max_print: int = Field(default=12, alias="FORECAST_MAX_PRINT")

    journal_enabled: bool = Field(default=True, alias="JOURNAL_ENABLED")
    journal_dir: Path = Field(default=Path("./data/journal"), alias="JOURNAL_DIR")
    raw_payload_dir: Path = Field(default=Path("./data/raw"), alias="RAW_PAYLOAD_DIR")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @field_validator(
        "internal_api_token",
        "catalog_path",
        "nearest_max_distance_km",
        "mock_seed",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value: Any) -> Any:
        """Treat empty env-string values as unset optionals."""
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @model_validator(mode="after")
    def validate_bounds(self) -> Settings:
        """Validate numeric bounds and cross-field rules."""
        if self.internal_timeout_seconds <= 0:
            raise ValueError("INTERNAL_TIMEOUT_SECONDS must be > 0.")
        if self.public_timeout_seconds <= 0:
            raise ValueError("PUBLIC_TIMEOUT_SECONDS must be > 0.")
        if self.internal_max_age_seconds <= 0:
            raise ValueError("INTERNAL_MAX_AGE_SECONDS must be > 0.")
        if not self.http_user_agent.strip():
            raise ValueError("HTTP_USER_AGENT must not be empty.")
        if self.nearest_max_distance_km is not None and self.nearest_max_distance_km <= 0:
            raise ValueError("NEAREST_MAX_DISTANCE_KM must be > 0 when set.")
        if not (1 <= self.forecast_default_hours <= 384):
            raise ValueError("FORECAST_DEFAULT_HOURS must be between 1 and 384.")
        if self.forecast_max_print <= 0:
            raise ValueError("FORECAST_MAX_PRINT must be > 0.")
        return self

    def safe_summary(self) -> dict[str, Any]:
        """Return config summary safe for journaling (no credentials)."""
        return {
            "app_env": self.app_env,
            "internal_weather_base_url": str(self.internal_weather_base_url),
            "internal_auth": self.internal_api_token is not None,
            "internal_timeout_seconds": self.internal_timeout_seconds,
            "internal_max_age_seconds": self.internal_max_age_seconds,
            "open_meteo_url": str(self.open_meteo_url),
            "public_timeout_seconds": self.public_timeout_seconds,
            "catalog_path": str(self.catalog_path) if self.catalog_path else None,
            "nearest_max_distance_km": self.nearest_max_distance_km,
            "mock_seeded": self.mock_seed is not None,
            "forecast_default_hours": self.forecast_default_hours,
            "journal_enabled": self.journal_enabled,
        }


def load_settings() -> Settings:
    """Load and validate settings, raising ConfigError on failure."""
    try:
        settings = Settings()
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed reading environment/.env: {exc}") from exc

    if settings.journal_enabled:
        settings.journal_dir.mkdir(parents=True, exist_ok=True)
        settings.raw_payload_dir.mkdir(parents=True, exist_ok=True)
    return settings
