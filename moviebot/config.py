"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FAILURE_MESSAGE = "Failed to fetch movies. Try again later."
DEFAULT_PLACEHOLDER_POSTER = "https://via.placeholder.com/150"


class OmdbSettings(BaseModel):
    api_key: SecretStr
    base_url: AnyHttpUrl = Field(default="http://www.omdbapi.com/")
    request_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-request timeout; None leaves OMDb calls unbounded.",
    )

    @field_validator("request_timeout_seconds", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SearchSettings(BaseModel):
    debounce_seconds: float = Field(default=0.5, ge=0)
    discard_stale_suggestions: bool = Field(
        default=False,
        description="Drop suggestion responses that are not from the latest dispatched fetch.",
    )
    placeholder_poster_url: str = DEFAULT_PLACEHOLDER_POSTER
    failure_message: str = Field(default=DEFAULT_FAILURE_MESSAGE, min_length=1)
    session_idle_seconds: int = Field(default=3600, ge=60)
    max_buttons: int = Field(default=10, ge=1, le=50)


class RequestLimitSettings(BaseModel):
    max_requests: int = Field(default=20, ge=0)
    interval_seconds: int = Field(default=10, ge=1)


class BotSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="BOT_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__"
    )

    environment: Literal["dev", "staging", "prod"] = "dev"
    telegram_token: SecretStr
    telegram_proxy: str | None = None
    admin_telegram_id: int | None = None
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    omdb: OmdbSettings
    search: SearchSettings = Field(default_factory=SearchSettings)
    request_limit: RequestLimitSettings = Field(default_factory=RequestLimitSettings)


@lru_cache
def get_settings() -> BotSettings:
    """Return cached settings instance."""

    return BotSettings()  # type: ignore[call-arg]


__all__ = [
    "BotSettings",
    "DEFAULT_FAILURE_MESSAGE",
    "DEFAULT_PLACEHOLDER_POSTER",
    "OmdbSettings",
    "RequestLimitSettings",
    "SearchSettings",
    "get_settings",
]
