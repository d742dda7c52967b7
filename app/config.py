# app/config.py — Pydantic settings (env vars)

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Search backends
    google_api_key: str | None = None
    google_cse_id: str | None = None
    serpapi_key: str | None = None

    # Pagination etiquette and timeouts
    google_page_delay_seconds: float = 0.1
    serpapi_page_delay_seconds: float = 1.0
    search_timeout_seconds: float = 30.0
    search_max_duration_seconds: float | None = 120.0

    # HTTP API
    cors_origins: str = "*"
    port: int = 3000
    search_history_limit: int = 100

    # Telegram bot
    telegram_bot_token: str | None = None
    telegram_include_job_title_step: bool = False
    bot_session_ttl_seconds: int = 1800

    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("google_api_key", "google_cse_id", "serpapi_key", "telegram_bot_token")
    @classmethod
    def _blank_as_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        cleaned = value.strip()
        return cleaned or None

    @property
    def cors_origin_list(self) -> list[str]:
        if self.cors_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
