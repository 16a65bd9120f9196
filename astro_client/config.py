"""Application configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "llama3.1:8b-instruct-q8_0"


class Settings(BaseSettings):
    """Environment-driven settings validated at startup."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    backend_url: str = Field(default="http://localhost:5000", alias="ASTRO_BACKEND_URL")
    # Full workflows render video server-side and can run for minutes.
    request_timeout_seconds: float = Field(default=900.0, alias="ASTRO_REQUEST_TIMEOUT_SECONDS")
    min_loading_seconds: float = Field(default=0.5, ge=0.0, alias="ASTRO_MIN_LOADING_SECONDS")
    model_confirmation_seconds: float = Field(default=1.5, ge=0.0, alias="ASTRO_MODEL_CONFIRMATION_SECONDS")
    default_model: str = Field(default=DEFAULT_MODEL, alias="ASTRO_DEFAULT_MODEL")
    database_path: Path = Field(default=Path("astro_client.db"), alias="ASTRO_DATABASE_PATH")
    batch_item_timeout_seconds: float | None = Field(default=None, gt=0.0, alias="ASTRO_BATCH_ITEM_TIMEOUT_SECONDS")
    video_format: str = Field(default="youtube_short", alias="ASTRO_VIDEO_FORMAT")


def load_settings() -> Settings:
    """Load and validate settings."""

    return Settings()
