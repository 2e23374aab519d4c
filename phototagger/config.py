from __future__ import annotations

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

DEFAULT_TIMEOUT_SECONDS = 60.0


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    environment: str = Field("production", alias="ENVIRONMENT")

    database_url: str = Field(
        "sqlite:////tmp/phototagger.db", alias="DATABASE_URL"
    )
    db_create_all: bool = Field(False, alias="DB_CREATE_ALL")

    openrouter_api_key: str | None = Field(None, alias="OPENROUTER_API_KEY")
    openrouter_base_url: str = Field(
        "https://openrouter.ai/api/v1", alias="OPENROUTER_BASE_URL"
    )
    app_referer: str = Field(
        "https://beautiful-photos.app",
        alias="APP_REFERER",
        description="HTTP-Referer header sent to the classification gateway",
    )
    app_title: str = Field("Beautiful Photos Classification", alias="APP_TITLE")

    primary_model: str = Field("google/gemma-3-27b-it:free", alias="PRIMARY_MODEL")
    fallback_model: str = Field("google/gemma-3-27b-it", alias="FALLBACK_MODEL")
    classify_timeout_seconds: float = Field(
        DEFAULT_TIMEOUT_SECONDS, alias="CLASSIFY_TIMEOUT_SECONDS"
    )
    classify_temperature: float = Field(0.3, alias="CLASSIFY_TEMPERATURE")
    classify_max_tokens: int = Field(1000, alias="CLASSIFY_MAX_TOKENS")

    classify_batch_limit: int = Field(3, alias="CLASSIFY_BATCH_LIMIT")
    classify_max_retries: int = Field(3, alias="CLASSIFY_MAX_RETRIES")
    classify_stale_minutes: int = Field(5, alias="CLASSIFY_STALE_MINUTES")

    photo_width: int = Field(600, alias="PHOTO_WIDTH")
    photo_quality: int = Field(80, alias="PHOTO_QUALITY")

    model_config = ConfigDict(
        extra="ignore",
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("classify_timeout_seconds", mode="before")
    @classmethod
    def _tolerant_timeout(cls, value):
        try:
            parsed = float(value)
        except (TypeError, ValueError):
            return DEFAULT_TIMEOUT_SECONDS
        return parsed if parsed > 0 else DEFAULT_TIMEOUT_SECONDS

    @property
    def debug(self) -> bool:
        return self.environment.lower() == "development"
