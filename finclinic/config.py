"""Application configuration with comprehensive validation."""
from typing import Literal
from functools import lru_cache
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with production-grade validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "Financial Clinic Survey Service"
    APP_VERSION: str = "1.0.0"
    APP_ENV: Literal["development", "staging", "production"] = "development"
    DEBUG: bool = False
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"

    # API
    API_V1_PREFIX: str = "/api/v1"

    # Remote scoring / submission service
    API_BASE_URL: str = "http://localhost:8000/api/v1"
    REQUEST_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0, le=120)

    # Retry policy (attempts include the first call: 1 + 3 retries)
    RETRY_MAX_ATTEMPTS: int = Field(default=4, ge=1, le=10)
    RETRY_BASE_DELAY_SECONDS: float = Field(default=1.0, ge=0)
    RETRY_MAX_DELAY_SECONDS: float = Field(default=10.0, ge=0)

    # Local key-value store
    LOCAL_STORE_BACKEND: Literal["memory", "redis"] = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"

    # History
    HISTORY_PAGE_LIMIT: int = Field(default=50, ge=1, le=500)

    # Guest migration: "clear_always" keeps the historical behaviour of dropping
    # guest caches once the batch finishes, even if some items failed.
    MIGRATION_CLEAR_POLICY: Literal["clear_always", "clear_on_full_success"] = "clear_always"

    @model_validator(mode="after")
    def validate_retry_delays(self):
        """Ensure the backoff ceiling is not below the base delay."""
        if self.RETRY_MAX_DELAY_SECONDS < self.RETRY_BASE_DELAY_SECONDS:
            raise ValueError(
                "RETRY_MAX_DELAY_SECONDS must be >= RETRY_BASE_DELAY_SECONDS"
            )
        return self

    @model_validator(mode="after")
    def validate_production_settings(self):
        """Ensure production has a durable local store."""
        if self.APP_ENV == "production":
            if self.DEBUG:
                raise ValueError("DEBUG must be False in production")
            if self.LOCAL_STORE_BACKEND != "redis":
                raise ValueError("LOCAL_STORE_BACKEND must be 'redis' in production")
        return self


@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
