"""Application configuration management."""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import AnyUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings loaded from environment variables."""

    PROJECT_NAME: str = "Eiken Vocabulary Trainer"
    API_V1_STR: str = "/api/v1"
    DEBUG: bool = Field(False, description="Echo SQL statements")

    DATABASE_URL: str = Field(
        "sqlite:///./eiken_trainer.db",
        description="SQLAlchemy database URL",
    )

    REDIS_URL: Optional[AnyUrl] = Field(
        None, description="Optional Redis connection string for the response cache"
    )

    BACKEND_CORS_ORIGINS: List[str] = Field(
        default_factory=lambda: ["http://localhost", "http://localhost:3000"],
        description="Allowed CORS origins",
    )

    DEFAULT_LEARNER_ID: str = Field(
        "default_user",
        description="Learner identity used when a request carries no X-Learner-Id header",
    )
    DEFAULT_BATCH_SIZE: int = Field(10, ge=1, description="Words per practice batch")
    MAX_BATCH_SIZE: int = Field(50, ge=1, description="Upper bound for a requested batch")
    PROGRESS_UPDATE_MAX_RETRIES: int = Field(
        3, ge=1, description="Compare-and-swap attempts before a progress write is rejected"
    )

    LOG_LEVEL: str = Field("INFO", description="Minimum loguru level")
    LOG_JSON: bool = Field(False, description="Serialize log records as JSON")

    model_config = SettingsConfigDict(
        env_file=Path(__file__).resolve().parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


settings = get_settings()
