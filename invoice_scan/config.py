"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

MAX_UPLOAD_BYTES = 25 * 1024 * 1024


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1"
    extraction_mock: bool = False

    # Database (checked on first store use, not at startup)
    database_url: str | None = None

    # Uploads and the in-process file cache
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    file_cache_ttl_seconds: float | None = None
    file_cache_max_entries: int | None = Field(default=None, ge=1)

    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",  # Vite development server
        "http://127.0.0.1:5173",
    ]

    # Debug flags
    sql_debug: bool = False
    debug: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the project root
        env_file=Path(__file__).parent.parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
