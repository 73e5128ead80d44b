"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# 10 MB per uploaded PDF
DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",  # Vite development server
    "http://127.0.0.1:5173",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI (required - the service refuses to start without it)
    openai_api_key: str = Field(..., min_length=1)
    openai_model: str = "gpt-4.1"
    openai_timeout_seconds: float = 120.0

    # Upload queue
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES

    # Orchestrator: 1 keeps the pass strictly sequential
    max_concurrent_extractions: int = Field(default=1, ge=1)

    # Debug flags
    debug: bool = False

    cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    model_config = SettingsConfigDict(
        # Load from .env file in the backend directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.

    Raises:
        pydantic.ValidationError: If OPENAI_API_KEY is missing.
    """
    return Settings()
