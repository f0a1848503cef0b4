"""Application settings and configuration."""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings

# Load .env file if present
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Attempts API
    api_base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of the course/progress REST API",
        validation_alias="LESSONQUIZ_API_URL",
    )
    api_token: str | None = Field(
        default=None,
        description="Bearer token sent with every API request",
        validation_alias="LESSONQUIZ_API_TOKEN",
    )
    request_timeout: float = Field(
        default=20.0,
        gt=0.0,
        description="Timeout for a single API request, in seconds",
        validation_alias="LESSONQUIZ_REQUEST_TIMEOUT",
    )

    # Progress persistence
    autosave_delay_seconds: float = Field(
        default=3.0,
        ge=0.0,
        le=60.0,
        description="Quiet period before a draft is written to the server",
        validation_alias="LESSONQUIZ_AUTOSAVE_DELAY",
    )
    cache_dir: str = Field(
        default=".lessonquiz-cache",
        description="Directory backing the local answer cache",
        validation_alias="LESSONQUIZ_CACHE_DIR",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Root log level for the CLI",
        validation_alias="LESSONQUIZ_LOG_LEVEL",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings object with loaded configuration
    """
    return Settings()
