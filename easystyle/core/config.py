"""
Central configuration. All API keys and settings in one place.
"""

from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Environment ---
    env: str = Field(default="development", alias="ENV")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    debug: bool = Field(default=False, alias="DEBUG")

    # --- Database ---
    database_url: str = Field(
        default="sqlite+aiosqlite:///./easystyle.db",
        alias="DATABASE_URL",
    )

    # --- Gemini ---
    gemini_api_key: str = Field(default="", alias="GEMINI_API_KEY")
    text_model: str = Field(default="gemini-2.5-flash", alias="GEMINI_TEXT_MODEL")
    image_model: str = Field(default="gemini-2.5-flash-image-preview", alias="GEMINI_IMAGE_MODEL")

    # --- Mock shopping search ---
    mock_search_min_delay: float = Field(default=0.3, alias="MOCK_SEARCH_MIN_DELAY")
    mock_search_max_delay: float = Field(default=0.7, alias="MOCK_SEARCH_MAX_DELAY")

    # --- Users ---
    admin_email: str = Field(default="admin@easystyle.com", alias="ADMIN_EMAIL")

    # --- Redis ---
    redis_url: str = Field(default="", alias="REDIS_URL")

    # --- Uploads ---
    max_upload_bytes: int = Field(default=20 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")

    # --- API ---
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8000, alias="API_PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")

    # --- Styling sessions ---
    session_idle_seconds: int = Field(default=3600, alias="SESSION_IDLE_SECONDS")


@lru_cache
def get_settings() -> Settings:
    return Settings()
