"""Configuration management using pydantic-settings."""
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Gemini API credentials (ignored when use_vertexai is set)
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    )

    # Vertex AI settings
    use_vertexai: bool = False
    gcp_project_id: str = ""
    vertex_ai_location: str = "global"

    # Model IDs
    image_model_id: str = "gemini-3-pro-image-preview"
    video_model_id: str = "veo-3.1-generate-preview"
    text_model_id: str = "gemini-2.5-flash"

    # Video polling
    video_poll_interval_seconds: float = 10.0
    video_timeout_seconds: float = 300.0

    # Storage
    presets_dir: str = "data/presets"
    media_dir: str = "data/media"
    media_delivery: Literal["file", "data_url"] = "file"

    # Application settings
    app_name: str = "trend-studio"

    # Server settings
    backend_host: str = "localhost"
    backend_port: int = 8000
    frontend_port: int = 3000


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
