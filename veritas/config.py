"""Veritas configuration — loaded from environment variables."""

from __future__ import annotations

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_prefix": "VERITAS_", "env_file": ".env", "extra": "ignore"}

    # Gemini
    google_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("VERITAS_GOOGLE_API_KEY", "GOOGLE_API_KEY", "API_KEY"),
    )
    api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    text_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-2.5-flash-image"
    text_temperature: float = 0.3
    text_timeout: float = 120.0
    image_timeout: float = 120.0

    # Visual fan-out
    visual_timeout: float = 180.0  # upper bound on one synthesis call
    visual_concurrency: int | None = None  # None = unbounded

    # Database
    database_path: str = "veritas.db"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "http://localhost:5173,http://localhost:3000"

    def get_allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
