"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_API_URL = "https://tppinsulabackend-production.up.railway.app/api"


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    api_base_url: str = DEFAULT_API_URL
    request_timeout_seconds: float = 15
    display_timezone: str = "America/Argentina/Buenos_Aires"
    history_page_size: int = 5
    retry_attempts: int = 0
    retry_delay_seconds: float = 0.5
    openai_api_key: str | None = None
    openai_model: str = "gpt-4o-mini"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="INSULA_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
