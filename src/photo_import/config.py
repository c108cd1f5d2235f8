"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    google_client_id: str
    google_client_secret: str
    cron_secret: str
    google_auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth"
    google_token_url: str = "https://oauth2.googleapis.com/token"
    picker_base_url: str = "https://photospicker.googleapis.com/v1"
    picker_page_size: int = 100
    blob_bucket: str = "photos"
    kv_table: str = "kv_store"
    auth_cookie_name: str = "sb-access-token"
    max_step_failures: int = 5
    retry_base_seconds: int = 30
    retry_max_seconds: int = 900
    max_items_per_step: int | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
