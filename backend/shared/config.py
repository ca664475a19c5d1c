"""
Centralized configuration for the MuWise backend.

All settings are loaded from environment variables with sensible defaults.
Provider-specific settings are namespaced (FIREBASE_*, SUPABASE_*).
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "MuWise API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    # CORS settings
    cors_origins: list[str] = ["http://localhost:3000"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Provider selection: Supabase when true, Firebase otherwise
    use_supabase: bool = False

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""

    # Firebase
    firebase_api_key: str = ""
    firebase_project_id: str = ""
    firebase_storage_bucket: str = ""
    firebase_credentials_path: str = ""

    # Session cookie
    session_cookie_name: str = "session"
    session_cookie_secure: bool = False
    session_expires_in: int = 60 * 60 * 24 * 5  # seconds

    # Out-of-scope integrations, reported by the health endpoint only
    resend_api_key: str = ""
    stripe_secret_key: str = ""


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


def read_use_supabase() -> bool:
    """
    Read the provider flag straight from the environment.

    Bypasses the settings cache so a flag change is picked up without
    restarting the process.
    """
    return Settings().use_supabase
