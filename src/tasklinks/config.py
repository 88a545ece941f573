"""Configuration management for TaskLinks."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="TASKLINKS_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Application
    app_name: str = "TaskLinks"
    debug: bool = False

    # Paths
    data_dir: Path = Path("data")

    # Database
    database_url: str = "sqlite+aiosqlite:///data/tasklinks.db"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Sessions
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 60

    # Service credential used for profile repair from trusted backends.
    # Leave unset to disable the service role entirely.
    service_role_key: str | None = None

    # Role-level read grant for anonymous callers on categories/tasks.
    # Rows are still owner-filtered, so anonymous reads return nothing.
    anon_read_grants: bool = True

    # Client-side signup fallback
    signup_settle_seconds: float = 1.0
    auth_cooldown_seconds: float = 5.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Rate limiting (requests per minute)
    rate_limit_enabled: bool = True
    rate_limit_default: str = "60/minute"  # Default rate limit for most endpoints
    rate_limit_auth: str = "5/minute"  # Very strict for auth-related endpoints

    # CORS (Cross-Origin Resource Sharing)
    cors_enabled: bool = True
    cors_allow_origins: list[str] = []  # Empty = same-origin only; use ["*"] for any origin
    cors_allow_methods: list[str] = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]
    cors_allow_headers: list[str] = ["*"]
    cors_allow_credentials: bool = False
    cors_max_age: int = 600  # Preflight cache duration in seconds

    def setup_directories(self) -> None:
        """Ensure required directories exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    settings.setup_directories()
    return settings
