import secrets
import warnings

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Flashcards"
    version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./flashcards.db"

    # Auth - SECRET_KEY must be set via environment variable in production
    secret_key: str = ""
    access_token_expire_minutes: int = 60 * 24 * 7  # 1 week
    session_cookie_name: str = "flashcards_session"
    session_cookie_secure: bool = False

    # Accounts
    bootstrap_admin_username: str = "admin"
    bootstrap_admin_password: str = "admin"
    admin_reset_password: str = "password123"

    # Uploads
    upload_max_bytes: int = 10 * 1024 * 1024  # 10 MiB
    max_word_length: int = 100

    # Dictionary lookups
    static_dir: str = "./public"
    dictionary_timeout_seconds: float = 10.0
    dictionary_cache_ttl_days: int = 0  # 0 = entries never go stale

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "FLASHCARDS_",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Ensure secret_key is properly configured."""
        if not self.secret_key:
            if self.debug:
                # Generate a random key for development
                self.secret_key = secrets.token_urlsafe(32)
                warnings.warn(
                    "FLASHCARDS_SECRET_KEY not set - using random key (sessions won't persist across restarts)",
                    stacklevel=2,
                )
            else:
                raise ValueError(
                    "FLASHCARDS_SECRET_KEY environment variable must be set in production. "
                    "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""
                )
        return self


settings = Settings()
