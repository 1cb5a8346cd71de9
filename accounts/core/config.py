"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Required fields (e.g. SECRET_KEY, Firestore credentials)
are validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    All settings have defaults except those validated in
    validate_required: secret_key always, and Firestore credentials when
    database_backend is 'firestore'.
    """

    # App
    app_name: str = "accounts"
    app_version: str = "1.0.0"
    environment: str = "development"  # development | production | test
    debug: bool = False

    # Database: "firestore" (REST document store) or "memory" (in-process, tests/dev)
    database_backend: str = "firestore"
    firebase_service_account_key: SecretStr | None = None
    firebase_service_account_path: str | None = None

    # Security
    secret_key: SecretStr = SecretStr("")
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 480  # 8 hours
    cookie_name: str = "jwt"
    cookie_expire_minutes: int = 7 * 24 * 60
    password_reset_expire_minutes: int = 10
    # Backdates password_changed_at so a token issued in the same request stays valid.
    password_change_skew_seconds: int = 1
    bcrypt_rounds: int = 12

    # Email
    email_backend: str = "log"  # log | smtp
    email_from: str = "accounts <no-reply@localhost>"
    email_support: str = "support@localhost"
    default_site_url: str = "http://localhost:3000"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: SecretStr | None = None
    smtp_use_tls: bool = True
    smtp_timeout_seconds: int = 30

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # Request / middleware
    request_id_header: str = "X-Request-ID"
    login_rate_limit: str = "10/minute"
    write_rate_limit: str = "120/minute"

    # Seeding (scripts/seed_super_admin.py)
    super_admin_email: str | None = None
    super_admin_password: SecretStr | None = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Validate required env and backend choices."""
        if self.database_backend == "firestore":
            has_key = (
                self.firebase_service_account_key
                and self.firebase_service_account_key.get_secret_value()
            )
            if not has_key and not self.firebase_service_account_path:
                raise ValueError(
                    "When database_backend is 'firestore', set FIREBASE_SERVICE_ACCOUNT_KEY (full JSON string) "
                    "or FIREBASE_SERVICE_ACCOUNT_PATH (path to JSON file)."
                )
        elif self.database_backend != "memory":
            raise ValueError(
                f"database_backend must be 'firestore' or 'memory', got: {self.database_backend!r}"
            )
        if not self.secret_key.get_secret_value():
            raise ValueError(
                "SECRET_KEY is required. Generate with: openssl rand -hex 32."
            )
        if self.email_backend not in ("log", "smtp"):
            raise ValueError(
                f"email_backend must be 'log' or 'smtp', got: {self.email_backend!r}"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.
    """
    return Settings()
