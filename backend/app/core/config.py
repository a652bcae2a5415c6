# backend/app/core/config.py
"""
Application configuration using pydantic-settings.

Security considerations:
- TOTP and session parameters are configurable but default to the
  values authenticator apps and the admin panel expect (30s / 30min)
- Forwarded client addresses are only trusted from TRUSTED_PROXIES
- Database URLs normalized for async drivers automatically
- Debug/echo modes disabled by default
"""
from functools import lru_cache
from typing import List

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_csv(value: str) -> List[str]:
    if not value or not value.strip():
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """
    Strictly typed application settings.

    Priority for loading:
    1. Environment variables (highest priority)
    2. .env file (via pydantic-settings)
    3. Default values (lowest priority, dev-safe only)
    """

    # ─────────────────────────────────────────────────────────────
    # Application metadata
    # ─────────────────────────────────────────────────────────────
    PROJECT_NAME: str = "Folio"
    PROJECT_VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    LOG_LEVEL: str = "INFO"

    # ─────────────────────────────────────────────────────────────
    # TOTP
    # Issuer / account name only label the entry in the authenticator app
    # ─────────────────────────────────────────────────────────────
    TOTP_ISSUER: str = "Folio"
    TOTP_ACCOUNT_NAME: str = "admin"
    TOTP_TIME_STEP: int = 30

    # ─────────────────────────────────────────────────────────────
    # Admin sessions and brute-force protection
    # ─────────────────────────────────────────────────────────────
    SESSION_TTL_MINUTES: int = 30
    RATE_LIMIT_MAX_FAILURES: int = 5
    RATE_LIMIT_WINDOW_MINUTES: int = 5

    # Peers allowed to set X-Forwarded-For / X-Real-IP.
    # Empty → forwarded headers are ignored and the socket peer is used.
    TRUSTED_PROXIES: str = ""

    # ─────────────────────────────────────────────────────────────
    # Database Configuration
    # Priority: DATABASE_URL env var → SQLite fallback for local dev
    # ─────────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./folio.db"

    @field_validator("DATABASE_URL", mode="before")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """
        Normalize database URLs for async SQLAlchemy compatibility.

        Conversions:
        - postgres://     → postgresql+asyncpg://  (Render.com style)
        - postgresql://   → postgresql+asyncpg://  (standard PostgreSQL)
        - sqlite:///      → sqlite+aiosqlite:///   (local development)
        """
        if v is None:
            return "sqlite+aiosqlite:///./folio.db"

        url = v.strip()

        if url.startswith("postgres://"):
            return url.replace("postgres://", "postgresql+asyncpg://", 1)

        if url.startswith("postgresql://") and "+asyncpg" not in url:
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)

        if url.startswith("sqlite:///") and "+aiosqlite" not in url:
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)

        return url

    # MUST be False in production to prevent SQL query exposure
    DATABASE_ECHO: bool = False

    # ─────────────────────────────────────────────────────────────
    # CORS Configuration
    # The admin API is called cross-origin from the static site,
    # so the default is permissive.
    # ─────────────────────────────────────────────────────────────
    CORS_ORIGINS: str = "*"

    # ─────────────────────────────────────────────────────────────
    # Image uploads (local blob store)
    # ─────────────────────────────────────────────────────────────
    UPLOAD_DIR: str = "./uploads"
    UPLOAD_MAX_BYTES: int = 5 * 1024 * 1024
    UPLOAD_ALLOWED_PREFIXES: str = "projects/,settings/"
    PUBLIC_BASE_URL: str = "http://localhost:8000"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def BACKEND_CORS_ORIGINS(self) -> List[str]:
        """Parse CORS_ORIGINS into a list of allowed origins ("*" kept as-is)."""
        return _split_csv(self.CORS_ORIGINS)

    @property
    def trusted_proxies(self) -> List[str]:
        return _split_csv(self.TRUSTED_PROXIES)

    @property
    def upload_allowed_prefixes(self) -> List[str]:
        return _split_csv(self.UPLOAD_ALLOWED_PREFIXES)

    @property
    def is_sqlite(self) -> bool:
        """Check if using SQLite database (local development)."""
        return "sqlite" in self.DATABASE_URL.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance.

    Using lru_cache ensures settings are only loaded once,
    providing consistent configuration across the application.
    """
    return Settings()


settings = get_settings()
