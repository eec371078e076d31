"""
Playbooq configuration: all environment variables in one place.

Read from environment at runtime. Never hardcode secrets.
"""

from __future__ import annotations

import os


class Settings:
    """Application settings from environment variables."""

    # Database
    DATABASE_URL: str = os.environ.get("DATABASE_URL", "")
    DB_POOL_MIN_SIZE: int = int(os.environ.get("DB_POOL_MIN_SIZE", "2"))
    DB_POOL_MAX_SIZE: int = int(os.environ.get("DB_POOL_MAX_SIZE", "20"))
    DB_COMMAND_TIMEOUT_SECONDS: float = float(os.environ.get("DB_COMMAND_TIMEOUT_SECONDS", "60"))

    # Auth (session tokens issued by the identity provider)
    AUTH_JWT_SECRET: str = os.environ.get("AUTH_JWT_SECRET", "")
    AUTH_JWT_ALGORITHM: str = os.environ.get("AUTH_JWT_ALGORITHM", "HS256")
    AUTH_JWT_ISSUER: str = os.environ.get("AUTH_JWT_ISSUER", "")
    AUTH_SESSION_COOKIE: str = "__session"
    JWT_EXPIRY_HOURS: int = 24

    # Email (Resend)
    RESEND_API_KEY: str = os.environ.get("RESEND_API_KEY", "")
    EMAIL_FROM: str = os.environ.get("EMAIL_FROM", "Playbooq.AI <noreply@playbooq.ai>")

    # Application
    ENVIRONMENT: str = os.environ.get("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    @property
    def APP_URL(self) -> str:
        url = os.environ.get("APP_URL")
        if url:
            return url.rstrip("/")
        return "http://localhost:3001" if self.ENVIRONMENT == "development" else "https://playbooq.ai"

    # Timers (seconds)
    MARKETPLACE_SEARCH_DEBOUNCE_SECONDS: float = float(os.environ.get("MARKETPLACE_SEARCH_DEBOUNCE_SECONDS", "0.5"))
    AUTOSAVE_DELAY_SECONDS: float = float(os.environ.get("AUTOSAVE_DELAY_SECONDS", "2.0"))
    TYPING_INDICATOR_SECONDS: float = float(os.environ.get("TYPING_INDICATOR_SECONDS", "3.0"))

    # Limits
    CHAT_PAGE_SIZE: int = 50
    MARKETPLACE_PAGE_SIZE: int = 24
    FEATURED_PLAYBOOKS_LIMIT: int = 6
    MAX_TEMP_PLAYBOOKS: int = 2

    # Local storage for unsaved playbooks
    TEMP_PLAYBOOK_STORE: str = os.environ.get(
        "TEMP_PLAYBOOK_STORE",
        os.path.join(os.path.expanduser("~"), ".playbooq", "temp-playbooks.json"),
    )


# Singleton instance
settings = Settings()

# Validate required settings (skip in test mode)
_testing = os.environ.get("TESTING", "").lower() == "true"

if not settings.DATABASE_URL:
    raise RuntimeError("DATABASE_URL environment variable is required")
if not settings.AUTH_JWT_SECRET:
    raise RuntimeError("AUTH_JWT_SECRET environment variable is required")

if not _testing:
    if not settings.RESEND_API_KEY:
        raise RuntimeError("RESEND_API_KEY environment variable is required")
