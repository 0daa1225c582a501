"""
Application Configuration — Environment & Settings
Centralizes all config from .env with Pydantic Settings for validation.
"""
from pathlib import Path
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Core ---
    APP_NAME: str = "Solar Portal Payments API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # --- Database ---
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'solar_portal.db'}"

    # --- Web ---
    CORS_ORIGINS: list[str] = ["*"]
    FRONTEND_URL: str = "http://localhost:8080"

    # --- Auth (JWTs minted by the hosted auth provider) ---
    AUTH_JWT_SECRET: str
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str = "authenticated"

    # --- ZarinPal gateway ---
    ZARINPAL_MERCHANT_ID: str
    ZARINPAL_BASE_URL: str = "https://sandbox.zarinpal.com"
    GATEWAY_TIMEOUT_SECONDS: float = 15.0

    # --- Payment flow ---
    PAYMENT_FALLBACK_MOBILE: Optional[str] = None
    PAYMENT_RECORD_INSERT_ATTEMPTS: int = 2
    PAYMENT_REJECT_TERMINAL_REVERIFY: bool = False
    PAYMENT_RATE_LIMIT_REQUESTS: int = 5
    PAYMENT_RATE_LIMIT_WINDOW: int = 60

    # --- Logging ---
    LOG_DIR: str = str(BASE_DIR / "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
