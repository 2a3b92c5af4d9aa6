"""
Application Configuration — Environment & Settings
Centralizes all config from .env with Pydantic Settings for validation.
"""
from pathlib import Path
from functools import lru_cache
from typing import Dict, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL

# Resolve paths relative to backend/ directory
BASE_DIR = Path(__file__).resolve().parent.parent

MEMBERSHIP_TYPES = ("lifetime", "monthly")

MPESA_BASE_URLS = {
    "sandbox": "https://sandbox.safaricom.co.ke",
    "production": "https://api.safaricom.co.ke",
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # --- Core ---
    APP_NAME: str = "Membership Registration API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    PORT: int = 3000

    # --- Database ---
    # DATABASE_URL wins unless DB_HOST is set, in which case a MySQL URL is built.
    DATABASE_URL: str = f"sqlite:///{BASE_DIR / 'data' / 'members.db'}"
    DB_HOST: Optional[str] = None
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    DB_NAME: str = "members"
    DB_PORT: int = 3306

    # --- M-Pesa (Daraja) ---
    MPESA_ENV: str = "sandbox"
    MPESA_CONSUMER_KEY: str = ""
    MPESA_CONSUMER_SECRET: str = ""
    MPESA_SHORTCODE: str = "174379"
    MPESA_PASSKEY: str = ""
    MPESA_CALLBACK_URL: str = "https://example.com/api/mpesa/callback"
    MPESA_ACCOUNT_REFERENCE: str = "Membership"
    MPESA_TRANSACTION_DESC: str = "Membership payment"
    GATEWAY_TIMEOUT_SECONDS: float = 30.0

    # --- Membership plans: amount (KES) -> membership type ---
    MEMBERSHIP_PLANS: Dict[int, str] = {2: "monthly", 5: "lifetime"}

    # --- Security ---
    CORS_ORIGINS: list[str] = ["*"]
    REGISTER_RATE_LIMIT: int = 5
    REGISTER_RATE_WINDOW: int = 60

    # --- Logging ---
    LOG_DIR: str = str(BASE_DIR / "logs")
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = str(BASE_DIR / ".env")
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("MEMBERSHIP_PLANS")
    @classmethod
    def validate_plans(cls, plans: Dict[int, str]) -> Dict[int, str]:
        if not plans:
            raise ValueError("MEMBERSHIP_PLANS must map at least one amount")
        for amount, membership_type in plans.items():
            if amount <= 0:
                raise ValueError(f"Plan amount must be positive, got {amount}")
            if membership_type not in MEMBERSHIP_TYPES:
                raise ValueError(
                    f"Unknown membership type '{membership_type}' for amount {amount}"
                )
        missing = set(MEMBERSHIP_TYPES) - set(plans.values())
        if missing:
            raise ValueError(f"No plan amount for membership type(s): {sorted(missing)}")
        return plans

    @field_validator("MPESA_ENV")
    @classmethod
    def validate_env(cls, value: str) -> str:
        if value not in MPESA_BASE_URLS:
            raise ValueError(f"MPESA_ENV must be one of {sorted(MPESA_BASE_URLS)}")
        return value

    @property
    def database_url(self) -> str:
        """Connection URL, built from the DB_* parts when DB_HOST is set."""
        if not self.DB_HOST:
            return self.DATABASE_URL
        url = URL.create(
            "mysql+pymysql",
            username=self.DB_USER,
            password=self.DB_PASSWORD,
            host=self.DB_HOST,
            port=self.DB_PORT,
            database=self.DB_NAME,
        )
        return url.render_as_string(hide_password=False)

    @property
    def mpesa_base_url(self) -> str:
        return MPESA_BASE_URLS[self.MPESA_ENV]


@lru_cache()
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()
