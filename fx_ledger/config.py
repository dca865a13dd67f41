"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from decimal import Decimal
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


def _csv(value: str) -> list[str]:
    return [item.strip().upper() for item in value.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "FX Ledger"
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "postgresql://localhost:5432/fx_ledger"
    )

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Ledger
    # Buy/Sell trades are priced against this currency
    SETTLEMENT_CURRENCY: str = os.getenv("SETTLEMENT_CURRENCY", "TTD").upper()
    # Accounts created at startup if missing
    CURRENCIES: list[str] = _csv(os.getenv("CURRENCIES", "TTD,USD,EUR,GBP,CAD"))
    MAX_AMOUNT: Decimal = Decimal(os.getenv("MAX_AMOUNT", "100000000"))
    MAX_EXCHANGE_RATE: Decimal = Decimal(os.getenv("MAX_EXCHANGE_RATE", "1000"))

    # Optimistic concurrency
    CAS_MAX_RETRIES: int = int(os.getenv("CAS_MAX_RETRIES", "5"))
    UNIT_MAX_ATTEMPTS: int = int(os.getenv("UNIT_MAX_ATTEMPTS", "3"))
    RETRY_BACKOFF_SECONDS: float = float(os.getenv("RETRY_BACKOFF_SECONDS", "0.01"))


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls.
    """
    return Settings()
