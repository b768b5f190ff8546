"""
Application configuration.

All configuration is loaded from environment variables.
Never hardcode secrets or connection strings in code.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv

# Load .env file into environment variables
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = os.getenv("APP_NAME", "Expense Ledger")
    APP_VERSION: str = "0.1.0"
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "8000"))

    # Database
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./expense_ledger.db"
    )

    # Ledger
    DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "INR").upper()
    LEDGER_MAX_RETRIES: int = int(os.getenv("LEDGER_MAX_RETRIES", "3"))
    RECOVER_PENDING_ON_STARTUP: bool = (
        os.getenv("RECOVER_PENDING_ON_STARTUP", "true").lower() == "true"
    )

    # Paging
    DEFAULT_PAGE_SIZE: int = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
    MAX_ENTRY_PAGE_SIZE: int = int(os.getenv("MAX_ENTRY_PAGE_SIZE", "100"))
    MAX_ACCOUNT_PAGE_SIZE: int = int(os.getenv("MAX_ACCOUNT_PAGE_SIZE", "50"))

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")


@lru_cache()
def get_settings() -> Settings:
    """
    Return cached settings instance.

    Using lru_cache means the Settings object is created once
    and reused for all subsequent calls.
    """
    return Settings()
