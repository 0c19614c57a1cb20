"""Application settings and environment variables."""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


class Settings:
    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_PORT: int = int(os.getenv("DB_PORT", "3306"))
    DB_DATABASE: str = os.getenv("DB_NAME", "cidms_db")
    DB_USER: str = os.getenv("DB_USER", "user")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "password")

    # Pub/sub relay that fans events out to connected socket clients
    EVENT_RELAY_URL: Optional[str] = os.getenv("EVENT_RELAY_URL")
    EVENT_RELAY_TOKEN: Optional[str] = os.getenv("EVENT_RELAY_TOKEN")
    EVENT_RELAY_TIMEOUT: int = int(os.getenv("EVENT_RELAY_TIMEOUT", "10"))

    # Catalog defaults
    DEFAULT_MIN_STOCK_LEVEL: int = int(os.getenv("DEFAULT_MIN_STOCK_LEVEL", "10"))
    DEFAULT_UNIT: str = os.getenv("DEFAULT_UNIT", "piece")

    # Ledger browsing
    MOVEMENT_PAGE_SIZE: int = int(os.getenv("MOVEMENT_PAGE_SIZE", "10"))
    MOVEMENT_MAX_PAGE_SIZE: int = int(os.getenv("MOVEMENT_MAX_PAGE_SIZE", "100"))

    # Retries of the read-compute-write sequence on deadlock / lock wait timeout
    CONFLICT_MAX_RETRIES: int = int(os.getenv("CONFLICT_MAX_RETRIES", "3"))

    LOW_STOCK_SWEEP_INTERVAL_MINUTES: int = int(os.getenv("LOW_STOCK_SWEEP_INTERVAL_MINUTES", "30"))

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")  # INFO, DEBUG, WARNING, ERROR, CRITICAL


settings = Settings()
