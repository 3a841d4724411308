"""
Configuration module for Ephemeral Paste.
Loads environment variables and provides the settings object.
"""
import os
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes")


class Settings:
    """Application settings loaded from environment variables."""

    # "sqlite", "redis", or empty for auto-detection
    DB_DRIVER: str = os.getenv("DB_DRIVER", "").strip().lower()
    REDIS_URL: Optional[str] = os.getenv("REDIS_URL") or None
    SQLITE_DB_PATH: str = os.getenv("SQLITE_DB_PATH", "").strip() or os.path.join(
        ".data", "pastebin.sqlite"
    )
    APP_DOMAIN: Optional[str] = os.getenv("APP_DOMAIN") or None
    DEBUG: bool = _env_flag("DEBUG")
    TEST_MODE: bool = _env_flag("TEST_MODE")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(1024 * 1024)))

    def resolved_driver(self) -> str:
        """
        Pick the storage driver.

        An explicit DB_DRIVER wins. Otherwise Redis is used when REDIS_URL
        is configured, and SQLite is the local default.
        """
        if self.DB_DRIVER:
            return self.DB_DRIVER
        if self.REDIS_URL:
            return "redis"
        return "sqlite"

    def sqlite_path(self) -> str:
        """Absolute path of the SQLite database file."""
        if os.path.isabs(self.SQLITE_DB_PATH):
            return self.SQLITE_DB_PATH
        return os.path.join(os.getcwd(), self.SQLITE_DB_PATH)


settings = Settings()
