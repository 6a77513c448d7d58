"""Configuration management for shelfclub.

Loads configuration from environment variables and provides defaults.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


@dataclass
class Config:
    """Application configuration."""

    # Database
    db_path: Path

    # Acting user for the CLI
    user_id: Optional[str]

    # Logging
    log_level: str

    # Catalog providers
    http_timeout: float  # seconds
    request_interval: float  # seconds between catalog requests
    catalog_language: Optional[str]
    google_books_api_key: Optional[str]

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "SHELFCLUB_DB_PATH",
            str(Path.home() / ".shelfclub" / "shelfclub.db"),
        )
        db_path = Path(db_path_str).expanduser()

        return cls(
            db_path=db_path,
            user_id=os.environ.get("SHELFCLUB_USER") or None,
            log_level=os.environ.get("SHELFCLUB_LOG_LEVEL", "WARNING").upper(),
            http_timeout=float(os.environ.get("SHELFCLUB_HTTP_TIMEOUT", "10")),
            request_interval=float(os.environ.get("SHELFCLUB_REQUEST_INTERVAL", "0.5")),
            catalog_language=os.environ.get("SHELFCLUB_CATALOG_LANGUAGE") or None,
            google_books_api_key=os.environ.get("GOOGLE_BOOKS_API_KEY") or None,
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        # Check database directory is writable
        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if not isinstance(logging.getLevelName(self.log_level), int):
            errors.append(f"Unknown log level: {self.log_level}")

        if self.http_timeout <= 0:
            errors.append("SHELFCLUB_HTTP_TIMEOUT must be positive")

        return errors


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config.from_env()
    return _config


def reset_config() -> None:
    """Reset the global config instance. Used for testing."""
    global _config
    _config = None
