"""Configuration management for schoollib.

Loads configuration from environment variables and provides defaults.
"""

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

    # GraphQL gateway
    gateway_url: Optional[str]
    gateway_token: Optional[str]
    gateway_timeout: float  # seconds

    # Listings
    page_size: int

    # Logging
    log_level: str

    # Signed-in session token for the CLI
    session_path: Path

    # How often a running announcement scheduler rescans the table
    sync_interval: int = 30  # seconds

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        db_path_str = os.environ.get(
            "SCHOOLLIB_DB_PATH",
            str(Path.home() / ".schoollib" / "library.db"),
        )
        db_path = Path(db_path_str).expanduser() if db_path_str != ":memory:" else Path(db_path_str)

        return cls(
            db_path=db_path,
            gateway_url=os.environ.get("SCHOOLLIB_GATEWAY_URL"),
            gateway_token=os.environ.get("SCHOOLLIB_GATEWAY_TOKEN"),
            gateway_timeout=float(os.environ.get("SCHOOLLIB_GATEWAY_TIMEOUT", "30")),
            page_size=int(os.environ.get("SCHOOLLIB_PAGE_SIZE", "10")),
            log_level=os.environ.get("SCHOOLLIB_LOG_LEVEL", "WARNING").upper(),
            session_path=Path(
                os.environ.get("SCHOOLLIB_SESSION_PATH", str(Path.home() / ".schoollib" / "session"))
            ).expanduser(),
            sync_interval=int(os.environ.get("SCHOOLLIB_SYNC_INTERVAL", "30")),
        )

    def validate(self) -> list[str]:
        """Validate configuration, return list of errors."""
        errors = []

        if str(self.db_path) != ":memory:" and not self.db_path.parent.exists():
            try:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            except PermissionError:
                errors.append(f"Cannot create database directory: {self.db_path.parent}")

        if self.gateway_token and not self.gateway_url:
            errors.append("SCHOOLLIB_GATEWAY_TOKEN is set but SCHOOLLIB_GATEWAY_URL is missing")

        if self.page_size < 1:
            errors.append("SCHOOLLIB_PAGE_SIZE must be at least 1")

        if self.sync_interval < 1:
            errors.append("SCHOOLLIB_SYNC_INTERVAL must be at least 1")

        return errors

    def has_gateway_config(self) -> bool:
        """Check if gateway configuration is present."""
        return bool(self.gateway_url and self.gateway_token)


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
