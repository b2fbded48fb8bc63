"""Playlist Store Configuration

Configuration management for the playlist store.
"""

import os
from dataclasses import dataclass


@dataclass
class PlaylistStoreConfig:
    """Configuration for the playlist store.

    All configuration is loaded from environment variables with sensible defaults.
    """

    database_url: str = "sqlite:///./radio.db"

    # Pool configuration (ignored for SQLite)
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600  # Recycle connections after 1 hour

    debug: bool = False

    @classmethod
    def from_env(cls) -> "PlaylistStoreConfig":
        """Load configuration from environment variables.

        Returns:
            PlaylistStoreConfig instance populated from environment
        """
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./radio.db"),
            db_pool_size=int(os.getenv("DB_POOL_SIZE", "5")),
            db_max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
            db_pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
            db_pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "3600")),
            debug=os.getenv("DEBUG", "false").lower() == "true",
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.database_url:
            raise ValueError("DATABASE_URL is required")

        if self.db_pool_size < 1:
            raise ValueError("DB_POOL_SIZE must be at least 1")

    def __repr__(self) -> str:
        """String representation (hides credentials)."""
        scheme = self.database_url.split("://", 1)[0]
        return f"PlaylistStoreConfig(backend={scheme}, pool_size={self.db_pool_size})"
