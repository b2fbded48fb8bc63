"""
Control API configuration management.

Covers the HTTP listener, the shared-secret credential for mutating routes,
the playback mode and logging destinations.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from shared.modes import PlaybackMode

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class ApiConfig:
    """Control API configuration.

    Attributes:
        api_key: Shared secret expected in the X-API-Key header
        mode: Playback mode selecting how the manifest is built
        host: Bind address
        port: Bind port
        log_level: Root log level
        log_path: Directory for the rotating JSON log file (console only if unset)
        log_file_max_bytes: Size at which the log file rotates
        log_file_backup_count: Rotated files to keep
        autostart: Regenerate the manifest and start streaming on startup
        restart_delay: Seconds between stop and start on regenerate (supervisor default if unset)
    """

    api_key: str = ""
    mode: PlaybackMode = PlaybackMode.REMOTE_DRIVEN
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    log_path: Optional[str] = None
    log_file_max_bytes: int = 10 * 1024 * 1024
    log_file_backup_count: int = 5
    autostart: bool = True
    restart_delay: Optional[float] = None

    @classmethod
    def from_env(cls) -> "ApiConfig":
        """Load configuration from environment variables.

        Returns:
            ApiConfig instance populated from environment

        Raises:
            ValueError: If RADIO_MODE is not a known playback mode
        """
        raw_mode = os.getenv("RADIO_MODE", PlaybackMode.REMOTE_DRIVEN.value).strip().lower()
        try:
            mode = PlaybackMode(raw_mode)
        except ValueError:
            choices = ", ".join(m.value for m in PlaybackMode)
            raise ValueError(f"RADIO_MODE must be one of: {choices}") from None

        restart_delay = os.getenv("RADIO_RESTART_DELAY")

        return cls(
            api_key=os.getenv("RADIO_API_KEY", ""),
            mode=mode,
            host=os.getenv("RADIO_HOST", "0.0.0.0"),
            port=int(os.getenv("RADIO_PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_path=os.getenv("LOG_PATH") or None,
            log_file_max_bytes=int(os.getenv("LOG_FILE_MAX_BYTES", str(10 * 1024 * 1024))),
            log_file_backup_count=int(os.getenv("LOG_FILE_BACKUP_COUNT", "5")),
            autostart=os.getenv("RADIO_AUTOSTART", "true").lower() == "true",
            restart_delay=float(restart_delay) if restart_delay else None,
        )

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)

    def validate(self) -> None:
        """Validate configuration values.

        Raises:
            ValueError: If configuration is invalid
        """
        if not self.api_key:
            raise ValueError("RADIO_API_KEY environment variable is required")
        if len(self.api_key) < 16:
            raise ValueError("RADIO_API_KEY must be at least 16 characters")
        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(LOG_LEVELS)}")
        if not 1 <= self.port <= 65535:
            raise ValueError("RADIO_PORT must be between 1 and 65535")
        if self.restart_delay is not None and self.restart_delay < 0:
            raise ValueError("RADIO_RESTART_DELAY cannot be negative")


def get_config() -> ApiConfig:
    """Get validated control API configuration.

    Returns:
        Validated ApiConfig instance

    Raises:
        ValueError: If configuration is invalid
    """
    config = ApiConfig.from_env()
    config.validate()
    return config
