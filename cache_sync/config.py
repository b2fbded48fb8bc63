"""
Cache synchronizer configuration.
"""

from typing import Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class SyncConfig(BaseSettings):
    """Cache synchronizer configuration from environment variables."""

    # Remote source
    remote_manifest_url: Optional[str] = Field(
        default=None,
        description="URL of the authoritative remote concat manifest",
    )

    manifest_marker: str = Field(
        default="ffconcat version 1.0",
        description="Header line a remote manifest must start with",
    )

    # Local cache
    cache_dir: str = Field(
        default="/var/lib/radio/cache",
        description="Persistent directory holding downloaded audio files",
    )

    # HTTP
    request_timeout: float = Field(
        default=30.0,
        description="Timeout for each HTTP request (seconds)",
        gt=0.0,
        le=600.0,
    )

    max_concurrent_downloads: int = Field(
        default=2,
        description="Downloads running at the same time within one sync",
        ge=1,
        le=16,
    )

    chunk_size: int = Field(
        default=64 * 1024,
        description="Read size when streaming a download to disk (bytes)",
        ge=1024,
    )

    user_agent: str = Field(
        default="radio-engine/1.0",
        description="User-Agent header sent with every request",
    )

    model_config = ConfigDict(
        env_prefix="SYNC_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_config() -> SyncConfig:
    """
    Get cache synchronizer configuration from environment variables.

    Returns:
        SyncConfig: Configuration instance
    """
    return SyncConfig()
