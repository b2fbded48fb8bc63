"""
Stream supervisor configuration.

Covers the encoder invocation (binary, audio encoding, output container) and
the restart policy applied when the encoder exits unexpectedly.
"""

from typing import Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class SupervisorConfig(BaseSettings):
    """Stream supervisor configuration from environment variables."""

    # Output
    endpoint: Optional[str] = Field(
        default=None,
        description="Streaming endpoint the encoder pushes to (e.g. rtmp://host/live/key)",
    )

    output_format: str = Field(
        default="flv",
        description="Output container format passed to -f",
    )

    # Input
    manifest_path: Optional[str] = Field(
        default="/var/lib/radio/playlist.txt",
        description="Concat manifest the encoder reads",
    )

    loop_playlist: bool = Field(
        default=True,
        description="Loop the manifest forever instead of exiting at its end",
    )

    # Audio encoding
    audio_codec: str = Field(default="aac", description="Audio codec")
    audio_bitrate: str = Field(default="128k", description="Audio bitrate")
    sample_rate: int = Field(default=44100, description="Output sample rate (Hz)")
    channels: int = Field(default=2, description="Output channel count", ge=1, le=8)

    # Encoder binary
    encoder_binary: str = Field(
        default="ffmpeg",
        description="Path to the encoder binary",
    )

    encoder_log_level: str = Field(
        default="warning",
        description="Encoder log level (quiet, panic, fatal, error, warning, info, verbose, debug)",
    )

    # Process management
    restart_backoff: float = Field(
        default=5.0,
        description="Delay before restarting an encoder that exited unexpectedly (seconds)",
        ge=0.0,
        le=300.0,
    )

    restart_delay: float = Field(
        default=1.0,
        description="Delay between stop and start for a requested restart (seconds)",
        ge=0.0,
        le=60.0,
    )

    stop_timeout: float = Field(
        default=10.0,
        description="Grace period after the interrupt signal before killing (seconds)",
        gt=0.0,
        le=120.0,
    )

    stderr_tail_lines: int = Field(
        default=20,
        description="Encoder stderr lines kept for crash reports",
        ge=0,
        le=1000,
    )

    model_config = ConfigDict(
        env_prefix="STREAM_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


def get_config() -> SupervisorConfig:
    """
    Get stream supervisor configuration from environment variables.

    Returns:
        SupervisorConfig: Configuration instance
    """
    return SupervisorConfig()
