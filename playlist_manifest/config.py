"""
Manifest generator configuration.
"""

from typing import FrozenSet, Optional

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings


class ManifestConfig(BaseSettings):
    """Manifest generator configuration from environment variables."""

    audio_extensions: str = Field(
        default=".mp3,.aac,.m4a,.ogg,.opus,.flac,.wav",
        description="Comma-separated file extensions picked up when scanning the cache",
    )

    shuffle_seed: Optional[int] = Field(
        default=None,
        description="Fixed seed for autonomous shuffle mode (unset for a fresh order each time)",
    )

    model_config = ConfigDict(
        env_prefix="MANIFEST_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def extension_set(self) -> FrozenSet[str]:
        """Normalized extensions: lowercase, with a leading dot."""
        extensions = set()
        for raw in self.audio_extensions.split(","):
            ext = raw.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = f".{ext}"
            extensions.add(ext)
        return frozenset(extensions)


def get_config() -> ManifestConfig:
    """
    Get manifest configuration from environment variables.

    Returns:
        ManifestConfig: Configuration instance
    """
    return ManifestConfig()
