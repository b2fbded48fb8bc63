"""Shared types for the radio engine services.

Holds the exception hierarchy and the playback mode enumeration used by the
cache synchronizer, manifest generator, stream supervisor and control API.
"""

from shared.exceptions import (
    ConfigurationError,
    FetchError,
    LaunchError,
    ManifestWriteError,
    RadioEngineError,
    ValidationError,
)
from shared.modes import PlaybackMode

__all__ = [
    "ConfigurationError",
    "FetchError",
    "LaunchError",
    "ManifestWriteError",
    "PlaybackMode",
    "RadioEngineError",
    "ValidationError",
]
