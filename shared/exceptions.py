"""Exception hierarchy for the radio engine.

Every error raised on purpose by the engine derives from RadioEngineError so
the control API can map the whole family to HTTP responses in one place.
"""

from typing import Optional


class RadioEngineError(Exception):
    """Base class for radio engine errors."""


class ConfigurationError(RadioEngineError):
    """Raised when a required setting is missing at the time it is needed."""


class LaunchError(RadioEngineError):
    """Raised when the encoder binary cannot be executed at all."""

    def __init__(self, binary: str, reason: str):
        self.binary = binary
        self.reason = reason
        super().__init__(f"Failed to launch encoder '{binary}': {reason}")


class FetchError(RadioEngineError):
    """Raised when a remote manifest or audio file cannot be retrieved."""

    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {reason}")


class ValidationError(RadioEngineError):
    """Raised when a remote manifest does not follow the expected format."""


class ManifestWriteError(RadioEngineError):
    """Raised when the manifest file cannot be replaced on disk."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write manifest {path}: {reason}")
