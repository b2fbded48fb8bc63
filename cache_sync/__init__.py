"""
Cache Synchronizer

Mirrors the audio referenced by a remote master manifest into a persistent
local cache directory, downloading only what is missing.
"""

from cache_sync.config import SyncConfig
from cache_sync.synchronizer import (
    CacheSynchronizer,
    SyncResult,
    cache_filename,
    is_remote_uri,
    parse_remote_manifest,
)

__all__ = [
    "CacheSynchronizer",
    "SyncConfig",
    "SyncResult",
    "cache_filename",
    "is_remote_uri",
    "parse_remote_manifest",
]
