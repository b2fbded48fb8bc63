"""Playlist Store - ordered playlist items with database backing.

Persists the items an operator adds to the station playlist and serves the
active ones in play order to the manifest generator.
"""

from playlist_store.config import PlaylistStoreConfig
from playlist_store.store import ENTRY_KINDS, PlaylistEntry, PlaylistStore

__version__ = "1.0.0"
__all__ = ["ENTRY_KINDS", "PlaylistEntry", "PlaylistStore", "PlaylistStoreConfig"]
