"""Playback mode selection."""

from enum import Enum


class PlaybackMode(str, Enum):
    """How the playback manifest is assembled.

    REMOTE_DRIVEN plays the playlist store's active entries in their explicit
    order, downloading remote sources into the cache first.
    AUTONOMOUS_SHUFFLE plays whatever audio already sits in the cache directory,
    shuffled, without touching the network.
    HYBRID_CACHE mirrors the remote master manifest into the cache and plays
    it in the remote order.
    """

    REMOTE_DRIVEN = "remote_driven"
    AUTONOMOUS_SHUFFLE = "autonomous_shuffle"
    HYBRID_CACHE = "hybrid_cache"
