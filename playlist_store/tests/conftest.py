"""
Pytest fixtures for playlist store tests.
"""

import pytest

from playlist_store.config import PlaylistStoreConfig
from playlist_store.store import PlaylistStore


@pytest.fixture
def test_config() -> PlaylistStoreConfig:
    """Configuration backed by an in-memory SQLite database."""
    return PlaylistStoreConfig(database_url="sqlite:///:memory:")


@pytest.fixture
def store(test_config: PlaylistStoreConfig):
    """Fresh store per test."""
    playlist_store = PlaylistStore(test_config)
    yield playlist_store
    playlist_store.close()


@pytest.fixture
def populated_store(store: PlaylistStore) -> PlaylistStore:
    """Store with three active items."""
    store.add_item("Opening Jingle", "https://cdn.example.com/jingle.mp3", 8, "jingle")
    store.add_item("First Song", "https://cdn.example.com/first.mp3", 215.5)
    store.add_item("Sponsor Spot", "/srv/audio/sponsor.mp3", 30, "advertisement")
    return store
