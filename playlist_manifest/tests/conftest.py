"""
Pytest configuration and fixtures for manifest generator tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from playlist_manifest.config import ManifestConfig
from playlist_manifest.generator import ManifestGenerator


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def audio_dir(temp_dir: Path) -> Path:
    """Cache directory with a mix of audio and non-audio files."""
    cache = temp_dir / "cache"
    cache.mkdir()
    for name in ["b_song.mp3", "a_jingle.MP3", "c_ad.ogg", "notes.txt", "d_song.mp3.part"]:
        (cache / name).touch()
    (cache / "subdir.mp3").mkdir()
    return cache


@pytest.fixture
def test_config() -> ManifestConfig:
    """Create a test configuration."""
    return ManifestConfig(audio_extensions="mp3, .ogg", shuffle_seed=1234)


@pytest.fixture
def generator(test_config: ManifestConfig) -> ManifestGenerator:
    """Create a manifest generator for testing."""
    return ManifestGenerator(config=test_config)
