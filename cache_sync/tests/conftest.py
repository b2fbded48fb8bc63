"""
Pytest configuration and fixtures for cache synchronizer tests.
"""

import tempfile
from pathlib import Path
from typing import Callable, Dict, Generator, List, Union

import httpx
import pytest

from cache_sync.config import SyncConfig

MANIFEST_URL = "https://radio.example.com/master/playlist.txt"

Route = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


class FakeRemote:
    """In-memory HTTP origin backed by httpx.MockTransport."""

    manifest_url = MANIFEST_URL

    def __init__(self):
        self.routes: Dict[str, Route] = {}
        self.requests: List[str] = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url)
        if route is None:
            return httpx.Response(404, text="not found")
        if callable(route):
            return route(request)
        return route

    def serve_manifest(self, text: str, url: str = MANIFEST_URL) -> None:
        self.routes[url] = httpx.Response(200, text=text)

    def serve_file(self, url: str, content: bytes) -> None:
        self.routes[url] = httpx.Response(200, content=content)

    def downloads(self) -> List[str]:
        return [url for url in self.requests if url != MANIFEST_URL]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def cache_dir(temp_dir: Path) -> Path:
    """Cache directory path (not created yet)."""
    return temp_dir / "cache"


@pytest.fixture
def test_config(cache_dir: Path) -> SyncConfig:
    """Create a test configuration."""
    return SyncConfig(
        remote_manifest_url=MANIFEST_URL,
        cache_dir=str(cache_dir),
        request_timeout=5.0,
        max_concurrent_downloads=1,
        chunk_size=1024,
    )


@pytest.fixture
def remote() -> FakeRemote:
    """Create a fake remote origin."""
    return FakeRemote()
