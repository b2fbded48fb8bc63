"""
Pytest fixtures for control API tests.
"""

import tempfile
from pathlib import Path
from typing import Dict, Generator
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from cache_sync.config import SyncConfig
from cache_sync.synchronizer import CacheSynchronizer, SyncResult
from control_api.config import ApiConfig
from control_api.controller import RadioController
from control_api.main import create_app
from playlist_manifest.config import ManifestConfig
from playlist_manifest.generator import ManifestGenerator
from playlist_store.config import PlaylistStoreConfig
from playlist_store.store import PlaylistStore
from shared.modes import PlaybackMode
from stream_supervisor.config import SupervisorConfig

API_KEY = "test-api-key-0123456789"
MANIFEST_URL = "https://radio.example.com/master/playlist.txt"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def api_config() -> ApiConfig:
    """API configuration without autostart."""
    return ApiConfig(api_key=API_KEY, autostart=False)


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"X-API-Key": API_KEY}


@pytest.fixture
def store():
    """In-memory playlist store."""
    playlist_store = PlaylistStore(PlaylistStoreConfig(database_url="sqlite:///:memory:"))
    yield playlist_store
    playlist_store.close()


@pytest.fixture
def mock_controller(store: PlaylistStore) -> MagicMock:
    """Controller double with a real store and canned results."""
    controller = MagicMock(spec=RadioController)
    controller.mode = PlaybackMode.REMOTE_DRIVEN
    controller.store = store
    controller.sync_library = AsyncMock(
        return_value=SyncResult(downloaded=2, already_cached=1, local_paths=["/c/a.mp3"])
    )
    controller.regenerate = AsyncMock(
        return_value={"mode": "remote_driven", "entries": 1, "restart_in_seconds": 1.0}
    )
    controller.sync_and_regenerate = AsyncMock(
        return_value={"mode": "remote_driven", "entries": 1, "sync": {"downloaded": 2}}
    )
    controller.start_stream = AsyncMock(return_value={"state": "starting", "armed": True})
    controller.stop_stream = AsyncMock(return_value={"state": "idle", "armed": False})
    controller.get_status.return_value = {
        "mode": "remote_driven",
        "stream": {"state": "running", "pid": 4321},
        "last_sync": None,
        "last_regenerate": None,
    }
    controller.cleanup = AsyncMock()
    return controller


@pytest.fixture
def client(api_config: ApiConfig, mock_controller: MagicMock):
    """Test client running the app lifespan."""
    app = create_app(api_config, mock_controller)
    with TestClient(app) as test_client:
        yield test_client


class FakeOrigin:
    """Serves fixed responses by URL through httpx.MockTransport."""

    def __init__(self):
        self.responses: Dict[str, httpx.Response] = {}
        self.requests = []
        self.transport = httpx.MockTransport(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        return self.responses.get(url, httpx.Response(404))

    def serve(self, url: str, content: bytes) -> None:
        self.responses[url] = httpx.Response(200, content=content)


@pytest.fixture
def origin() -> FakeOrigin:
    return FakeOrigin()


@pytest.fixture
def cache_dir(temp_dir: Path) -> Path:
    path = temp_dir / "cache"
    path.mkdir()
    return path


@pytest.fixture
def supervisor(temp_dir: Path) -> MagicMock:
    """Supervisor double recording restart requests."""
    double = MagicMock()
    double.config = SupervisorConfig(
        endpoint="rtmp://localhost/live/test",
        manifest_path=str(temp_dir / "playlist.txt"),
        restart_delay=0.5,
    )
    double.restart_with_delay = AsyncMock()
    double.start = AsyncMock()
    double.stop = AsyncMock()
    double.cleanup = AsyncMock()
    double.get_status.return_value = {"state": "idle", "armed": False}
    return double


@pytest.fixture
def make_controller(store, origin, cache_dir, supervisor):
    """Build a controller over real store, synchronizer and generator."""

    def factory(mode: PlaybackMode, restart_delay=None) -> RadioController:
        synchronizer = CacheSynchronizer(
            SyncConfig(remote_manifest_url=MANIFEST_URL, cache_dir=str(cache_dir)),
            transport=origin.transport,
        )
        generator = ManifestGenerator(ManifestConfig(shuffle_seed=7))
        return RadioController(
            mode=mode,
            store=store,
            synchronizer=synchronizer,
            generator=generator,
            supervisor=supervisor,
            restart_delay=restart_delay,
        )

    return factory
