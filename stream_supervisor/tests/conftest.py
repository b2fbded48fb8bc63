"""
Pytest configuration and fixtures for stream supervisor tests.
"""

import asyncio
import signal
import tempfile
from pathlib import Path
from typing import Callable, Generator, List, Optional

import pytest

from stream_supervisor.command_builder import EncoderCommandBuilder
from stream_supervisor.config import SupervisorConfig
from stream_supervisor.supervisor import StreamSupervisor


class FakeProcess:
    """Stand-in for asyncio.subprocess.Process driven by the test."""

    def __init__(
        self, pid: int, ignore_interrupt: bool = False, stderr_limit: int = 2**16
    ):
        self.pid = pid
        self.returncode: Optional[int] = None
        self.stderr = asyncio.StreamReader(limit=stderr_limit)
        self.signals: List[int] = []
        self.ignore_interrupt = ignore_interrupt
        self._exited = asyncio.Event()

    def write_stderr(self, line: str) -> None:
        self.stderr.feed_data(f"{line}\n".encode())

    def exit(self, code: int) -> None:
        if self.returncode is not None:
            return
        self.returncode = code
        self.stderr.feed_eof()
        self._exited.set()

    async def wait(self) -> int:
        await self._exited.wait()
        return self.returncode

    def send_signal(self, sig: int) -> None:
        self.signals.append(sig)
        if not self.ignore_interrupt:
            self.exit(255)

    def kill(self) -> None:
        self.signals.append(signal.SIGKILL)
        self.exit(-signal.SIGKILL)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def manifest_path(temp_dir: Path) -> Path:
    """Create a manifest file for testing."""
    path = temp_dir / "playlist.txt"
    path.write_text("ffconcat version 1.0\n# playlist empty, waiting for tracks\n")
    return path


@pytest.fixture
def test_config(manifest_path: Path) -> SupervisorConfig:
    """Create a test configuration with short timers."""
    return SupervisorConfig(
        endpoint="rtmp://test-server:1935/live/test",
        manifest_path=str(manifest_path),
        encoder_binary="ffmpeg",
        restart_backoff=0.05,
        restart_delay=0.02,
        stop_timeout=0.1,
        stderr_tail_lines=5,
    )


@pytest.fixture
def command_builder(test_config: SupervisorConfig) -> EncoderCommandBuilder:
    """Create a command builder for testing."""
    return EncoderCommandBuilder(test_config)


@pytest.fixture
def supervisor(test_config: SupervisorConfig) -> StreamSupervisor:
    """Create a supervisor for testing."""
    return StreamSupervisor(config=test_config)


@pytest.fixture
def process_factory() -> Callable[..., FakeProcess]:
    """Build fake processes with increasing PIDs."""
    counter = {"pid": 4000}

    def make(ignore_interrupt: bool = False, stderr_limit: int = 2**16) -> FakeProcess:
        counter["pid"] += 1
        return FakeProcess(
            counter["pid"], ignore_interrupt=ignore_interrupt, stderr_limit=stderr_limit
        )

    return make
