"""
Encoder process supervisor.

Owns the single encoder subprocess that streams the concat manifest, applies
the crash restart policy and serializes every state transition behind one
asyncio lock.

Exit notification works through a queue: a watcher task per process waits
for the exit and posts an ExitEvent carrying the ``armed`` flag as it was at
that moment. ``stop()`` clears that flag before signalling the process, so
the exit it causes is never mistaken for a crash.
"""

import asyncio
import logging
import signal
import subprocess
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Deque, Dict, Optional, Set

import psutil

from playlist_manifest.generator import write_manifest
from shared.exceptions import ConfigurationError, LaunchError
from stream_supervisor.command_builder import EncoderCommandBuilder
from stream_supervisor.config import SupervisorConfig

logger = logging.getLogger(__name__)


class EncoderState(str, Enum):
    """Supervisor states."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    EXITED_CLEAN = "exited_clean"
    CRASHED = "crashed"
    RESTART_PENDING = "restart_pending"


@dataclass
class EncoderProcess:
    """Handle for one encoder subprocess."""

    pid: int
    state: EncoderState
    started_at: datetime
    generation: int
    armed: bool = True
    last_exit_code: Optional[int] = None
    process: Optional[asyncio.subprocess.Process] = None
    stderr_tail: Deque[str] = field(default_factory=deque)


@dataclass(frozen=True)
class ExitEvent:
    """Notification that an encoder process has exited."""

    generation: int
    pid: int
    returncode: Optional[int]
    armed: bool


class StreamSupervisor:
    """
    Keeps one encoder process streaming, with automatic crash recovery.

    Features:
    - Idempotent start against the configured manifest and endpoint
    - Stop that disarms auto-restart before interrupting the process
    - Restart after a fixed backoff on any unexpected exit
    - Deferred restart with atomic manifest replacement for playlist changes
    - Launch failures surfaced to the caller, never retried automatically
    """

    def __init__(
        self,
        config: Optional[SupervisorConfig] = None,
        command_builder: Optional[EncoderCommandBuilder] = None,
    ):
        """
        Initialize the supervisor.

        Args:
            config: Supervisor configuration (creates default if not provided)
            command_builder: Command builder instance (creates default if not provided)
        """
        if config is None:
            from stream_supervisor.config import get_config

            config = get_config()

        self.config = config

        if command_builder is None:
            command_builder = EncoderCommandBuilder(config)

        self.command_builder = command_builder

        self._lock = asyncio.Lock()
        self._state = EncoderState.IDLE
        self._current: Optional[EncoderProcess] = None
        self._armed = False
        self._generation = 0
        self._restart_token = 0
        self._restart_count = 0

        self._exit_events: "asyncio.Queue[ExitEvent]" = asyncio.Queue()
        self._monitor_task: Optional[asyncio.Task] = None
        self._background_tasks: Set[asyncio.Task] = set()

        logger.info("Stream supervisor initialized")

    @property
    def state(self) -> EncoderState:
        return self._state

    @property
    def armed(self) -> bool:
        return self._armed

    @property
    def current_process(self) -> Optional[EncoderProcess]:
        return self._current

    async def start(self) -> None:
        """
        Start the encoder unless it is already running.

        Raises:
            ConfigurationError: If the endpoint or manifest path is not set
            LaunchError: If the encoder binary cannot be executed
        """
        async with self._lock:
            await self._start_locked()

    async def stop(self) -> None:
        """Stop the encoder, cancelling any pending automatic restart."""
        async with self._lock:
            await self._stop_locked()

    async def restart_with_delay(
        self,
        delay: Optional[float] = None,
        manifest_text: Optional[str] = None,
    ) -> None:
        """
        Stop the encoder and start it again after ``delay`` seconds.

        The encoder does not reload its input, so this is how a new manifest
        takes effect. When ``manifest_text`` is given the manifest file is
        replaced first, inside the same critical section; the running encoder
        keeps reading the file it already opened. A failed write leaves the
        current encoder untouched.

        Args:
            delay: Seconds between stop and start (uses config default if not provided)
            manifest_text: New manifest content to write before restarting

        Raises:
            ConfigurationError: If the endpoint or manifest path is not set
            ManifestWriteError: If the manifest cannot be replaced
        """
        delay = self.config.restart_delay if delay is None else delay

        async with self._lock:
            self._check_configuration()

            if manifest_text is not None:
                write_manifest(self.config.manifest_path, manifest_text)
                logger.info(f"Manifest replaced: {self.config.manifest_path}")

            await self._stop_locked()

            self._armed = True
            self._schedule_start_locked(delay)
            logger.info(f"Encoder restart scheduled in {delay}s")

    async def cleanup(self) -> None:
        """Stop the encoder and cancel background tasks."""
        logger.info("Cleaning up stream supervisor")

        await self.stop()

        tasks = list(self._background_tasks)
        if self._monitor_task:
            tasks.append(self._monitor_task)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._monitor_task = None

        logger.info("Cleanup complete")

    def _check_configuration(self) -> None:
        missing = []
        if not self.config.endpoint:
            missing.append("streaming endpoint")
        if not self.config.manifest_path:
            missing.append("manifest path")
        if missing:
            raise ConfigurationError(f"Cannot start encoder, missing: {', '.join(missing)}")

    async def _start_locked(self) -> None:
        if self._state in (EncoderState.STARTING, EncoderState.RUNNING):
            logger.debug("Encoder already running, start ignored")
            return

        try:
            self._check_configuration()
        except ConfigurationError as e:
            self._enter_idle()
            logger.error(str(e))
            raise

        cmd = self.command_builder.build_command()
        self._state = EncoderState.STARTING
        logger.info(f"Starting encoder: {self.config.manifest_path} -> {self.config.endpoint}")
        logger.debug(f"Command: {' '.join(cmd)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            self._enter_idle()
            logger.error(f"Failed to launch encoder '{cmd[0]}': {e}")
            raise LaunchError(cmd[0], str(e)) from e

        self._generation += 1
        handle = EncoderProcess(
            pid=process.pid,
            state=EncoderState.RUNNING,
            started_at=datetime.now(),
            generation=self._generation,
            process=process,
            stderr_tail=deque(maxlen=self.config.stderr_tail_lines),
        )
        self._current = handle
        self._armed = True
        self._state = EncoderState.RUNNING

        self._ensure_monitor()
        self._spawn(self._watch(handle))

        logger.info(f"Encoder started (PID: {process.pid})")

    async def _stop_locked(self) -> None:
        # Disarm first: the exit caused below must not look like a crash,
        # and any restart timer already scheduled must find nothing to do.
        self._armed = False
        self._restart_token += 1

        handle = self._current
        if handle is None or handle.process is None or handle.process.returncode is not None:
            if self._state != EncoderState.IDLE:
                logger.info("Encoder not running, pending restart cancelled")
            self._state = EncoderState.IDLE
            return

        handle.armed = False
        logger.info(f"Stopping encoder (PID: {handle.pid})")
        await self._terminate(handle)

        handle.state = EncoderState.EXITED_CLEAN
        self._state = EncoderState.IDLE
        logger.info("Encoder stopped")

    async def _terminate(self, handle: EncoderProcess) -> None:
        """Interrupt the process, escalating to SIGKILL after the stop timeout."""
        process = handle.process

        try:
            process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            logger.debug(f"Process {handle.pid} already gone")
            return

        try:
            await asyncio.wait_for(process.wait(), timeout=self.config.stop_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                f"Encoder {handle.pid} did not exit within {self.config.stop_timeout}s, killing"
            )
            try:
                process.kill()
            except ProcessLookupError:
                pass
            await process.wait()

        handle.last_exit_code = process.returncode

    def _enter_idle(self) -> None:
        self._armed = False
        self._restart_token += 1
        self._state = EncoderState.IDLE

    def _schedule_start_locked(self, delay: float) -> None:
        self._restart_token += 1
        self._state = EncoderState.RESTART_PENDING
        self._spawn(self._delayed_start(delay, self._restart_token))

    async def _delayed_start(self, delay: float, token: int) -> None:
        await asyncio.sleep(delay)

        async with self._lock:
            # The timer is never cancelled; a stop in the meantime leaves it inert.
            if (
                not self._armed
                or token != self._restart_token
                or self._state != EncoderState.RESTART_PENDING
            ):
                logger.debug("Scheduled encoder start no longer wanted, skipping")
                return

            try:
                await self._start_locked()
            except (ConfigurationError, LaunchError) as e:
                logger.error(f"Scheduled encoder start failed: {e}")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    def _ensure_monitor(self) -> None:
        if self._monitor_task is None or self._monitor_task.done():
            self._monitor_task = asyncio.create_task(self._monitor_exits())

    async def _watch(self, handle: EncoderProcess) -> None:
        """Drain stderr until EOF, then report the exit."""
        process = handle.process

        if process.stderr is not None:
            while True:
                try:
                    raw = await process.stderr.readline()
                except ValueError as e:
                    # Over-long line: the reader drops it, keep draining so the
                    # encoder never blocks on a full pipe
                    logger.debug(f"Skipped over-long encoder stderr line: {e}")
                    continue
                if not raw:
                    break
                line = raw.decode("utf-8", errors="replace").rstrip()
                if line:
                    handle.stderr_tail.append(line)
                    logger.debug(f"encoder[{handle.pid}]: {line}")

        returncode = await process.wait()
        await self._exit_events.put(
            ExitEvent(
                generation=handle.generation,
                pid=handle.pid,
                returncode=returncode,
                armed=handle.armed,
            )
        )

    async def _monitor_exits(self) -> None:
        """Consume exit notifications for the supervisor's lifetime."""
        logger.info("Starting encoder exit monitor")

        while True:
            try:
                event = await self._exit_events.get()
                await self._handle_exit(event)
            except asyncio.CancelledError:
                logger.info("Encoder exit monitor cancelled")
                break
            except Exception as e:
                logger.error(f"Error handling encoder exit: {e}", exc_info=True)

    async def _handle_exit(self, event: ExitEvent) -> None:
        async with self._lock:
            handle = self._current
            if handle is None or handle.generation != event.generation:
                logger.debug(f"Ignoring exit of superseded encoder {event.pid}")
                return

            handle.last_exit_code = event.returncode

            if not (event.armed and self._armed):
                logger.info(f"Encoder {event.pid} exited after stop (code {event.returncode})")
                return

            if event.returncode == 0:
                handle.state = EncoderState.EXITED_CLEAN
                logger.warning(f"Encoder {event.pid} exited on its own with code 0")
            else:
                handle.state = EncoderState.CRASHED
                logger.warning(f"Encoder {event.pid} crashed (exit code {event.returncode})")
                if handle.stderr_tail:
                    logger.warning("Encoder stderr tail:\n" + "\n".join(handle.stderr_tail))
            self._state = handle.state

            self._restart_count += 1
            logger.warning(
                f"Restarting encoder in {self.config.restart_backoff}s "
                f"(restart #{self._restart_count})"
            )
            self._schedule_start_locked(self.config.restart_backoff)

    def get_status(self) -> Dict:
        """
        Get current supervisor status.

        Returns:
            Dictionary with state and encoder process information
        """
        handle = self._current
        status = {
            "state": self._state.value,
            "armed": self._armed,
            "restart_count": self._restart_count,
            "pid": None,
            "uptime_seconds": 0,
            "last_exit_code": handle.last_exit_code if handle else None,
            "manifest_path": self.config.manifest_path,
        }

        if handle is None or self._state != EncoderState.RUNNING:
            return status

        status["pid"] = handle.pid
        status["uptime_seconds"] = (datetime.now() - handle.started_at).total_seconds()

        try:
            proc = psutil.Process(handle.pid)
            status["cpu_percent"] = proc.cpu_percent(interval=None)
            status["memory_mb"] = round(proc.memory_info().rss / 1024 / 1024, 1)
        except (psutil.NoSuchProcess, psutil.AccessDenied):
            pass

        return status

    def is_running(self) -> bool:
        """
        Check if the encoder is currently running.

        Returns:
            True if a process is running
        """
        return self._state == EncoderState.RUNNING
