"""
Radio controller - ties the playlist store, cache synchronizer, manifest
generator and stream supervisor together behind the control operations.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from cache_sync.synchronizer import CacheSynchronizer, SyncResult
from playlist_manifest.generator import ManifestGenerator
from playlist_store.store import PlaylistStore
from shared.modes import PlaybackMode
from stream_supervisor.supervisor import StreamSupervisor

logger = logging.getLogger(__name__)


class RadioController:
    """
    Orchestrates the control operations of the station.

    Mutating operations are serialized by one lock so two regenerate requests
    cannot interleave; the manifest replacement and the encoder restart run
    inside the supervisor's own critical section.

    Example:
        >>> controller = RadioController(PlaybackMode.HYBRID_CACHE, store, sync, gen, sup)
        >>> await controller.sync_and_regenerate()
    """

    def __init__(
        self,
        mode: PlaybackMode,
        store: PlaylistStore,
        synchronizer: CacheSynchronizer,
        generator: ManifestGenerator,
        supervisor: StreamSupervisor,
        restart_delay: Optional[float] = None,
    ):
        """
        Initialize the controller.

        Args:
            mode: Playback mode deciding where manifest entries come from
            store: Playlist store
            synchronizer: Cache synchronizer
            generator: Manifest generator
            supervisor: Stream supervisor
            restart_delay: Seconds between stop and start (supervisor default if not provided)
        """
        self.mode = mode
        self.store = store
        self.synchronizer = synchronizer
        self.generator = generator
        self.supervisor = supervisor
        self.restart_delay = restart_delay

        self._lock = asyncio.Lock()
        self.last_sync: Optional[Dict[str, Any]] = None
        self.last_regenerate: Optional[Dict[str, Any]] = None

        logger.info(f"Radio controller initialized (mode: {mode.value})")

    async def sync_library(self) -> SyncResult:
        """
        Bring the cache in line with the remote manifest without touching the stream.

        Raises:
            ConfigurationError: If no remote manifest URL is configured
            FetchError: If the manifest or a file cannot be downloaded
            ValidationError: If the remote manifest is malformed
        """
        async with self._lock:
            return await self._sync_locked()

    async def regenerate(self) -> Dict[str, Any]:
        """
        Rebuild the manifest for the current mode and restart the encoder on it.

        Returns:
            Summary with mode, entry count, manifest path and restart delay

        Raises:
            ConfigurationError: If the stream or remote source is not configured
            FetchError: If a referenced file cannot be downloaded
            ValidationError: If a source cannot be mapped into the cache
        """
        async with self._lock:
            return await self._regenerate_locked()

    async def sync_and_regenerate(self) -> Dict[str, Any]:
        """
        Synchronize the cache, then regenerate and restart.

        In hybrid mode the manifest is built from this sync's result directly
        instead of fetching the remote manifest a second time.

        Returns:
            Regenerate summary with the sync counts under ``sync``
        """
        async with self._lock:
            result = await self._sync_locked()
            summary = await self._regenerate_locked(result)
            summary["sync"] = result.to_dict()
            return summary

    async def _sync_locked(self) -> SyncResult:
        result = await self.synchronizer.sync()
        self.last_sync = {**result.to_dict(), "timestamp": datetime.now().isoformat()}
        return result

    async def _collect_paths(self, sync_result: Optional[SyncResult]) -> List[str]:
        if self.mode == PlaybackMode.AUTONOMOUS_SHUFFLE:
            return self.generator.shuffled_paths(self.synchronizer.config.cache_dir)

        if self.mode == PlaybackMode.HYBRID_CACHE:
            if sync_result is None:
                sync_result = await self._sync_locked()
            return list(sync_result.local_paths)

        entries = self.store.list_active()
        localized = await self.synchronizer.localize([entry.source_uri for entry in entries])
        if localized.downloaded:
            logger.info(f"Downloaded {localized.downloaded} new playlist files")
        return localized.local_paths

    async def _regenerate_locked(self, sync_result: Optional[SyncResult] = None) -> Dict[str, Any]:
        paths = await self._collect_paths(sync_result)
        text = self.generator.generate(paths)

        delay = self.restart_delay
        if delay is None:
            delay = self.supervisor.config.restart_delay
        await self.supervisor.restart_with_delay(delay=delay, manifest_text=text)

        summary = {
            "mode": self.mode.value,
            "entries": len(paths),
            "manifest_path": self.supervisor.config.manifest_path,
            "restart_in_seconds": delay,
            "timestamp": datetime.now().isoformat(),
        }
        self.last_regenerate = summary
        logger.info(f"Manifest regenerated with {len(paths)} entries ({self.mode.value})")
        return dict(summary)

    async def start_stream(self) -> Dict[str, Any]:
        """Start the encoder on the current manifest."""
        async with self._lock:
            await self.supervisor.start()
        return self.supervisor.get_status()

    async def stop_stream(self) -> Dict[str, Any]:
        """Stop the encoder and cancel pending restarts."""
        async with self._lock:
            await self.supervisor.stop()
        return self.supervisor.get_status()

    def get_status(self) -> Dict[str, Any]:
        """Controller and encoder status."""
        return {
            "mode": self.mode.value,
            "stream": self.supervisor.get_status(),
            "last_sync": self.last_sync,
            "last_regenerate": self.last_regenerate,
        }

    async def cleanup(self) -> None:
        """Stop streaming and release the store."""
        await self.supervisor.cleanup()
        self.store.close()


def build_controller(mode: PlaybackMode, restart_delay: Optional[float] = None) -> RadioController:
    """Create a controller with every component configured from the environment."""
    from playlist_store.config import PlaylistStoreConfig

    return RadioController(
        mode=mode,
        store=PlaylistStore(PlaylistStoreConfig.from_env()),
        synchronizer=CacheSynchronizer(),
        generator=ManifestGenerator(),
        supervisor=StreamSupervisor(),
        restart_delay=restart_delay,
    )
