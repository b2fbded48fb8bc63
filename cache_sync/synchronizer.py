"""
Remote manifest synchronizer.

Fetches the authoritative concat manifest, resolves which referenced audio
files are missing from the local cache and downloads them. Cache identity is
the last path segment of each URI, so a file that is already present is never
downloaded again.
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import unquote, urlparse

import httpx

from cache_sync.config import SyncConfig
from playlist_manifest.generator import PARTIAL_SUFFIX
from shared.exceptions import ConfigurationError, FetchError, ValidationError

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https")

# Redirect hops followed per request
MAX_REDIRECT_HOPS = 1


@dataclass
class SyncResult:
    """Outcome of a synchronization run."""

    downloaded: int = 0
    already_cached: int = 0
    local_paths: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            "downloaded": self.downloaded,
            "already_cached": self.already_cached,
            "local_paths": list(self.local_paths),
        }


def is_remote_uri(source: str) -> bool:
    """Check whether a manifest source points at the network."""
    return urlparse(source).scheme.lower() in REMOTE_SCHEMES


def cache_filename(uri: str) -> str:
    """
    Derive the cache file name for a remote URI.

    The name is the URL-decoded last segment of the URI path, so
    ``https://cdn.example.com/music/My%20Song.mp3?sig=1`` maps to
    ``My Song.mp3``.

    Args:
        uri: Remote audio URI

    Returns:
        File name inside the cache directory

    Raises:
        ValidationError: If no usable file name can be derived
    """
    segment = urlparse(uri).path.rsplit("/", 1)[-1]
    name = unquote(segment)

    if name in ("", ".", "..") or "/" in name or "\\" in name:
        raise ValidationError(f"Cannot derive a cache file name from URI: {uri}")
    if any(ch in name for ch in ("\x00", "\n", "\r")):
        raise ValidationError(f"URI file name contains control characters: {uri}")

    return name


def _unquote_concat_token(token: str) -> str:
    """Undo concat quoting: '...' spans and backslash escapes outside them."""
    chars = []
    in_quote = False
    i = 0
    while i < len(token):
        ch = token[i]
        if in_quote:
            if ch == "'":
                in_quote = False
            else:
                chars.append(ch)
        elif ch == "'":
            in_quote = True
        elif ch == "\\" and i + 1 < len(token):
            i += 1
            chars.append(token[i])
        else:
            chars.append(ch)
        i += 1

    if in_quote:
        raise ValidationError(f"Unterminated quote in manifest entry: {token}")
    return "".join(chars)


def parse_remote_manifest(text: str, marker: str = "ffconcat version 1.0") -> List[str]:
    """
    Extract remote audio URIs from a concat manifest, in file order.

    The first non-blank line must be the format marker. Only ``file``
    directives whose source is an http(s) URI are returned; comments, local
    files and other directives are skipped. Every URI is checked for a usable
    cache file name here, so a bad entry fails before anything is downloaded.

    Args:
        text: Manifest body
        marker: Expected header line

    Returns:
        Remote URIs in play order

    Raises:
        ValidationError: If the marker is missing or an entry is malformed
    """
    lines = text.lstrip("\ufeff").splitlines()
    first = next((line.strip() for line in lines if line.strip()), None)
    if first != marker:
        raise ValidationError(f"Remote manifest is missing the '{marker}' header")

    uris = []
    for line_no, raw in enumerate(lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        # Directive and argument are separated by any run of whitespace
        parts = line.split(None, 1)
        if parts[0] != "file":
            continue

        source = _unquote_concat_token(parts[1].strip()) if len(parts) > 1 else ""
        if not source:
            raise ValidationError(f"Empty file entry on manifest line {line_no}")

        if is_remote_uri(source):
            cache_filename(source)
            uris.append(source)
        else:
            logger.debug(f"Skipping non-remote manifest entry: {source}")

    return uris


class CacheSynchronizer:
    """
    Keeps the local audio cache in step with the remote master manifest.

    Features:
    - Header validation before any download starts
    - Presence check by file name (idempotent across retries)
    - Streamed downloads to a temporary file renamed into place on success
    - At most one redirect hop per request
    - Bounded download concurrency with the remote order preserved
    - Any single failure aborts the whole run
    """

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the synchronizer.

        Args:
            config: Synchronizer configuration (creates default if not provided)
            transport: HTTP transport override, mostly for tests
        """
        if config is None:
            from cache_sync.config import get_config

            config = get_config()

        self.config = config
        self._transport = transport
        self._sync_lock = asyncio.Lock()

        logger.info(f"Cache synchronizer initialized (cache: {config.cache_dir})")

    def _create_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.config.request_timeout,
            follow_redirects=False,
            headers={"User-Agent": self.config.user_agent},
            transport=self._transport,
        )

    async def sync(
        self,
        remote_manifest_url: Optional[str] = None,
        cache_dir: Optional[Union[str, Path]] = None,
    ) -> SyncResult:
        """
        Synchronize the cache against the remote manifest.

        Args:
            remote_manifest_url: Manifest URL (uses config default if not provided)
            cache_dir: Cache directory (uses config default if not provided)

        Returns:
            SyncResult with counts and local paths in remote order

        Raises:
            ConfigurationError: If no manifest URL is configured
            FetchError: If the manifest or any audio file cannot be fetched
            ValidationError: If the manifest is malformed
        """
        url = remote_manifest_url or self.config.remote_manifest_url
        if not url:
            raise ConfigurationError("Remote manifest URL is not configured")
        cache = Path(cache_dir or self.config.cache_dir)

        async with self._sync_lock:
            logger.info(f"Synchronizing cache {cache} from {url}")

            async with self._create_client() as client:
                text = await self._fetch_text(client, url)
                uris = parse_remote_manifest(text, self.config.manifest_marker)
                logger.info(f"Remote manifest lists {len(uris)} remote entries")

                result = await self._localize(client, uris, cache)

        logger.info(
            f"Sync complete: {result.downloaded} downloaded, "
            f"{result.already_cached} already cached"
        )
        return result

    async def fetch_manifest(self, url: Optional[str] = None) -> str:
        """
        Fetch the remote manifest text.

        Args:
            url: Manifest URL (uses config default if not provided)

        Returns:
            Manifest body

        Raises:
            ConfigurationError: If no manifest URL is configured
            FetchError: If the request fails or returns a non-2xx status
        """
        url = url or self.config.remote_manifest_url
        if not url:
            raise ConfigurationError("Remote manifest URL is not configured")

        async with self._create_client() as client:
            return await self._fetch_text(client, url)

    async def localize(
        self,
        sources: Sequence[str],
        cache_dir: Optional[Union[str, Path]] = None,
    ) -> SyncResult:
        """
        Map sources to local files, downloading remote ones that are missing.

        Local sources pass through unchanged.

        Args:
            sources: Remote URIs and/or local paths, in play order
            cache_dir: Cache directory (uses config default if not provided)

        Returns:
            SyncResult with local paths in the order of ``sources``

        Raises:
            FetchError: If a download fails or a local source does not exist
            ValidationError: If a remote URI has no usable file name
        """
        cache = Path(cache_dir or self.config.cache_dir)
        for source in sources:
            if is_remote_uri(source):
                cache_filename(source)

        async with self._sync_lock:
            async with self._create_client() as client:
                return await self._localize(client, sources, cache)

    async def _fetch_text(self, client: httpx.AsyncClient, url: str) -> str:
        target = url
        try:
            for _ in range(MAX_REDIRECT_HOPS + 1):
                response = await client.get(target)
                if response.is_redirect:
                    target = self._redirect_target(url, response)
                    continue
                if not response.is_success:
                    raise FetchError(url, f"HTTP {response.status_code}", response.status_code)
                return response.text
        except httpx.HTTPError as e:
            raise FetchError(url, str(e)) from e

        raise FetchError(url, f"more than {MAX_REDIRECT_HOPS} redirect hop(s)")

    @staticmethod
    def _redirect_target(url: str, response: httpx.Response) -> str:
        location = response.headers.get("location")
        if not location:
            raise FetchError(url, "redirect without Location header", response.status_code)
        target = str(response.url.join(location))
        logger.debug(f"Following redirect: {url} -> {target}")
        return target

    async def _localize(
        self,
        client: httpx.AsyncClient,
        sources: Sequence[str],
        cache: Path,
    ) -> SyncResult:
        cache.mkdir(parents=True, exist_ok=True)

        result = SyncResult()
        pending: List[Tuple[str, Path]] = []
        scheduled = set()

        for source in sources:
            if not is_remote_uri(source):
                if not Path(source).is_file():
                    raise FetchError(source, "local file not found")
                result.local_paths.append(source)
                result.already_cached += 1
                continue

            target = cache / cache_filename(source)
            result.local_paths.append(str(target))

            if target.is_file() or target in scheduled:
                result.already_cached += 1
            else:
                scheduled.add(target)
                pending.append((source, target))
                result.downloaded += 1

        if pending:
            await self._download_all(client, pending)

        return result

    async def _download_all(
        self, client: httpx.AsyncClient, pending: List[Tuple[str, Path]]
    ) -> None:
        semaphore = asyncio.Semaphore(self.config.max_concurrent_downloads)

        async def download_one(uri: str, target: Path) -> None:
            async with semaphore:
                await self._download(client, uri, target)

        tasks = [asyncio.create_task(download_one(uri, target)) for uri, target in pending]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _download(self, client: httpx.AsyncClient, uri: str, target: Path) -> None:
        """
        Stream one file into the cache.

        Bytes go to ``<target>.part`` and are renamed onto ``target`` only once
        the body is complete; the partial file is removed on any failure.
        """
        partial = target.with_name(target.name + PARTIAL_SUFFIX)
        url = uri
        logger.info(f"Downloading {uri} -> {target}")

        try:
            for _ in range(MAX_REDIRECT_HOPS + 1):
                async with client.stream("GET", url) as response:
                    if response.is_redirect:
                        url = self._redirect_target(uri, response)
                        continue
                    if not response.is_success:
                        raise FetchError(
                            uri, f"HTTP {response.status_code}", response.status_code
                        )

                    with open(partial, "wb") as handle:
                        async for chunk in response.aiter_bytes(self.config.chunk_size):
                            handle.write(chunk)

                os.replace(partial, target)
                logger.debug(f"Cached {target.name}")
                return

            raise FetchError(uri, f"more than {MAX_REDIRECT_HOPS} redirect hop(s)")

        except httpx.HTTPError as e:
            raise FetchError(uri, str(e)) from e
        except OSError as e:
            raise FetchError(uri, f"cannot write {target}: {e}") from e
        finally:
            if partial.exists():
                partial.unlink()
