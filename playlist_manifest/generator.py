"""
Concat manifest generator.

Builds the text file consumed by the encoder's concat demuxer and replaces the
on-disk copy atomically so a reader never sees a half-written manifest.
"""

import logging
import os
import random
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, TypeVar, Union

from playlist_manifest.config import ManifestConfig
from shared.exceptions import ManifestWriteError

logger = logging.getLogger(__name__)

T = TypeVar("T")

MANIFEST_HEADER = "ffconcat version 1.0"
EMPTY_PLAYLIST_COMMENT = "# playlist empty, waiting for tracks"

# Suffix of in-flight cache downloads; directory scans skip these files
PARTIAL_SUFFIX = ".part"


def quote_path(path: str) -> str:
    """
    Quote a path for a concat ``file`` directive.

    Single quotes are closed, escaped and reopened (``'\\''``), which is the
    only escaping the concat demuxer understands inside quoted strings.

    Args:
        path: Local file path

    Returns:
        Quoted path

    Raises:
        ValueError: If the path is empty or spans several lines
    """
    if not path:
        raise ValueError("path cannot be empty")
    if "\n" in path or "\r" in path:
        raise ValueError(f"path cannot contain line breaks: {path!r}")
    return "'" + path.replace("'", "'\\''") + "'"


def render_manifest(paths: Sequence[str]) -> str:
    """
    Render a concat manifest for the given paths, in order.

    An empty sequence still yields a valid manifest: the header plus a comment,
    since an empty file is rejected by the concat demuxer.
    """
    lines = [MANIFEST_HEADER]
    for path in paths:
        lines.append(f"file {quote_path(str(path))}")
    if not paths:
        lines.append(EMPTY_PLAYLIST_COMMENT)
    return "\n".join(lines) + "\n"


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """
    Return a shuffled copy of ``items`` (Fisher-Yates).

    Walks from the last index down to 1, swapping each position with a
    uniformly chosen index in ``[0, i]``.

    Args:
        items: Sequence to permute (left untouched)
        rng: Random source (module-level generator if not provided)

    Returns:
        New list containing every element of ``items`` exactly once
    """
    randint = rng.randint if rng is not None else random.randint
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def write_manifest(path: Union[str, Path], text: str) -> Path:
    """
    Atomically replace the manifest at ``path`` with ``text``.

    The content goes to a temporary file in the target directory first and is
    then renamed over the target.

    Args:
        path: Manifest location
        text: Manifest content

    Returns:
        Path of the written manifest

    Raises:
        ManifestWriteError: If the directory or file cannot be written
    """
    target = Path(path)

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
        )
    except OSError as e:
        raise ManifestWriteError(str(target), str(e)) from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, target)
    except BaseException as e:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        if isinstance(e, OSError):
            raise ManifestWriteError(str(target), str(e)) from e
        raise

    logger.debug(f"Manifest written: {target}")
    return target


class ManifestGenerator:
    """
    Produces encoder manifests in one of two ordering modes.

    Ordered mode renders paths exactly as supplied. Autonomous shuffle mode
    scans a directory for audio files and permutes them before rendering.
    """

    def __init__(self, config: Optional[ManifestConfig] = None):
        """
        Initialize the generator.

        Args:
            config: Manifest configuration (creates default if not provided)
        """
        if config is None:
            from playlist_manifest.config import get_config

            config = get_config()

        self.config = config
        self._rng = random.Random(config.shuffle_seed)

    def generate(self, ordered_local_paths: Sequence[str]) -> str:
        """
        Render a manifest keeping the supplied order.

        Args:
            ordered_local_paths: Local file paths in play order

        Returns:
            Manifest text
        """
        text = render_manifest(ordered_local_paths)
        logger.info(f"Generated manifest with {len(ordered_local_paths)} entries")
        return text

    def scan_audio_files(self, directory: Union[str, Path]) -> List[str]:
        """
        List audio files directly inside ``directory``.

        Args:
            directory: Directory to scan

        Returns:
            Absolute paths sorted by file name; empty if the directory is missing
        """
        root = Path(directory)
        if not root.is_dir():
            logger.warning(f"Audio directory does not exist: {root}")
            return []

        extensions = self.config.extension_set
        found = []
        for entry in sorted(root.iterdir(), key=lambda p: p.name):
            if not entry.is_file() or entry.name.endswith(PARTIAL_SUFFIX):
                continue
            if entry.suffix.lower() in extensions:
                found.append(str(entry.resolve()))

        logger.debug(f"Found {len(found)} audio files in {root}")
        return found

    def shuffled_paths(
        self,
        directory: Union[str, Path],
        rng: Optional[random.Random] = None,
    ) -> List[str]:
        """Scan ``directory`` and return its audio files in shuffled order."""
        return shuffle(self.scan_audio_files(directory), rng or self._rng)

    def generate_shuffled(
        self,
        directory: Union[str, Path],
        rng: Optional[random.Random] = None,
    ) -> str:
        """
        Render a manifest from a shuffled scan of ``directory``.

        Args:
            directory: Cache directory to scan
            rng: Random source (generator's own seeded source if not provided)

        Returns:
            Manifest text
        """
        paths = self.shuffled_paths(directory, rng)
        text = render_manifest(paths)
        logger.info(f"Generated shuffled manifest with {len(paths)} entries from {directory}")
        return text
