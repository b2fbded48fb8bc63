"""
Playlist Manifest Generator

Renders ordered lists of local audio files into concat-demuxer manifests for
the streaming encoder, with an autonomous shuffle mode that plays straight
from the cache directory.
"""

from playlist_manifest.config import ManifestConfig
from playlist_manifest.generator import (
    EMPTY_PLAYLIST_COMMENT,
    MANIFEST_HEADER,
    ManifestGenerator,
    quote_path,
    render_manifest,
    shuffle,
    write_manifest,
)

__all__ = [
    "EMPTY_PLAYLIST_COMMENT",
    "MANIFEST_HEADER",
    "ManifestConfig",
    "ManifestGenerator",
    "quote_path",
    "render_manifest",
    "shuffle",
    "write_manifest",
]
