"""
Encoder command builder.

Constructs the encoder command line that reads a concat manifest in real time
and pushes a single audio stream to the streaming endpoint.
"""

import logging
from typing import List, Optional

from stream_supervisor.config import SupervisorConfig

logger = logging.getLogger(__name__)


class EncoderCommandBuilder:
    """Builds encoder commands for streaming a concat playlist."""

    def __init__(self, config: SupervisorConfig):
        """
        Initialize command builder.

        Args:
            config: Supervisor configuration
        """
        self.config = config

    def build_command(
        self,
        manifest_path: Optional[str] = None,
        endpoint: Optional[str] = None,
    ) -> List[str]:
        """
        Build the complete encoder command.

        Args:
            manifest_path: Concat manifest to read (defaults to config)
            endpoint: Streaming endpoint to push to (defaults to config)

        Returns:
            List of command arguments for the subprocess

        Raises:
            ValueError: If the manifest path or endpoint is empty
        """
        manifest_path = manifest_path or self.config.manifest_path
        endpoint = endpoint or self.config.endpoint

        if not manifest_path or not manifest_path.strip():
            raise ValueError("manifest_path cannot be empty")
        if not endpoint or not endpoint.strip():
            raise ValueError("endpoint cannot be empty")

        cmd = [self.config.encoder_binary]
        cmd.extend(self._build_global_options())
        cmd.extend(self._build_input(manifest_path))
        cmd.extend(self._build_audio_encoding())
        cmd.extend(self._build_output(endpoint))

        logger.debug(f"Built encoder command: {' '.join(cmd)}")
        return cmd

    def _build_global_options(self) -> List[str]:
        """Build global encoder options."""
        return [
            "-hide_banner",
            "-nostats",
            "-loglevel",
            self.config.encoder_log_level,
        ]

    def _build_input(self, manifest_path: str) -> List[str]:
        """Build concat input options."""
        options = [
            "-re",  # Read at native rate, this is a live stream
            "-f",
            "concat",
            "-safe",
            "0",  # Manifest holds absolute paths
        ]
        if self.config.loop_playlist:
            options.extend(["-stream_loop", "-1"])
        options.extend(["-i", manifest_path])
        return options

    def _build_audio_encoding(self) -> List[str]:
        """Build audio encoding options."""
        return [
            "-vn",
            "-c:a",
            self.config.audio_codec,
            "-b:a",
            self.config.audio_bitrate,
            "-ar",
            str(self.config.sample_rate),
            "-ac",
            str(self.config.channels),
        ]

    def _build_output(self, endpoint: str) -> List[str]:
        """Build output options."""
        return ["-f", self.config.output_format, endpoint]
