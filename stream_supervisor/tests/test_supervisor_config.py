"""
Tests for stream supervisor configuration.
"""

import pytest
from pydantic import ValidationError

from stream_supervisor.config import SupervisorConfig, get_config


class TestSupervisorConfig:
    """Test supervisor configuration."""

    def test_default_config(self, monkeypatch):
        """Test default configuration values."""
        monkeypatch.delenv("STREAM_ENDPOINT", raising=False)
        config = SupervisorConfig()

        assert config.endpoint is None
        assert config.encoder_binary == "ffmpeg"
        assert config.restart_backoff == 5.0
        assert config.loop_playlist is True

    def test_env_override(self, monkeypatch):
        """Test that environment variables are honored."""
        monkeypatch.setenv("STREAM_ENDPOINT", "rtmp://live.example.com/app/key")
        monkeypatch.setenv("STREAM_RESTART_BACKOFF", "2.5")
        monkeypatch.setenv("STREAM_LOOP_PLAYLIST", "false")

        config = get_config()

        assert config.endpoint == "rtmp://live.example.com/app/key"
        assert config.restart_backoff == 2.5
        assert config.loop_playlist is False

    def test_backoff_bounds(self):
        """Test restart backoff validation."""
        with pytest.raises(ValidationError):
            SupervisorConfig(restart_backoff=-1)
        with pytest.raises(ValidationError):
            SupervisorConfig(restart_backoff=1000)

    def test_stop_timeout_must_be_positive(self):
        """Test stop timeout validation."""
        with pytest.raises(ValidationError):
            SupervisorConfig(stop_timeout=0)
