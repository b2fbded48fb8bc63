"""
Stream Supervisor

Keeps the external encoder process pushing the concat playlist to the
streaming endpoint 24/7: starts it, notices when it dies, restarts it after a
backoff, and stops it on request without racing the restart logic.

Version: 1.0.0
"""

__version__ = "1.0.0"

from stream_supervisor.command_builder import EncoderCommandBuilder
from stream_supervisor.config import SupervisorConfig
from stream_supervisor.supervisor import (
    EncoderProcess,
    EncoderState,
    ExitEvent,
    StreamSupervisor,
)

__all__ = [
    "EncoderCommandBuilder",
    "EncoderProcess",
    "EncoderState",
    "ExitEvent",
    "StreamSupervisor",
    "SupervisorConfig",
]
