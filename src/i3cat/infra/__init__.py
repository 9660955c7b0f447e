"""Child processes, pipes and signal plumbing.

Public API: CommandSource, PipeReader, SignalCoordinator, SnapshotUpdate,
    SpawnError, open_pipe_reader
Internal: command_source, pipes, signals
"""

from i3cat.infra.command_source import CommandSource, SnapshotUpdate, SpawnError
from i3cat.infra.pipes import PipeReader, open_pipe_reader
from i3cat.infra.signals import SignalCoordinator

__all__ = [
    "CommandSource",
    "PipeReader",
    "SignalCoordinator",
    "SnapshotUpdate",
    "SpawnError",
    "open_pipe_reader",
]
