"""Child processes feeding the bar.

Each ``CommandSource`` runs one shell command. Its standard output is framed
into block snapshots by a background task; its standard input receives the
click events routed to it.

Dependencies: bar/framer.py, infra/pipes.py, protocol
Wired in: bar/runtime.py → run_bar(), bar/click_events.py, infra/signals.py
"""

from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass

from i3cat.bar.framer import frame_snapshots
from i3cat.infra.pipes import PipeReader, close_fds, open_child_pipe, open_pipe_reader
from i3cat.protocol.models import Block, ClickEvent

_log = logging.getLogger(__name__)

DEFAULT_SHELL = "/bin/sh"


class SpawnError(RuntimeError):
    """A command's process could not be created."""

    def __init__(self, command: str, cause: Exception) -> None:
        self.command = command
        self.cause = cause
        super().__init__(f"failed to start {command!r}: {cause}")


@dataclass(frozen=True)
class SnapshotUpdate:
    """A new snapshot produced by one source."""

    source: CommandSource
    blocks: list[Block]


UpdateQueue = asyncio.Queue[SnapshotUpdate | None]
"""Shared queue of snapshot updates; ``None`` closes it."""


class CommandSource:
    """One shell command whose output is a stream of i3bar blocks."""

    def __init__(self, command: str, *, index: int = 0, shell: str = DEFAULT_SHELL) -> None:
        self.command = command
        self.index = index
        self.shell = shell
        self._process: asyncio.subprocess.Process | None = None
        self._stdout: PipeReader | None = None
        self._task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"CommandSource({self.index}, {self.command!r})"

    @property
    def label(self) -> str:
        return f"[{self.index}] {self.command}"

    @property
    def process(self) -> asyncio.subprocess.Process:
        if self._process is None:
            raise RuntimeError(f"{self.label} has not been started")
        return self._process

    @property
    def task(self) -> asyncio.Task[None] | None:
        """The framing task, once started."""
        return self._task

    async def start(self, updates: UpdateQueue) -> None:
        """Spawn the command and start feeding *updates* with its snapshots.

        Raises ``SpawnError`` when the process cannot be created.
        """
        if self._process is not None:
            raise RuntimeError(f"{self.label} already started")
        read_fd, write_fd = open_child_pipe()
        try:
            process = await asyncio.create_subprocess_exec(
                self.shell,
                "-c",
                self.command,
                stdin=asyncio.subprocess.PIPE,
                stdout=write_fd,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as exc:
            close_fds(read_fd, write_fd)
            raise SpawnError(self.command, exc) from exc
        # The write end now belongs to the child; close our copy so EOF propagates.
        close_fds(write_fd)
        try:
            stdout = await open_pipe_reader(read_fd)
        except (OSError, ValueError) as exc:
            process.kill()
            raise SpawnError(self.command, exc) from exc
        self.attach(process, stdout)
        self._task = asyncio.create_task(self._pump(updates), name=f"source-{self.index}")
        _log.info("Started command %s (pid %d)", self.label, process.pid)

    def attach(self, process: asyncio.subprocess.Process, stdout: PipeReader) -> None:
        """Bind an already spawned process and its output pipe."""
        self._process = process
        self._stdout = stdout

    async def _pump(self, updates: UpdateQueue) -> None:
        assert self._stdout is not None
        async for blocks in frame_snapshots(self._stdout.reader, label=self.label):
            await updates.put(SnapshotUpdate(self, blocks))
        _log.info("%s: no more updates, keeping last snapshot", self.label)

    def signal(self, sig: int) -> None:
        """Deliver *sig* to the process. ``OSError`` propagates to the caller."""
        self.process.send_signal(sig)

    def terminate(self) -> None:
        """Stop the process and close both of its streams.

        ``SIGTERM`` first; if that cannot be delivered the process is killed.
        """
        try:
            if self._process is not None:
                self._stop(self._process)
        finally:
            self.close()

    def _stop(self, process: asyncio.subprocess.Process) -> None:
        try:
            process.send_signal(signal.SIGTERM)
        except OSError as exc:
            _log.warning("%s: SIGTERM failed (%s), killing", self.label, exc)
            try:
                process.kill()
            except OSError as kill_exc:
                _log.error("%s: kill failed: %s", self.label, kill_exc)

    def close(self) -> None:
        """Close the input and output streams together."""
        try:
            if self._process is not None and self._process.stdin is not None:
                self._process.stdin.close()
        finally:
            if self._stdout is not None:
                self._stdout.close()

    async def write_click_event(self, event: ClickEvent) -> bool:
        """Send *event* as one JSON line on the process's standard input."""
        stdin = self.process.stdin
        if stdin is None:
            _log.warning("%s: no standard input to send click event to", self.label)
            return False
        try:
            stdin.write(event.to_json().encode() + b"\n")
            await stdin.drain()
        except OSError as exc:
            _log.warning("%s: failed to send click event: %s", self.label, exc)
            return False
        return True
