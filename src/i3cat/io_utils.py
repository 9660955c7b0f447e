"""Shared output helpers for the bar stream and its debug copy.

Bar output is written through ``ByteSink``: ``write`` buffers, ``drain``
waits until the bytes are accepted. Stdout is an ``asyncio.StreamWriter``
over a write pipe, so a reader that stops reading only suspends the
coroutine that drains it, never the event loop.

Dependencies: protocol/models.py
Wired in: cli.py → _serve(), bar/aggregator.py, bar/runtime.py → run_bar()
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO, Protocol

from i3cat.protocol.models import Header

_APPEND_MODE: int = 0o660


class ByteSink(Protocol):
    """Where bar output is written; ``asyncio.StreamWriter`` is one."""

    def write(self, data: bytes, /) -> object: ...

    async def drain(self) -> None: ...


class FileSink:
    """``ByteSink`` over a blocking binary file; ``drain`` flushes it.

    Only for destinations that do not block indefinitely: regular files,
    in-memory buffers.
    """

    def __init__(self, file: BinaryIO) -> None:
        self._file = file

    def write(self, data: bytes) -> int:
        return self._file.write(data)

    async def drain(self) -> None:
        self._file.flush()


class TeeWriter:
    """Sink duplicating every write to several sinks, in order.

    A failing sink raises; sinks after it do not receive that write.
    """

    def __init__(self, sinks: Iterable[ByteSink]) -> None:
        self._sinks = tuple(sinks)

    def write(self, data: bytes) -> int:
        for sink in self._sinks:
            sink.write(data)
        return len(data)

    async def drain(self) -> None:
        for sink in self._sinks:
            await sink.drain()


def open_append(path: Path) -> BinaryIO:
    """Open *path* for appending, creating it group-readable if missing."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch(mode=_APPEND_MODE, exist_ok=True)
    return path.open("ab")


async def write_preamble(out: ByteSink, header: Header) -> None:
    """Write the header line and the line opening the endless array."""
    out.write(header.to_json().encode() + b"\n[\n")
    await out.drain()
