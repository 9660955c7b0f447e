"""Thin typed wrappers around pipes for asyncio stream reading and writing.

Dependencies: (none, leaf module)
Wired in: infra/command_source.py → CommandSource.start(), cli.py → _serve()
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import IO, Any

logger = logging.getLogger(__name__)

_READER_LIMIT = 2**20


@dataclass
class PipeReader:
    """The asyncio read side of a pipe, with the transport that owns its fd."""

    reader: asyncio.StreamReader
    transport: asyncio.ReadTransport

    def close(self) -> None:
        """Close the fd; the reader then sees end of stream."""
        self.transport.close()


async def open_pipe_reader(pipe: int | IO[Any], *, limit: int = _READER_LIMIT) -> PipeReader:
    """Attach a ``StreamReader`` to *pipe* (an fd or a binary file object).

    The returned ``PipeReader`` owns the fd: closing it closes the pipe. When
    attaching fails, an fd passed in by number is closed; a file object is
    left to its owner.
    """
    loop = asyncio.get_running_loop()
    file = os.fdopen(pipe, "rb", buffering=0) if isinstance(pipe, int) else pipe
    reader = asyncio.StreamReader(limit=limit, loop=loop)
    protocol = asyncio.StreamReaderProtocol(reader, loop=loop)
    try:
        transport, _ = await loop.connect_read_pipe(lambda: protocol, file)
    except (OSError, ValueError):
        logger.debug("connect_read_pipe failed for %r", file, exc_info=True)
        if isinstance(pipe, int):
            file.close()
        raise
    return PipeReader(reader=reader, transport=transport)


async def open_pipe_writer(pipe: int | IO[Any]) -> asyncio.StreamWriter:
    """Attach a ``StreamWriter`` to *pipe* (an fd or a binary file object).

    Writes are buffered by the transport and ``drain()`` suspends only the
    caller while the reader is behind. Raises ``ValueError`` when *pipe* is
    not a pipe, socket or character device (e.g. a regular file).
    """
    loop = asyncio.get_running_loop()
    file = os.fdopen(pipe, "wb", buffering=0) if isinstance(pipe, int) else pipe
    try:
        transport, protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, file
        )
    except (OSError, ValueError):
        logger.debug("connect_write_pipe failed for %r", file, exc_info=True)
        if isinstance(pipe, int):
            file.close()
        raise
    return asyncio.StreamWriter(transport, protocol, None, loop)


def open_child_pipe() -> tuple[int, int]:
    """Create a pipe for a child's output. Returns ``(read_fd, write_fd)``.

    The write end goes to the child; the caller closes its own copy once the
    child is spawned and owns ``read_fd`` until it is handed to
    :func:`open_pipe_reader`.
    """
    return os.pipe()


def close_fds(*fds: int) -> None:
    """Close each fd, ignoring ones that are already closed."""
    for fd in fds:
        try:
            os.close(fd)
        except OSError:
            logger.debug("fd %d already closed", fd)
