"""Turn one source's raw output into a sequence of block snapshots.

Two producer styles are accepted. Programs such as i3status write a full
i3bar stream: a header line, a ``[`` line, then comma-separated arrays.
Scripts usually print bare arrays, one per update, with or without the
leading comma. Both end up as the same snapshot sequence.

Dependencies: protocol
Wired in: infra/command_source.py → CommandSource.start()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from i3cat.protocol.models import Block, ParseError, decode_blocks, error_block
from i3cat.protocol.stream import WHITESPACE, JsonStreamReader

_log = logging.getLogger(__name__)

_HEADER_START = ord("{")


async def _skip_preamble(stream: JsonStreamReader, label: str) -> bool:
    """Drop a leading header line and its ``[`` line. False at end of stream."""
    await stream.skip(WHITESPACE)
    first = await stream.peek()
    if first is None:
        return False
    if first != _HEADER_START:
        return True
    header = await stream.readline()
    opening = await stream.readline()
    if header is None or opening is None:
        return False
    _log.debug("%s: skipped header %r", label, header.strip())
    return True


async def frame_snapshots(
    reader: asyncio.StreamReader,
    *,
    label: str = "source",
) -> AsyncIterator[list[Block]]:
    """Yield one block list per update written to *reader*.

    A cycle that fails to decode yields a single error block instead, and
    every byte buffered at that point is dropped so the next cycle starts on
    fresh input. The generator returns when the stream ends.
    """
    stream = JsonStreamReader(reader)
    if not await _skip_preamble(stream, label):
        _log.info("%s: reached end of stream before any update", label)
        return
    while True:
        await stream.skip(WHITESPACE, terminator=b",")
        try:
            payload = await stream.read_value()
            blocks = decode_blocks(payload)
        except EOFError:
            _log.info("%s: reached end of stream", label)
            return
        except ParseError as exc:
            dropped = stream.discard_buffered()
            _log.warning(
                "%s: invalid JSON input, dropped %d buffered bytes: %s", label, dropped, exc
            )
            blocks = [error_block(exc.cause)]
        yield blocks
