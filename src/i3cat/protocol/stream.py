"""Incremental framing of JSON values read from an asyncio byte stream.

i3bar streams are one long JSON array written a piece at a time, so values
cannot be decoded with ``json.loads`` on whole lines: a producer may spread an
array over several lines or put a separator comma anywhere. The reader below
buffers bytes and cuts out exactly one complete array or object at a time.

Dependencies: protocol/models.py
Wired in: bar/framer.py, bar/click_events.py
"""

from __future__ import annotations

import asyncio

from i3cat.protocol.models import ParseError

WHITESPACE = b" \t\r\n"
READ_CHUNK_SIZE = 4096

_OPENERS = b"[{"
_CLOSERS = b"]}"
_QUOTE = ord('"')
_BACKSLASH = ord("\\")


class _ValueScanner:
    """Resumable scan for the end of one JSON array or object."""

    def __init__(self) -> None:
        self.pos = 0
        self.depth = 0
        self.in_string = False
        self.escaped = False

    def scan(self, buf: bytearray) -> int | None:
        """Return the offset just past the value, or None if more bytes are needed."""
        while self.pos < len(buf):
            byte = buf[self.pos]
            self.pos += 1
            if self.in_string:
                if self.escaped:
                    self.escaped = False
                elif byte == _BACKSLASH:
                    self.escaped = True
                elif byte == _QUOTE:
                    self.in_string = False
            elif byte == _QUOTE:
                self.in_string = True
            elif byte in _OPENERS:
                self.depth += 1
            elif byte in _CLOSERS:
                self.depth -= 1
                if self.depth == 0:
                    return self.pos
        return None


class JsonStreamReader:
    """Buffered reader that frames JSON values out of a ``StreamReader``."""

    def __init__(self, reader: asyncio.StreamReader, *, chunk_size: int = READ_CHUNK_SIZE) -> None:
        self._reader = reader
        self._chunk_size = chunk_size
        self._buffer = bytearray()
        self._eof = False

    async def _fill(self) -> bool:
        if self._eof:
            return False
        data = await self._reader.read(self._chunk_size)
        if not data:
            self._eof = True
            return False
        self._buffer.extend(data)
        return True

    async def peek(self) -> int | None:
        """Return the next byte without consuming it, or None at end of stream."""
        while not self._buffer:
            if not await self._fill():
                return None
        return self._buffer[0]

    async def skip(self, skippable: bytes, *, terminator: bytes = b"") -> None:
        """Drop leading bytes found in *skippable*.

        If the first other byte is in *terminator* it is consumed too and
        skipping stops there, so at most one terminator is eaten per call.
        """
        while True:
            byte = await self.peek()
            if byte is None:
                return
            if byte in skippable:
                del self._buffer[0]
                continue
            if byte in terminator:
                del self._buffer[0]
            return

    async def readline(self) -> bytes | None:
        """Consume through the next newline. Returns None at end of stream."""
        start = 0
        while True:
            end = self._buffer.find(b"\n", start)
            if end >= 0:
                line = bytes(self._buffer[: end + 1])
                del self._buffer[: end + 1]
                return line
            start = len(self._buffer)
            if not await self._fill():
                if not self._buffer:
                    return None
                line = bytes(self._buffer)
                self._buffer.clear()
                return line

    async def read_value(self) -> bytes:
        """Return the raw bytes of the next JSON array or object.

        Raises ``EOFError`` when the stream ends before the value starts and
        ``ParseError`` when the next byte cannot open a value or the stream
        ends inside one. Bytes are left in the buffer on error.
        """
        await self.skip(WHITESPACE)
        first = await self.peek()
        if first is None:
            raise EOFError("end of stream")
        if first not in _OPENERS:
            raise ParseError(f"invalid character {chr(first)!r} looking for beginning of value")
        scanner = _ValueScanner()
        end = scanner.scan(self._buffer)
        while end is None:
            if not await self._fill():
                raise ParseError("unexpected end of JSON input")
            end = scanner.scan(self._buffer)
        value = bytes(self._buffer[:end])
        del self._buffer[:end]
        return value

    def discard_buffered(self) -> int:
        """Drop every buffered byte and return how many were dropped."""
        count = len(self._buffer)
        self._buffer.clear()
        return count
