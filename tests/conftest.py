"""Shared test fixtures for i3cat."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from i3cat.infra.command_source import CommandSource
from i3cat.infra.pipes import PipeReader

SourceFactory = Callable[..., CommandSource]


def _fake_process(*, pid: int = 4242) -> MagicMock:
    proc = MagicMock(spec=asyncio.subprocess.Process)
    proc.pid = pid
    proc.returncode = None
    proc.send_signal = MagicMock()
    proc.kill = MagicMock()
    proc.stdin = MagicMock(spec=asyncio.StreamWriter)
    proc.stdin.write = MagicMock()
    proc.stdin.drain = AsyncMock()
    proc.stdin.close = MagicMock()
    return proc


@pytest.fixture()
def make_source() -> SourceFactory:
    """Build CommandSources bound to fake processes instead of real children."""

    def _make(command: str = "echo A", index: int = 0) -> CommandSource:
        source = CommandSource(command, index=index)
        stdout = MagicMock(spec=PipeReader)
        source.attach(_fake_process(pid=1000 + index), stdout)
        return source

    return _make


@pytest.fixture()
def fed_reader() -> Callable[..., asyncio.StreamReader]:
    """Build StreamReaders preloaded with chunks; call from inside a running loop."""

    def _make(*chunks: bytes, eof: bool = True) -> asyncio.StreamReader:
        reader = asyncio.StreamReader()
        for chunk in chunks:
            reader.feed_data(chunk)
        if eof:
            reader.feed_eof()
        return reader

    return _make
