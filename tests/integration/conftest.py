"""Shared fixtures for integration tests that spawn real shell commands."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from pathlib import Path

import pytest
import pytest_asyncio

from i3cat.infra.command_source import CommandSource

SH = "/bin/sh"


@pytest_asyncio.fixture()
async def started() -> AsyncIterator[Callable[..., CommandSource]]:
    """Create CommandSources that are terminated when the test ends."""
    sources: list[CommandSource] = []

    def _track(command: str, index: int = 0) -> CommandSource:
        source = CommandSource(command, index=index, shell=SH)
        sources.append(source)
        return source

    yield _track
    for source in sources:
        if source.task is not None:
            source.terminate()
            source.task.cancel()
    await asyncio.sleep(0)


@pytest.fixture()
def script(tmp_path: Path) -> Callable[[str, str], str]:
    """Write a shell script into tmp_path and return a command running it."""

    def _write(name: str, body: str) -> str:
        path = tmp_path / name
        path.write_text(body)
        return f"{SH} {path}"

    return _write

