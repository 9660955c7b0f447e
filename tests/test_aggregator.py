"""Tests for BlockAggregator: ordering, replacement and output framing."""

from __future__ import annotations

import asyncio
import io
import logging
import os
from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from i3cat.bar.aggregator import UPDATE_SEPARATOR, BlockAggregator
from i3cat.infra.command_source import CommandSource, SnapshotUpdate, UpdateQueue
from i3cat.infra.pipes import open_pipe_reader, open_pipe_writer
from i3cat.io_utils import FileSink
from i3cat.protocol.models import Block, encode_blocks

SourceFactory = Callable[..., CommandSource]


def _blocks(*texts: str) -> list[Block]:
    return [Block(full_text=text) for text in texts]


def _sink_mock() -> MagicMock:
    out = MagicMock()
    out.drain = AsyncMock()
    return out


@pytest.mark.asyncio()
async def test_two_sources_scenario(make_source: SourceFactory) -> None:
    a, b = make_source("A", 0), make_source("B", 1)
    out = io.BytesIO()
    aggregator = BlockAggregator([a, b], FileSink(out))

    await aggregator.on_update(SnapshotUpdate(a, _blocks("a1")))
    await aggregator.on_update(SnapshotUpdate(b, _blocks("b1")))

    assert out.getvalue() == (
        b'[{"full_text":"a1"}]\n,[{"full_text":"a1"},{"full_text":"b1"}]\n,'
    )


@pytest.mark.asyncio()
async def test_registration_order_wins_over_arrival_order(make_source: SourceFactory) -> None:
    a, b = make_source("A", 0), make_source("B", 1)
    aggregator = BlockAggregator([a, b], FileSink(io.BytesIO()))

    await aggregator.on_update(SnapshotUpdate(b, _blocks("b1")))
    await aggregator.on_update(SnapshotUpdate(a, _blocks("a1", "a2")))

    assert [str(block) for block in aggregator.merged()] == ["a1", "a2", "b1"]


@pytest.mark.asyncio()
async def test_update_replaces_snapshot_wholesale(make_source: SourceFactory) -> None:
    a, b = make_source("A", 0), make_source("B", 1)
    aggregator = BlockAggregator([a, b], FileSink(io.BytesIO()))

    await aggregator.on_update(SnapshotUpdate(a, _blocks("a1", "a2", "a3")))
    await aggregator.on_update(SnapshotUpdate(b, _blocks("b1")))
    await aggregator.on_update(SnapshotUpdate(a, _blocks("a4")))

    assert [str(block) for block in aggregator.merged()] == ["a4", "b1"]


@pytest.mark.asyncio()
async def test_empty_update_clears_source(make_source: SourceFactory) -> None:
    a = make_source("A", 0)
    out = io.BytesIO()
    aggregator = BlockAggregator([a], FileSink(out))

    await aggregator.on_update(SnapshotUpdate(a, _blocks("a1")))
    await aggregator.on_update(SnapshotUpdate(a, []))

    assert out.getvalue().endswith(b"[]" + UPDATE_SEPARATOR)
    assert aggregator.snapshot(a) == []


@pytest.mark.asyncio()
async def test_silent_source_keeps_last_snapshot(make_source: SourceFactory) -> None:
    a, b = make_source("A", 0), make_source("B", 1)
    aggregator = BlockAggregator([a, b], FileSink(io.BytesIO()))

    await aggregator.on_update(SnapshotUpdate(a, _blocks("frozen")))
    for n in range(3):
        await aggregator.on_update(SnapshotUpdate(b, _blocks(f"b{n}")))

    assert [str(block) for block in aggregator.merged()] == ["frozen", "b2"]


def test_snapshot_before_first_update_is_empty(make_source: SourceFactory) -> None:
    a = make_source("A", 0)
    aggregator = BlockAggregator([a], FileSink(io.BytesIO()))
    assert aggregator.snapshot(a) == []
    assert aggregator.merged() == []


def test_sources_are_kept_in_registration_order(make_source: SourceFactory) -> None:
    sources = [make_source(f"cmd{i}", i) for i in range(3)]
    aggregator = BlockAggregator(sources, FileSink(io.BytesIO()))
    assert aggregator.sources == tuple(sources)


@pytest.mark.asyncio()
async def test_each_update_is_drained(make_source: SourceFactory) -> None:
    a = make_source("A", 0)
    out = _sink_mock()
    aggregator = BlockAggregator([a], out)

    await aggregator.on_update(SnapshotUpdate(a, _blocks("a1")))

    out.write.assert_called_once_with(b'[{"full_text":"a1"}]\n,')
    out.drain.assert_awaited_once_with()


@pytest.mark.asyncio()
async def test_write_error_is_logged_and_state_kept(
    make_source: SourceFactory, caplog: pytest.LogCaptureFixture
) -> None:
    a = make_source("A", 0)
    out = _sink_mock()
    out.write.side_effect = BrokenPipeError("bar went away")
    aggregator = BlockAggregator([a], out)

    with caplog.at_level(logging.ERROR, logger="i3cat.bar.aggregator"):
        await aggregator.on_update(SnapshotUpdate(a, _blocks("a1")))
        await aggregator.on_update(SnapshotUpdate(a, _blocks("a2")))

    assert out.write.call_count == 2
    out.drain.assert_not_awaited()
    assert "Failed to write bar update" in caplog.text
    assert [str(block) for block in aggregator.merged()] == ["a2"]


@pytest.mark.asyncio()
async def test_drain_error_is_logged(
    make_source: SourceFactory, caplog: pytest.LogCaptureFixture
) -> None:
    a = make_source("A", 0)
    out = _sink_mock()
    out.drain.side_effect = ConnectionResetError("reader closed")
    aggregator = BlockAggregator([a], out)

    with caplog.at_level(logging.ERROR, logger="i3cat.bar.aggregator"):
        await aggregator.on_update(SnapshotUpdate(a, _blocks("a1")))

    assert "reader closed" in caplog.text


@pytest.mark.asyncio()
async def test_run_consumes_until_none(make_source: SourceFactory) -> None:
    a, b = make_source("A", 0), make_source("B", 1)
    out = io.BytesIO()
    aggregator = BlockAggregator([a, b], FileSink(out))
    updates: UpdateQueue = asyncio.Queue()

    await updates.put(SnapshotUpdate(a, _blocks("a1")))
    await updates.put(SnapshotUpdate(b, _blocks("b1")))
    await updates.put(None)
    await asyncio.wait_for(aggregator.run(updates), timeout=1)

    assert out.getvalue().count(UPDATE_SEPARATOR) == 2
    assert updates.empty()


@pytest.mark.asyncio()
async def test_unread_pipe_does_not_stall_other_tasks(make_source: SourceFactory) -> None:
    a = make_source("A", 0)
    read_fd, write_fd = os.pipe()
    writer = await open_pipe_writer(write_fd)
    blocks = [Block(full_text="x" * 200_000)]
    expected = encode_blocks(blocks) + UPDATE_SEPARATOR
    updates: UpdateQueue = asyncio.Queue()
    await updates.put(SnapshotUpdate(a, blocks))
    aggregator_task = asyncio.create_task(BlockAggregator([a], writer).run(updates))

    ticks = 0

    async def _ticker() -> None:
        nonlocal ticks
        for _ in range(10):
            await asyncio.sleep(0.01)
            ticks += 1

    # Nobody reads the pipe yet: the aggregator waits in drain, the loop does not.
    await asyncio.wait_for(_ticker(), timeout=1)
    assert ticks == 10
    assert not aggregator_task.done()

    pipe = await open_pipe_reader(read_fd)
    try:
        data = await asyncio.wait_for(pipe.reader.readexactly(len(expected)), timeout=5)
        assert data == expected
        await updates.put(None)
        await asyncio.wait_for(aggregator_task, timeout=5)
    finally:
        writer.close()
        pipe.close()
