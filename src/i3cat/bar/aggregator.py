"""Fan-in of every source's snapshot into one ordered i3bar stream.

Dependencies: io_utils.py, protocol
Wired in: bar/runtime.py → run_bar(), bar/click_events.py → ClickEventRouter
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from i3cat.io_utils import ByteSink
from i3cat.protocol.models import Block, encode_blocks

if TYPE_CHECKING:
    from i3cat.infra.command_source import CommandSource, SnapshotUpdate, UpdateQueue

_log = logging.getLogger(__name__)

UPDATE_SEPARATOR = b"\n,"


class BlockAggregator:
    """Hold the latest snapshot per source and write the merged bar.

    ``run`` is the only writer of *out* and the only code that changes the
    snapshot map; everything else reads.
    """

    def __init__(self, sources: Sequence[CommandSource], out: ByteSink) -> None:
        self._sources: tuple[CommandSource, ...] = tuple(sources)
        self._snapshots: dict[CommandSource, list[Block]] = {}
        self._out = out

    @property
    def sources(self) -> tuple[CommandSource, ...]:
        """Sources in registration order."""
        return self._sources

    def snapshot(self, source: CommandSource) -> list[Block]:
        """Latest blocks from *source*; empty before its first update."""
        return self._snapshots.get(source, [])

    def merged(self) -> list[Block]:
        """All snapshots concatenated in registration order."""
        blocks: list[Block] = []
        for source in self._sources:
            blocks.extend(self.snapshot(source))
        return blocks

    async def on_update(self, update: SnapshotUpdate) -> None:
        """Store *update*, write the new merged bar and wait until it is accepted.

        Only this coroutine waits on a slow reader; the rest of the loop runs.
        """
        self._snapshots[update.source] = update.blocks
        payload = encode_blocks(self.merged())
        try:
            self._out.write(payload + UPDATE_SEPARATOR)
            await self._out.drain()
        except (OSError, ValueError) as exc:
            _log.error("Failed to write bar update: %s", exc)

    async def run(self, updates: UpdateQueue) -> None:
        """Consume *updates* until a ``None`` item arrives."""
        while True:
            update = await updates.get()
            if update is None:
                _log.info("Update queue closed, aggregator stopping")
                return
            await self.on_update(update)
