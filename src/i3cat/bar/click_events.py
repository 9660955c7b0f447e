"""Click events from i3bar: decoding, fan-out, and routing to sources.

i3bar writes click events on our standard input as an endless JSON array of
objects. ``ClickEventsListener`` decodes them and hands each one to every
subscriber queue. ``ClickEventRouter`` is one such subscriber: it finds the
source that owns the clicked block and writes the event to that source.

Delivery to subscribers never waits. Each subscriber has a bounded queue; an
event arriving while a subscriber's queue is full is dropped for that
subscriber only, and the listener moves on to the next event.

Dependencies: bar/aggregator.py, protocol
Wired in: bar/runtime.py → run_bar()
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from i3cat.protocol.models import ClickEvent, ParseError, decode_click_event
from i3cat.protocol.stream import WHITESPACE, JsonStreamReader

if TYPE_CHECKING:
    from i3cat.bar.aggregator import BlockAggregator
    from i3cat.infra.command_source import CommandSource

_log = logging.getLogger(__name__)

ClickQueue = asyncio.Queue[ClickEvent | None]
"""Per-subscriber queue; ``None`` means the listener has stopped."""

DEFAULT_SUBSCRIBER_BUFFER = 64


class ClickEventsListener:
    """Decode the click event stream and notify subscribers."""

    def __init__(self, reader: asyncio.StreamReader) -> None:
        self._stream = JsonStreamReader(reader)
        self._subscribers: list[ClickQueue] = []

    def subscribe(self, maxsize: int = DEFAULT_SUBSCRIBER_BUFFER) -> ClickQueue:
        """Return a new queue fed with every decoded click event."""
        queue: ClickQueue = asyncio.Queue(maxsize=maxsize)
        self._subscribers.append(queue)
        return queue

    def _publish(self, event: ClickEvent | None) -> None:
        for index, queue in enumerate(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                _log.warning("Click subscriber %d is full, dropping %r", index, event)

    async def listen(self) -> None:
        """Read events until end of stream or the first malformed one."""
        try:
            while True:
                await self._stream.skip(WHITESPACE + b"[", terminator=b",")
                try:
                    payload = await self._stream.read_value()
                    event = decode_click_event(payload)
                except EOFError:
                    _log.info("Click event stream reached end of stream")
                    return
                except ParseError as exc:
                    _log.error("Invalid click event input, no longer listening: %s", exc)
                    return
                _log.info("Received click event %r", event)
                self._publish(event)
        finally:
            self._publish(None)


class ClickEventRouter:
    """Forward click events to the source showing the clicked block."""

    def __init__(self, aggregator: BlockAggregator) -> None:
        self._aggregator = aggregator

    def owner_of(self, event: ClickEvent) -> CommandSource | None:
        """First source, in registration order, with a block matching *event*."""
        for source in self._aggregator.sources:
            if any(block.matches(event) for block in self._aggregator.snapshot(source)):
                return source
        return None

    async def dispatch(self, event: ClickEvent) -> CommandSource | None:
        """Write *event* to its owning source and return that source."""
        source = self.owner_of(event)
        if source is None:
            _log.info("No block source found for click event %r", event)
            return None
        _log.info("Sending click event %r to %s", event, source.label)
        await source.write_click_event(event)
        return source

    async def run(self, events: ClickQueue) -> None:
        """Dispatch events from *events* until the listener stops."""
        while True:
            event = await events.get()
            if event is None:
                return
            await self.dispatch(event)
