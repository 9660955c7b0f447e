"""Wire sources, aggregator, click routing and signals into one running bar.

Dependencies: bar/aggregator.py, bar/click_events.py, config.py,
    infra/command_source.py, infra/signals.py, io_utils.py
Wired in: cli.py → main()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from i3cat.bar.aggregator import BlockAggregator
from i3cat.bar.click_events import ClickEventRouter, ClickEventsListener
from i3cat.config import BarConfig
from i3cat.infra.command_source import CommandSource, SpawnError, UpdateQueue
from i3cat.infra.signals import PAUSE_REQUEST, RESUME_REQUEST, SignalCoordinator
from i3cat.io_utils import ByteSink, write_preamble
from i3cat.protocol.models import Header

_log = logging.getLogger(__name__)


def build_header(config: BarConfig) -> Header:
    """Header announcing the pause/resume requests this process listens for."""
    return Header(
        version=config.header_version,
        stop_signal=int(PAUSE_REQUEST),
        cont_signal=int(RESUME_REQUEST),
        click_events=config.click_events,
    )


async def start_sources(config: BarConfig, updates: UpdateQueue) -> list[CommandSource]:
    """Start one source per configured command, in order.

    On ``SpawnError`` the sources already running are terminated and the error
    propagates.
    """
    sources: list[CommandSource] = []
    for index, command in enumerate(config.commands):
        source = CommandSource(command, index=index, shell=config.shell)
        try:
            await source.start(updates)
        except SpawnError:
            for started in sources:
                started.terminate()
            raise
        sources.append(source)
    return sources


async def run_bar(
    config: BarConfig,
    *,
    out: ByteSink,
    events: asyncio.StreamReader,
    coordinator_factory: Callable[..., SignalCoordinator] = SignalCoordinator,
) -> int:
    """Run the bar until a shutdown signal; return the exit status.

    *out* receives the i3bar stream and *events* is i3bar's click event
    stream (our standard input).
    """
    await write_preamble(out, build_header(config))

    updates: UpdateQueue = asyncio.Queue()
    sources = await start_sources(config, updates)

    aggregator = BlockAggregator(sources, out)
    listener = ClickEventsListener(events)
    router = ClickEventRouter(aggregator)
    tasks = [source.task for source in sources if source.task is not None]
    tasks += [
        asyncio.create_task(aggregator.run(updates), name="aggregator"),
        asyncio.create_task(router.run(listener.subscribe()), name="click-router"),
        asyncio.create_task(listener.listen(), name="click-listener"),
    ]
    _log.info("Bar running with %d sources", len(sources))

    coordinator = coordinator_factory(
        sources, stop_signal=config.stop_signal, cont_signal=config.cont_signal
    )
    loop = asyncio.get_running_loop()
    coordinator.install(loop)
    try:
        return await coordinator.run()
    finally:
        coordinator.uninstall(loop)
        for task in tasks:
            task.cancel()
