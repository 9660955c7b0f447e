"""Snapshot framing, aggregation and click routing.

Public API: BlockAggregator, ClickEventRouter, ClickEventsListener,
    frame_snapshots
Internal: aggregator, click_events, framer, runtime
"""

from i3cat.bar.aggregator import BlockAggregator
from i3cat.bar.click_events import ClickEventRouter, ClickEventsListener
from i3cat.bar.framer import frame_snapshots

__all__ = [
    "BlockAggregator",
    "ClickEventRouter",
    "ClickEventsListener",
    "frame_snapshots",
]
