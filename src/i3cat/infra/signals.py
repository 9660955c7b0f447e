"""Process signal handling: shutdown, and pause/resume of every source.

i3bar asks us to pause with the ``stop_signal`` we announce in the header
(``SIGUSR1``) and to resume with ``cont_signal`` (``SIGUSR2``). Those requests
are forwarded to the children as the configured stop/cont signals.

Dependencies: infra/command_source.py
Wired in: bar/runtime.py → run_bar()
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from i3cat.infra.command_source import CommandSource

_log = logging.getLogger(__name__)

PAUSE_REQUEST = signal.SIGUSR1
RESUME_REQUEST = signal.SIGUSR2
SHUTDOWN_SIGNALS = frozenset({signal.SIGINT, signal.SIGTERM})
HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM, PAUSE_REQUEST, RESUME_REQUEST)


class SignalCoordinator:
    """Translate received signals into actions on every source."""

    def __init__(
        self,
        sources: Sequence[CommandSource],
        *,
        stop_signal: int = signal.SIGSTOP,
        cont_signal: int = signal.SIGCONT,
    ) -> None:
        self._sources = tuple(sources)
        self._stop_signal = stop_signal
        self._cont_signal = cont_signal
        self._received: asyncio.Queue[int] = asyncio.Queue()

    def notify(self, sig: int) -> None:
        """Queue *sig* as if it had been received by the process."""
        self._received.put_nowait(sig)

    def install(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in HANDLED_SIGNALS:
            loop.add_signal_handler(sig, self.notify, sig)

    def uninstall(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in HANDLED_SIGNALS:
            loop.remove_signal_handler(sig)

    def _forward(self, sig: int) -> None:
        for source in self._sources:
            try:
                source.signal(sig)
            except OSError as exc:
                _log.error("Failed to send signal %d to %s: %s", sig, source.label, exc)

    def shutdown(self) -> None:
        """Terminate every source."""
        for source in self._sources:
            source.terminate()

    async def run(self) -> int:
        """Handle signals until a shutdown signal arrives; return the exit status."""
        while True:
            sig = await self._received.get()
            if sig in SHUTDOWN_SIGNALS:
                _log.info("%s received: terminating all processes...", signal.Signals(sig).name)
                self.shutdown()
                return 0
            if sig == PAUSE_REQUEST:
                _log.info("Pause requested: forwarding signal %d to sources", self._stop_signal)
                self._forward(self._stop_signal)
            elif sig == RESUME_REQUEST:
                _log.info("Resume requested: forwarding signal %d to sources", self._cont_signal)
                self._forward(self._cont_signal)
            else:
                _log.debug("Ignoring signal %d", sig)
