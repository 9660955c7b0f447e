"""Bar configuration and command-file parsing.

The whole run is described by one ``BarConfig`` value, built once by the CLI
and passed to the components that need it.

Dependencies: (none, leaf module)
Wired in: cli.py → main(), bar/runtime.py → run_bar()
"""

from __future__ import annotations

import os
import signal
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path

DEFAULT_SHELL = "/bin/sh"
DEFAULT_CMD_FILE = "$HOME/.i3/i3cat.conf"
STDIN_MARKER = "-"


@dataclass(frozen=True)
class BarConfig:
    """Immutable description of one i3cat run."""

    commands: tuple[str, ...]
    """Shell commands feeding the bar, in display order."""

    header_version: int = 1
    """i3bar protocol version announced in the header."""

    stop_signal: int = signal.SIGSTOP
    """Signal forwarded to the commands when i3bar asks to pause."""

    cont_signal: int = signal.SIGCONT
    """Signal forwarded to the commands when i3bar asks to resume."""

    click_events: bool = False
    """Whether the header asks i3bar to send click events."""

    shell: str = DEFAULT_SHELL
    """Shell used to run each command with ``-c``."""

    log_file: Path | None = None
    """Append log records here instead of standard error."""

    debug_file: Path | None = None
    """Append a copy of the bar output here."""


def parse_commands(lines: Iterable[str]) -> list[str]:
    """Return the commands in *lines*, skipping blanks and ``#`` comments."""
    commands: list[str] = []
    for raw in lines:
        command = raw.strip()
        if command and not command.startswith("#"):
            commands.append(command)
    return commands


def load_commands(path: str) -> list[str]:
    """Read commands from *path*, or from standard input when it is ``-``.

    Environment variables in *path* are expanded. Raises ``OSError`` when the
    file cannot be read.
    """
    if path == STDIN_MARKER:
        return parse_commands(sys.stdin)
    with Path(os.path.expandvars(path)).expanduser().open(encoding="utf-8") as fh:
        return parse_commands(fh)


def resolve_shell(env: Mapping[str, str] | None = None) -> str:
    """Return ``$SHELL``, falling back to ``/bin/sh``."""
    environ = os.environ if env is None else env
    return environ.get("SHELL") or DEFAULT_SHELL


def resolve_signal(number: int, default: int) -> int:
    """Return *number*, or *default* when it is not a positive signal number."""
    return number if number > 0 else default


def resolve_cmd_file(cli_value: str | None = None) -> str:
    """Determine the command file from CLI flag, env var, or default.

    Priority: *cli_value* > ``I3CAT_CMD_FILE`` env var > ``$HOME/.i3/i3cat.conf``.
    """
    if cli_value:
        return cli_value
    return os.getenv("I3CAT_CMD_FILE", DEFAULT_CMD_FILE)
