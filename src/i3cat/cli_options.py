"""CLI argument and version helpers for the i3cat entrypoint."""

from __future__ import annotations

import argparse
from importlib.metadata import PackageNotFoundError, version

from i3cat.protocol.models import ClickField

_DIST_NAME = "i3cat"


def project_version() -> str:
    """Return the installed package version, falling back to 0.1.0."""
    try:
        return version(_DIST_NAME)
    except PackageNotFoundError:
        return "0.1.0"


def _run_options() -> argparse.ArgumentParser:
    parent = argparse.ArgumentParser(add_help=False)
    parent.add_argument(
        "--cmd-file",
        default=None,
        help="File listing the commands to run, '-' for stdin "
        "(default: $I3CAT_CMD_FILE or $HOME/.i3/i3cat.conf)",
    )
    parent.add_argument("--log-file", default=None, help="Append logs here (default: stderr)")
    parent.add_argument(
        "--debug-file", default=None, help="Append a copy of the bar output to this file"
    )
    parent.add_argument(
        "--header-version", type=int, default=1, help="i3bar protocol version (default: 1)"
    )
    parent.add_argument(
        "--header-stopsignal",
        type=int,
        default=0,
        help="Signal sent to the commands when i3bar pauses the bar (default: SIGSTOP)",
    )
    parent.add_argument(
        "--header-contsignal",
        type=int,
        default=0,
        help="Signal sent to the commands when i3bar resumes the bar (default: SIGCONT)",
    )
    parent.add_argument(
        "--header-clickevents",
        action="store_true",
        help="Ask i3bar to send click events",
    )
    return parent


def _add_encode(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    encode = subparsers.add_parser(
        "encode",
        help="Print one block as i3bar JSON",
        description="Join FULL_TEXT words with spaces and encode them as an i3bar block. "
        "With no FULL_TEXT, or '-', the text is read from stdin.",
    )
    encode.add_argument("full_text", nargs="*", metavar="FULL_TEXT")
    encode.add_argument("--short-text", default="", help="block.short_text")
    encode.add_argument("--color", default="", help="block.color")
    encode.add_argument("--min-width", type=int, default=0, help="block.min_width")
    encode.add_argument("--align", default="", help="block.align")
    encode.add_argument("--name", default="", help="block.name")
    encode.add_argument("--instance", default="", help="block.instance")
    encode.add_argument("--urgent", action="store_true", help="block.urgent")
    encode.add_argument(
        "--separator",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="block.separator",
    )
    encode.add_argument(
        "--separator-block-width", type=int, default=0, help="block.separator_block_width"
    )
    encode.add_argument(
        "--array", action="store_true", help="Wrap the block in a one-element array"
    )


def _add_decode(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> None:
    decode = subparsers.add_parser(
        "decode",
        help="Print one field of a click event read from stdin",
    )
    decode.add_argument("field", choices=[f.value for f in ClickField], metavar="FIELD")


def parse_cli_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments. ``command`` is ``run``, ``encode`` or ``decode``."""
    run_options = _run_options()
    parser = argparse.ArgumentParser(
        prog="i3cat",
        description="Concatenate the i3bar output of several commands",
        parents=[run_options],
    )
    parser.add_argument("--version", action="version", version=project_version())
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.add_parser("run", help="Run the bar (default)", parents=[run_options])
    _add_encode(subparsers)
    _add_decode(subparsers)
    args = parser.parse_args(argv)
    if args.command is None:
        args.command = "run"
    return args
