"""i3cat entrypoint: run the bar, or encode/decode single protocol values."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import dataclasses
import json
import logging
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import BinaryIO, TextIO

from dotenv import load_dotenv
from pydantic import ValidationError

from i3cat.bar.runtime import run_bar
from i3cat.cli_options import parse_cli_args
from i3cat.config import (
    BarConfig,
    load_commands,
    resolve_cmd_file,
    resolve_shell,
    resolve_signal,
)
from i3cat.infra.command_source import SpawnError
from i3cat.infra.pipes import open_pipe_reader, open_pipe_writer
from i3cat.io_utils import ByteSink, FileSink, TeeWriter, open_append
from i3cat.protocol.models import Block, ClickEvent, ClickField, encode_blocks

_log = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(log_file: Path | None) -> None:
    """Send log records to *log_file* (appending) or to standard error."""
    level = os.getenv("I3CAT_LOG_LEVEL", "INFO").upper()
    handler: logging.Handler
    if log_file is not None:
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    logging.basicConfig(level=level, format=_LOG_FORMAT, handlers=[handler], force=True)


def build_config(args: argparse.Namespace, commands: Iterable[str] = ()) -> BarConfig:
    """Resolve parsed run options into the immutable bar configuration."""
    return BarConfig(
        commands=tuple(commands),
        header_version=args.header_version,
        stop_signal=resolve_signal(args.header_stopsignal, BarConfig.stop_signal),
        cont_signal=resolve_signal(args.header_contsignal, BarConfig.cont_signal),
        click_events=args.header_clickevents,
        shell=resolve_shell(),
        log_file=Path(args.log_file) if args.log_file else None,
        debug_file=Path(args.debug_file) if args.debug_file else None,
    )


def encode_block(args: argparse.Namespace, stdin: TextIO) -> str:
    """Build the JSON for the block described by the ``encode`` options."""
    if not args.full_text or args.full_text == ["-"]:
        full_text = stdin.read().removesuffix("\n")
    else:
        full_text = " ".join(args.full_text)
    block = Block(
        full_text=full_text,
        short_text=args.short_text,
        color=args.color,
        min_width=args.min_width,
        align=args.align,
        name=args.name,
        instance=args.instance,
        urgent=args.urgent,
        separator=args.separator,
        separator_block_width=args.separator_block_width,
    )
    if args.array:
        return encode_blocks([block]).decode()
    return block.to_json()


def decode_field(field: ClickField, stdin: TextIO) -> str | int:
    """Return *field* from the first click event object read from *stdin*.

    Raises ``ValueError`` when the input holds no valid click event.
    """
    text = stdin.read().lstrip()
    payload, _ = json.JSONDecoder().raw_decode(text)
    return ClickEvent.model_validate(payload).value_of(field)


async def _open_bar_output() -> ByteSink:
    try:
        return await open_pipe_writer(sys.stdout.buffer)
    except (OSError, ValueError) as exc:
        _log.info("Standard output is not a pipe (%s), writing to it directly", exc)
        return FileSink(sys.stdout.buffer)


async def _serve(config: BarConfig, debug: BinaryIO | None = None) -> int:
    out = await _open_bar_output()
    if debug is not None:
        out = TeeWriter([out, FileSink(debug)])
    try:
        stdin = await open_pipe_reader(sys.stdin.buffer)
    except (OSError, ValueError) as exc:
        _log.warning("Cannot read click events from standard input: %s", exc)
        events = asyncio.StreamReader()
        events.feed_eof()
        return await run_bar(config, out=out, events=events)
    try:
        return await run_bar(config, out=out, events=stdin.reader)
    finally:
        stdin.close()


def run(config: BarConfig) -> int:
    """Run the bar until SIGINT/SIGTERM; return the exit status."""
    with contextlib.ExitStack() as stack:
        debug = None
        if config.debug_file is not None:
            debug = stack.enter_context(open_append(config.debug_file))
        try:
            return asyncio.run(_serve(config, debug))
        except SpawnError as exc:
            _log.error("%s", exc)
            return 1


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to run, encode or decode."""
    load_dotenv(dotenv_path=Path.cwd() / ".env")
    args = parse_cli_args(argv if argv is not None else sys.argv[1:])

    if args.command == "encode":
        print(encode_block(args, sys.stdin))
        return
    if args.command == "decode":
        try:
            print(decode_field(ClickField(args.field), sys.stdin))
        except (ValueError, ValidationError) as exc:
            raise SystemExit(f"i3cat decode: {exc}") from exc
        return

    config = build_config(args)
    configure_logging(config.log_file)
    cmd_file = resolve_cmd_file(args.cmd_file)
    try:
        commands = load_commands(cmd_file)
    except OSError as exc:
        _log.error("Cannot read commands from %s: %s", cmd_file, exc)
        raise SystemExit(1) from exc
    config = dataclasses.replace(config, commands=tuple(commands))
    for command in config.commands:
        _log.info("Configured command: %s", command)
    raise SystemExit(run(config))


if __name__ == "__main__":
    main()
