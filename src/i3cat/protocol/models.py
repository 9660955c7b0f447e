"""Pydantic models for the i3bar protocol: header, blocks and click events.

Encoding follows the i3bar conventions: empty strings, zero integers and
``urgent=false`` are omitted, and ``separator`` is only written when it is
``false`` because i3bar treats an absent separator as ``true``.

Dependencies: pydantic
Wired in: bar/framer.py, bar/aggregator.py, bar/click_events.py, cli.py
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, model_validator

ERROR_COLOR = "#FF0000"


class ParseError(ValueError):
    """A payload could not be decoded into protocol models."""

    def __init__(self, cause: Exception | str) -> None:
        self.cause = cause
        super().__init__(describe_cause(cause))


def describe_cause(cause: Exception | str) -> str:
    """Return a one-line description of a decode failure."""
    if isinstance(cause, ValidationError):
        errors = cause.errors(include_url=False)
        first = errors[0]
        loc = ".".join(str(part) for part in first["loc"])
        text = f"{first['msg']} at {loc}" if loc else first["msg"]
        if len(errors) > 1:
            text += f" (and {len(errors) - 1} more)"
        return text
    return str(cause)


class _WireModel(BaseModel):
    # No coercion: "5" is not an int and "yes" is not a bool.
    model_config = ConfigDict(strict=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        # ``null`` means "not set": the field keeps its default.
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data

    def to_json(self) -> str:
        """Encode with zero-valued optional fields omitted."""
        return self.model_dump_json(exclude_defaults=True)


class Header(_WireModel):
    """First line of an i3bar stream."""

    version: int
    stop_signal: int = 0
    cont_signal: int = 0
    click_events: bool = False


class Block(_WireModel):
    """One visual segment of the bar."""

    full_text: str
    short_text: str = ""
    color: str = ""
    min_width: int = 0
    align: str = ""
    name: str = ""
    instance: str = ""
    urgent: bool = False
    separator: bool = True
    separator_block_width: int = 0

    def __str__(self) -> str:
        return self.full_text

    def matches(self, event: ClickEvent) -> bool:
        """Return True when *event* targets this block."""
        return self.name == event.name and self.instance == event.instance


class ClickField(StrEnum):
    """Click event fields the ``decode`` utility can extract."""

    NAME = "name"
    INSTANCE = "instance"
    BUTTON = "button"
    X = "x"
    Y = "y"


class ClickEvent(_WireModel):
    """A click on a named block, as sent by i3bar."""

    name: str = ""
    instance: str = ""
    button: int = 0
    x: int = 0
    y: int = 0

    def to_json(self) -> str:
        """Encode all five fields; the receiving source sees zeros explicitly."""
        return self.model_dump_json()

    def value_of(self, which: ClickField) -> str | int:
        match which:
            case ClickField.NAME:
                return self.name
            case ClickField.INSTANCE:
                return self.instance
            case ClickField.BUTTON:
                return self.button
            case ClickField.X:
                return self.x
            case ClickField.Y:
                return self.y


_BLOCK_LIST = TypeAdapter(list[Block])


def encode_blocks(blocks: list[Block]) -> bytes:
    """Encode *blocks* as one compact JSON array."""
    return _BLOCK_LIST.dump_json(blocks, exclude_defaults=True)


def decode_blocks(data: bytes | str) -> list[Block]:
    """Decode a JSON array of block objects.

    Raises ``ParseError`` on malformed JSON or on objects that are not blocks.
    """
    try:
        return _BLOCK_LIST.validate_json(data)
    except ValidationError as exc:
        raise ParseError(exc) from exc


def decode_click_event(data: bytes | str) -> ClickEvent:
    """Decode one click event object. Raises ``ParseError``."""
    try:
        return ClickEvent.model_validate_json(data)
    except ValidationError as exc:
        raise ParseError(exc) from exc


def error_block(cause: Exception | str) -> Block:
    """Block shown in place of a source whose output could not be parsed."""
    return Block(full_text=f"Error parsing input: {describe_cause(cause)}", color=ERROR_COLOR)
