"""i3bar protocol models and stream framing.

Public API: Block, ClickEvent, ClickField, Header, JsonStreamReader,
    ParseError, decode_blocks, decode_click_event, encode_blocks, error_block
Internal: models, stream
"""

from i3cat.protocol.models import (
    Block,
    ClickEvent,
    ClickField,
    Header,
    ParseError,
    decode_blocks,
    decode_click_event,
    encode_blocks,
    error_block,
)
from i3cat.protocol.stream import JsonStreamReader

__all__ = [
    "Block",
    "ClickEvent",
    "ClickField",
    "Header",
    "JsonStreamReader",
    "ParseError",
    "decode_blocks",
    "decode_click_event",
    "encode_blocks",
    "error_block",
]
