"""Msgspec models and decoder for streamed Messages API events."""

from __future__ import annotations

from typing import Any

import msgspec


class Usage(msgspec.Struct, forbid_unknown_fields=False):
    """Token accounting; deltas carry only the counters that changed."""

    input_tokens: int | None = None
    output_tokens: int | None = None
    cache_creation_input_tokens: int | None = None
    cache_read_input_tokens: int | None = None


class MessageInfo(msgspec.Struct, forbid_unknown_fields=False):
    id: str
    model: str
    role: str = "assistant"
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage | None = None


class MessageStart(
    msgspec.Struct, tag="message_start", tag_field="type", forbid_unknown_fields=False
):
    message: MessageInfo


class MessageDeltaBody(msgspec.Struct, forbid_unknown_fields=False):
    stop_reason: str | None = None
    stop_sequence: str | None = None


class MessageDelta(
    msgspec.Struct, tag="message_delta", tag_field="type", forbid_unknown_fields=False
):
    delta: MessageDeltaBody
    usage: Usage | None = None


class MessageStop(
    msgspec.Struct, tag="message_stop", tag_field="type", forbid_unknown_fields=False
):
    pass


class TextBlockStart(
    msgspec.Struct, tag="text", tag_field="type", forbid_unknown_fields=False
):
    text: str = ""


class ToolUseBlockStart(
    msgspec.Struct, tag="tool_use", tag_field="type", forbid_unknown_fields=False
):
    id: str
    name: str
    # Always empty when streaming; the input arrives as input_json_delta
    input: dict[str, Any] = {}


type ContentBlockStartBody = TextBlockStart | ToolUseBlockStart


class ContentBlockStart(
    msgspec.Struct,
    tag="content_block_start",
    tag_field="type",
    forbid_unknown_fields=False,
):
    index: int
    content_block: ContentBlockStartBody


class TextDelta(
    msgspec.Struct, tag="text_delta", tag_field="type", forbid_unknown_fields=False
):
    text: str


class InputJSONDelta(
    msgspec.Struct,
    tag="input_json_delta",
    tag_field="type",
    forbid_unknown_fields=False,
):
    partial_json: str


type ContentDelta = TextDelta | InputJSONDelta


class ContentBlockDelta(
    msgspec.Struct,
    tag="content_block_delta",
    tag_field="type",
    forbid_unknown_fields=False,
):
    index: int
    delta: ContentDelta


class ContentBlockStop(
    msgspec.Struct,
    tag="content_block_stop",
    tag_field="type",
    forbid_unknown_fields=False,
):
    index: int


class Ping(msgspec.Struct, tag="ping", tag_field="type", forbid_unknown_fields=False):
    pass


class ErrorDetail(msgspec.Struct, forbid_unknown_fields=False):
    type: str
    message: str


class Error(msgspec.Struct, tag="error", tag_field="type", forbid_unknown_fields=False):
    error: ErrorDetail


type StreamEvent = (
    MessageStart
    | MessageDelta
    | MessageStop
    | ContentBlockStart
    | ContentBlockDelta
    | ContentBlockStop
    | Ping
    | Error
)


class UnknownEvent(msgspec.Struct, frozen=True):
    """An event that could not be decoded into a known ``StreamEvent``."""

    event: str | None
    data: str
    error: str


def event_type(event: StreamEvent | UnknownEvent) -> str:
    if isinstance(event, UnknownEvent):
        return event.event or "unknown"
    return type(event).__struct_config__.tag


_DECODER = msgspec.json.Decoder(StreamEvent)


def decode_stream_event(data: str | bytes) -> StreamEvent:
    """Decode the data field of one server-sent event."""
    return _DECODER.decode(data)
