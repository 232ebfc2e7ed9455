"""Schema-less JSON values: resumable decoding with an explicit stack, and encoding."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..errors import EncodingError
from .decoding import (
    NEEDS_MORE_DATA,
    ArrayComponent,
    ArrayDecodingState,
    DecodeResult,
    DecodingStream,
    ObjectDecodingState,
    StringDecodingState,
    ValueKind,
)
from .encoding import EncodingStream


@dataclass(slots=True)
class _ObjectFrame:
    state: ObjectDecodingState = field(default_factory=ObjectDecodingState)
    value: dict[str, Any] | None = None
    key: str | None = None


@dataclass(slots=True)
class _ArrayFrame:
    state: ArrayDecodingState = field(default_factory=ArrayDecodingState)
    value: list[Any] | None = None


@dataclass(slots=True)
class JSONValueDecodingState:
    # When set, values are validated and consumed but not built
    discard: bool = False
    expecting_value: bool = True
    stack: list[_ObjectFrame | _ArrayFrame] = field(default_factory=list)
    string: StringDecodingState = field(default_factory=StringDecodingState)


def _ignore(_fragment: str) -> None:
    pass


def _decode_scalar(
    stream: DecodingStream, kind: ValueKind, state: JSONValueDecodingState
) -> DecodeResult[Any]:
    match kind:
        case ValueKind.NULL:
            return stream.decode_null()
        case ValueKind.BOOLEAN:
            return stream.decode_boolean()
        case ValueKind.NUMBER:
            number = stream.decode_number()
            if number is NEEDS_MORE_DATA:
                return number
            return None if state.discard else number.to_python()
        case ValueKind.STRING:
            if state.discard:
                result = stream.decode_string_fragments(state.string, _ignore)
            else:
                result = stream.decode_string(state.string)
            if result is not NEEDS_MORE_DATA:
                state.string = StringDecodingState()
            return result
    raise AssertionError(kind)


def decode_json_value(
    stream: DecodingStream, state: JSONValueDecodingState
) -> DecodeResult[Any]:
    """Decode one arbitrary JSON value into dicts, lists and scalars.

    Duplicate object keys keep the last value, matching ``json.loads``.
    """
    while True:
        if state.expecting_value:
            kind = stream.peek_value_kind()
            if kind is NEEDS_MORE_DATA:
                return kind
            if kind is ValueKind.OBJECT:
                state.stack.append(_ObjectFrame(value=None if state.discard else {}))
                state.expecting_value = False
                continue
            if kind is ValueKind.ARRAY:
                state.stack.append(_ArrayFrame(value=None if state.discard else []))
                state.expecting_value = False
                continue
            value = _decode_scalar(stream, kind, state)
            if value is NEEDS_MORE_DATA:
                return value
            state.expecting_value = False
        else:
            frame = state.stack[-1]
            if isinstance(frame, _ObjectFrame):
                name = stream.decode_object_component(frame.state)
                if name is NEEDS_MORE_DATA:
                    return name
                if name is not None:
                    frame.key = name
                    state.expecting_value = True
                    continue
            else:
                component = stream.decode_array_component(frame.state)
                if component is NEEDS_MORE_DATA:
                    return component
                if component is ArrayComponent.ELEMENT:
                    state.expecting_value = True
                    continue
            value = frame.value
            state.stack.pop()

        if not state.stack:
            return value
        parent = state.stack[-1]
        if parent.value is None:
            continue
        if isinstance(parent, _ObjectFrame):
            parent.value[parent.key] = value
        else:
            parent.value.append(value)


def encode_json_value(value: Any, stream: EncodingStream) -> None:
    if isinstance(value, Mapping):
        with stream.encode_object() as obj:
            for key, item in value.items():
                if not isinstance(key, str):
                    raise EncodingError(
                        f"Object keys must be strings, got {type(key).__name__}"
                    )
                encode_json_value(item, obj.next_property(key))
    elif isinstance(value, (list, tuple)):
        with stream.encode_array() as array:
            for item in value:
                encode_json_value(item, array.next_element())
    else:
        stream.encode(value)
