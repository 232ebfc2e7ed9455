from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import MissingPropertyError, RepeatedPropertyError
from ..jsonstream import (
    NEEDS_MORE_DATA,
    DecodeResult,
    DecodingStream,
    EncodingStream,
    JSONValueDecodingState,
    ObjectDecodingState,
    ValueKind,
    decode_json_value,
)
from .base import LeafSchema, Schema, SchemaEncoder, combine_descriptions

_BOX_KEY = "value"


class _Phase(Enum):
    PEEK = "peek"
    NULL = "null"
    WRAPPED = "wrapped"
    BOXED = "boxed"


@dataclass(slots=True)
class OptionalDecodingState:
    phase: _Phase = _Phase.PEEK
    wrapped: Any = None
    # Boxed form only
    object: ObjectDecodingState = field(default_factory=ObjectDecodingState)
    in_value: bool = False
    skipping: JSONValueDecodingState | None = None
    has_value: bool = False
    value: Any = None


class OptionalSchema[V](Schema[V | None]):
    """A value that may be absent.

    As a record field, absence means the property is omitted. Standalone,
    absence is ``null``; when the wrapped schema can itself produce ``null``
    the present value is boxed as ``{"value": ...}`` so both stay distinct.
    """

    may_accept_null = True

    def __init__(self, wrapped: Schema[V], *, description: str | None = None):
        self.wrapped = wrapped
        self.description = description
        self.boxed = wrapped.may_accept_null

    def __repr__(self) -> str:
        return f"OptionalSchema({self.wrapped!r})"

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        wrapped = self.wrapped
        if isinstance(wrapped, LeafSchema) and not self.boxed:
            own = combine_descriptions(self.description, wrapped.description)
            with encoder.encode_definition_object(own) as obj:
                with obj.next_property("type").encode_array() as types:
                    types.encode_element("null")
                    types.encode_element(wrapped.json_type)
            return

        with encoder.encode_definition_object(self.description) as obj:
            with obj.next_property("oneOf").encode_array() as options:
                with options.next_element().encode_object() as null:
                    null.encode_property("type", "null")
                stream = options.next_element()
                if not self.boxed:
                    encoder.encode_nested(wrapped, stream)
                    return
                with stream.encode_object() as box:
                    box.encode_property("type", "object")
                    with box.next_property("properties").encode_object() as props:
                        encoder.encode_nested(wrapped, props.next_property(_BOX_KEY))
                    with box.next_property("required").encode_array() as required:
                        required.encode_element(_BOX_KEY)
                    box.encode_property("additionalProperties", False)

    def new_decoding_state(self) -> OptionalDecodingState:
        return OptionalDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: OptionalDecodingState
    ) -> DecodeResult[V | None]:
        if state.phase is _Phase.PEEK:
            kind = stream.peek_value_kind()
            if kind is NEEDS_MORE_DATA:
                return kind
            if kind is ValueKind.NULL:
                state.phase = _Phase.NULL
            elif self.boxed:
                state.phase = _Phase.BOXED
            else:
                state.phase = _Phase.WRAPPED
                state.wrapped = self.wrapped.new_decoding_state()

        match state.phase:
            case _Phase.NULL:
                return stream.decode_null()
            case _Phase.WRAPPED:
                return self.wrapped.decode_value(stream, state.wrapped)
            case _:
                return self._decode_boxed(stream, state)

    def _decode_boxed(
        self, stream: DecodingStream, state: OptionalDecodingState
    ) -> DecodeResult[V]:
        while True:
            if state.in_value:
                value = self.wrapped.decode_value(stream, state.wrapped)
                if value is NEEDS_MORE_DATA:
                    return value
                state.value, state.has_value, state.in_value = value, True, False
            elif state.skipping is not None:
                if decode_json_value(stream, state.skipping) is NEEDS_MORE_DATA:
                    return NEEDS_MORE_DATA
                state.skipping = None

            name = stream.decode_object_component(state.object)
            if name is NEEDS_MORE_DATA:
                return name
            if name is None:
                if not state.has_value:
                    raise MissingPropertyError(_BOX_KEY)
                return state.value
            if name != _BOX_KEY:
                state.skipping = JSONValueDecodingState(discard=True)
            elif state.has_value:
                raise RepeatedPropertyError(_BOX_KEY)
            else:
                state.in_value = True
                state.wrapped = self.wrapped.new_decoding_state()

    def encode_value(self, value: V | None, stream: EncodingStream) -> None:
        if value is None:
            stream.encode_null()
        elif self.boxed:
            with stream.encode_object() as box:
                self.wrapped.encode_value(value, box.next_property(_BOX_KEY))
        else:
            self.wrapped.encode_value(value, stream)
