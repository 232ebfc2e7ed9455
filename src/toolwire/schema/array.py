from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..errors import EncodingError
from ..jsonstream import (
    NEEDS_MORE_DATA,
    ArrayComponent,
    ArrayDecodingState,
    DecodeResult,
    DecodingStream,
    EncodingStream,
    JSONValueDecodingState,
    decode_json_value,
    encode_json_value,
)
from .base import Schema, SchemaEncoder


@dataclass(slots=True)
class ArrayDecodingProgress:
    array: ArrayDecodingState = field(default_factory=ArrayDecodingState)
    values: list[Any] = field(default_factory=list)
    in_element: bool = False
    element_state: Any = None


class ArraySchema[V](Schema[list[V]]):
    def __init__(self, element: Schema[V], *, description: str | None = None):
        self.element = element
        self.description = description

    def __repr__(self) -> str:
        return f"ArraySchema({self.element!r})"

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        with encoder.encode_definition_object(self.description) as obj:
            obj.encode_property("type", "array")
            encoder.encode_nested(self.element, obj.next_property("items"))

    def new_decoding_state(self) -> ArrayDecodingProgress:
        return ArrayDecodingProgress()

    def decode_value(
        self, stream: DecodingStream, state: ArrayDecodingProgress
    ) -> DecodeResult[list[V]]:
        while True:
            if state.in_element:
                value = self.element.decode_value(stream, state.element_state)
                if value is NEEDS_MORE_DATA:
                    return value
                state.values.append(value)
                state.in_element = False

            component = stream.decode_array_component(state.array)
            if component is NEEDS_MORE_DATA:
                return component
            if component is ArrayComponent.END:
                return state.values
            state.in_element = True
            state.element_state = self.element.new_decoding_state()

    def encode_value(self, value: Sequence[V], stream: EncodingStream) -> None:
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
            raise EncodingError(f"Expected a sequence, got {type(value).__name__}")
        with stream.encode_array() as array:
            for item in value:
                self.element.encode_value(item, array.next_element())


class JSONValueSchema(Schema[Any]):
    """Any JSON value, decoded to dicts, lists and scalars."""

    may_accept_null = True

    def __init__(self, *, description: str | None = None) -> None:
        self.description = description

    def __repr__(self) -> str:
        return "JSONValueSchema()"

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        with encoder.encode_definition_object(self.description):
            pass

    def new_decoding_state(self) -> JSONValueDecodingState:
        return JSONValueDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: JSONValueDecodingState
    ) -> DecodeResult[Any]:
        return decode_json_value(stream, state)

    def encode_value(self, value: Any, stream: EncodingStream) -> None:
        encode_json_value(value, stream)
