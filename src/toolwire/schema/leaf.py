from __future__ import annotations

from typing import Any

from ..errors import EncodingError, UnexpectedValueError
from ..jsonstream import (
    NEEDS_MORE_DATA,
    DecodeResult,
    DecodingStream,
    EncodingStream,
    StringDecodingState,
)
from .base import LeafSchema, Schema, SchemaEncoder


class NullSchema(LeafSchema[None]):
    json_type = "null"
    may_accept_null = True

    def decode_value(self, stream: DecodingStream, state: Any) -> DecodeResult[None]:
        return stream.decode_null()

    def encode_value(self, value: None, stream: EncodingStream) -> None:
        if value is not None:
            raise EncodingError(f"Expected None, got {type(value).__name__}")
        stream.encode_null()


class BooleanSchema(LeafSchema[bool]):
    json_type = "boolean"

    def decode_value(self, stream: DecodingStream, state: Any) -> DecodeResult[bool]:
        return stream.decode_boolean()

    def encode_value(self, value: bool, stream: EncodingStream) -> None:
        if not isinstance(value, bool):
            raise EncodingError(f"Expected bool, got {type(value).__name__}")
        stream.encode(value)


class IntegerSchema(LeafSchema[int]):
    json_type = "integer"

    def decode_value(self, stream: DecodingStream, state: Any) -> DecodeResult[int]:
        number = stream.decode_number()
        if number is NEEDS_MORE_DATA:
            return number
        return number.to_int()

    def encode_value(self, value: int, stream: EncodingStream) -> None:
        if isinstance(value, bool) or not isinstance(value, int):
            raise EncodingError(f"Expected int, got {type(value).__name__}")
        stream.encode(value)


class NumberSchema(LeafSchema[float]):
    json_type = "number"

    def decode_value(self, stream: DecodingStream, state: Any) -> DecodeResult[float]:
        number = stream.decode_number()
        if number is NEEDS_MORE_DATA:
            return number
        return number.to_float()

    def encode_value(self, value: float, stream: EncodingStream) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise EncodingError(f"Expected a number, got {type(value).__name__}")
        stream.encode(value)


class StringSchema(LeafSchema[str]):
    json_type = "string"

    def new_decoding_state(self) -> StringDecodingState:
        return StringDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: StringDecodingState
    ) -> DecodeResult[str]:
        return stream.decode_string(state)

    def encode_value(self, value: str, stream: EncodingStream) -> None:
        if not isinstance(value, str):
            raise EncodingError(f"Expected str, got {type(value).__name__}")
        stream.encode(value)


class ConstSchema(Schema[str]):
    """A string that must have exactly one value."""

    def __init__(self, value: str, *, description: str | None = None) -> None:
        self.value = value
        self.description = description

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        with encoder.encode_definition_object(self.description) as obj:
            obj.encode_property("const", self.value)

    def new_decoding_state(self) -> StringDecodingState:
        return StringDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: StringDecodingState
    ) -> DecodeResult[str]:
        value = stream.decode_string(state)
        if value is NEEDS_MORE_DATA:
            return value
        if value != self.value:
            raise UnexpectedValueError(value, expected=repr(self.value))
        return value

    def encode_value(self, value: str, stream: EncodingStream) -> None:
        if value != self.value:
            raise EncodingError(f"Expected constant {self.value!r}, got {value!r}")
        stream.encode(value)
