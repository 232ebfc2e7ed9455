from __future__ import annotations

from enum import Enum
from typing import Any

from ..errors import EncodingError, SchemaDefinitionError, UnexpectedValueError
from ..jsonstream import (
    NEEDS_MORE_DATA,
    DecodeResult,
    DecodingStream,
    EncodingStream,
    StringDecodingState,
)
from .base import Schema, SchemaEncoder


class EnumSchema[E: Enum](Schema[E]):
    """A Python ``Enum`` whose member values are all ``str`` or all ``int``."""

    def __init__(self, enum_cls: type[E], *, description: str | None = None):
        members = list(enum_cls)
        if not members:
            raise SchemaDefinitionError(f"{enum_cls.__name__} has no members")
        if all(isinstance(m.value, str) for m in members):
            self.json_type = "string"
        elif all(
            isinstance(m.value, int) and not isinstance(m.value, bool)
            for m in members
        ):
            self.json_type = "integer"
        else:
            raise SchemaDefinitionError(
                f"{enum_cls.__name__} values must be all str or all int"
            )
        self.enum_cls = enum_cls
        self.description = description

    def __repr__(self) -> str:
        return f"EnumSchema({self.enum_cls.__name__})"

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        with encoder.encode_definition_object(self.description) as obj:
            obj.encode_property("type", self.json_type)
            with obj.next_property("enum").encode_array() as values:
                for member in self.enum_cls:
                    values.encode_element(member.value)

    def new_decoding_state(self) -> StringDecodingState:
        return StringDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: StringDecodingState
    ) -> DecodeResult[E]:
        raw: Any
        if self.json_type == "string":
            raw = stream.decode_string(state)
            if raw is NEEDS_MORE_DATA:
                return raw
        else:
            number = stream.decode_number()
            if number is NEEDS_MORE_DATA:
                return number
            raw = number.to_int()
        try:
            return self.enum_cls(raw)
        except ValueError:
            raise UnexpectedValueError(
                raw, expected=f"a {self.enum_cls.__name__} value"
            ) from None

    def encode_value(self, value: E, stream: EncodingStream) -> None:
        if not isinstance(value, self.enum_cls):
            raise EncodingError(
                f"Expected {self.enum_cls.__name__}, got {type(value).__name__}"
            )
        stream.encode(value.value)
