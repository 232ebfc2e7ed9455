"""Tool declarations sent with a request."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .codec import StreamingDecoder, decode_value
from .jsonstream import EncodingStream, ObjectEncoder
from .schema import Schema, SchemaEncoder, schema_for


@dataclass(frozen=True, slots=True)
class Tool[I]:
    name: str
    description: str
    input_schema: Schema[I]

    @classmethod
    def from_type(cls, name: str, description: str, tp: Any) -> Tool[Any]:
        """Declare a tool whose input is described by a dataclass or type hint."""
        return cls(name, description, schema_for(tp))

    def encode_properties(self, obj: ObjectEncoder) -> None:
        obj.encode_property("name", self.name)
        obj.encode_property("description", self.description)
        self.input_schema.encode_schema_definition(
            SchemaEncoder(obj.next_property("input_schema"))
        )

    def definition(self, *, pretty_print: bool = False) -> str:
        stream = EncodingStream(pretty_print=pretty_print)
        with stream.encode_object() as obj:
            self.encode_properties(obj)
        return stream.text

    def decode_input(self, text: str | bytes) -> I:
        return decode_value(text, self.input_schema)

    def input_decoder(self) -> StreamingDecoder[I]:
        return StreamingDecoder(self.input_schema)
