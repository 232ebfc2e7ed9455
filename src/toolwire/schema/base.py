"""Schema contract shared by every variant.

A schema is a stateless description of one value type. Decoding progress for
a single attempt lives in the object returned by ``new_decoding_state`` and is
passed back on every retry after ``NEEDS_MORE_DATA``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from ..jsonstream import DecodeResult, DecodingStream, EncodingStream, ObjectEncoder


def combine_descriptions(*parts: str | None) -> str | None:
    present = [part for part in parts if part]
    return "\n".join(present) if present else None


@dataclass(slots=True)
class SchemaEncoder:
    """Writes one schema definition, carrying description text from the context."""

    stream: EncodingStream
    description_prefix: str | None = None
    description_suffix: str | None = None

    def contextual_description(self, own: str | None) -> str | None:
        return combine_descriptions(
            self.description_prefix, own, self.description_suffix
        )

    def encode_nested(
        self,
        schema: Schema[Any],
        stream: EncodingStream,
        *,
        description_prefix: str | None = None,
        description_suffix: str | None = None,
    ) -> None:
        """Encode a sub-schema definition; context descriptions are not inherited."""
        schema.encode_schema_definition(
            SchemaEncoder(stream, description_prefix, description_suffix)
        )

    @contextmanager
    def encode_definition_object(self, own: str | None) -> Iterator[ObjectEncoder]:
        """Open the definition object and write its description, if any."""
        with self.stream.encode_object() as obj:
            description = self.contextual_description(own)
            if description is not None:
                obj.encode_property("description", description)
            yield obj


class Schema[V](ABC):
    description: str | None = None
    # True when null is one of the encodings of this schema's values
    may_accept_null: bool = False

    @abstractmethod
    def encode_schema_definition(self, encoder: SchemaEncoder) -> None: ...

    def new_decoding_state(self) -> Any:
        return None

    @abstractmethod
    def decode_value(self, stream: DecodingStream, state: Any) -> DecodeResult[V]: ...

    @abstractmethod
    def encode_value(self, value: V, stream: EncodingStream) -> None: ...


class LeafSchema[V](Schema[V]):
    """Schemas described by a single JSON ``type`` keyword."""

    json_type: str

    def __init__(self, *, description: str | None = None) -> None:
        self.description = description

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        with encoder.encode_definition_object(self.description) as obj:
            obj.encode_property("type", self.json_type)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(description={self.description!r})"
