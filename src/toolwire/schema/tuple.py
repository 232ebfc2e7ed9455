"""Fixed-arity tuples, as JSON arrays or as objects with one key per element."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from ..errors import (
    ArityError,
    EncodingError,
    MissingPropertyError,
    RepeatedPropertyError,
    SchemaDefinitionError,
    UnknownPropertyError,
)
from ..jsonstream import (
    NEEDS_MORE_DATA,
    ArrayComponent,
    ArrayDecodingState,
    DecodeResult,
    DecodingStream,
    EncodingStream,
    ObjectDecodingState,
)
from .base import Schema, SchemaEncoder


def _check_arity(value: Any, expected: int) -> tuple[Any, ...]:
    if not isinstance(value, (tuple, list)):
        raise EncodingError(f"Expected a tuple, got {type(value).__name__}")
    if len(value) != expected:
        raise EncodingError(f"Expected {expected} elements, got {len(value)}")
    return tuple(value)


@dataclass(slots=True)
class TupleDecodingState:
    array: ArrayDecodingState = field(default_factory=ArrayDecodingState)
    values: list[Any] = field(default_factory=list)
    in_element: bool = False
    element_state: Any = None


class TupleSchema(Schema[tuple[Any, ...]]):
    """Unkeyed tuple: a JSON array of exactly ``len(elements)`` items."""

    def __init__(
        self,
        elements: Sequence[Schema[Any]],
        *,
        descriptions: Sequence[str | None] | None = None,
        description: str | None = None,
    ) -> None:
        self.elements = tuple(elements)
        if descriptions is not None and len(descriptions) != len(self.elements):
            raise SchemaDefinitionError("One description per element is required")
        self.descriptions = tuple(descriptions or [None] * len(self.elements))
        self.description = description

    def __repr__(self) -> str:
        return f"TupleSchema({list(self.elements)!r})"

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        arity = len(self.elements)
        with encoder.encode_definition_object(self.description) as obj:
            obj.encode_property("type", "array")
            with obj.next_property("prefixItems").encode_array() as items:
                for schema, description in zip(self.elements, self.descriptions):
                    encoder.encode_nested(
                        schema, items.next_element(), description_prefix=description
                    )
            obj.encode_property("minItems", arity)
            obj.encode_property("maxItems", arity)

    def new_decoding_state(self) -> TupleDecodingState:
        return TupleDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: TupleDecodingState
    ) -> DecodeResult[tuple[Any, ...]]:
        arity = len(self.elements)
        while True:
            if state.in_element:
                schema = self.elements[len(state.values)]
                value = schema.decode_value(stream, state.element_state)
                if value is NEEDS_MORE_DATA:
                    return value
                state.values.append(value)
                state.in_element = False

            component = stream.decode_array_component(state.array)
            if component is NEEDS_MORE_DATA:
                return component
            if component is ArrayComponent.END:
                if len(state.values) != arity:
                    raise ArityError(arity, found=len(state.values))
                return tuple(state.values)
            if len(state.values) == arity:
                raise ArityError(arity)
            state.in_element = True
            state.element_state = self.elements[len(state.values)].new_decoding_state()

    def encode_value(self, value: tuple[Any, ...], stream: EncodingStream) -> None:
        items = _check_arity(value, len(self.elements))
        with stream.encode_array() as array:
            for schema, item in zip(self.elements, items):
                schema.encode_value(item, array.next_element())


@dataclass(slots=True)
class KeyedTupleDecodingState:
    object: ObjectDecodingState = field(default_factory=ObjectDecodingState)
    values: dict[int, Any] = field(default_factory=dict)
    active: int | None = None
    active_state: Any = None


class KeyedTupleSchema(Schema[tuple[Any, ...]]):
    """Keyed tuple: an object with exactly one required property per element."""

    def __init__(
        self,
        elements: Sequence[tuple[str, Schema[Any]]],
        *,
        description: str | None = None,
    ) -> None:
        self.keys = tuple(key for key, _ in elements)
        self.elements = tuple(schema for _, schema in elements)
        self.description = description
        self._index: dict[str, int] = {}
        for i, key in enumerate(self.keys):
            if key in self._index:
                raise SchemaDefinitionError(f"Duplicate tuple element key {key!r}")
            self._index[key] = i

    def __repr__(self) -> str:
        return f"KeyedTupleSchema({list(self.keys)!r})"

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        with encoder.encode_definition_object(self.description) as obj:
            obj.encode_property("type", "object")
            with obj.next_property("properties").encode_object() as properties:
                for key, schema in zip(self.keys, self.elements):
                    encoder.encode_nested(schema, properties.next_property(key))
            with obj.next_property("required").encode_array() as required:
                for key in self.keys:
                    required.encode_element(key)
            obj.encode_property("additionalProperties", False)

    def new_decoding_state(self) -> KeyedTupleDecodingState:
        return KeyedTupleDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: KeyedTupleDecodingState
    ) -> DecodeResult[tuple[Any, ...]]:
        while True:
            if state.active is not None:
                schema = self.elements[state.active]
                value = schema.decode_value(stream, state.active_state)
                if value is NEEDS_MORE_DATA:
                    return value
                state.values[state.active] = value
                state.active = state.active_state = None

            key = stream.decode_object_component(state.object)
            if key is NEEDS_MORE_DATA:
                return key
            if key is None:
                for i, element_key in enumerate(self.keys):
                    if i not in state.values:
                        raise MissingPropertyError(element_key)
                return tuple(state.values[i] for i in range(len(self.keys)))
            index = self._index.get(key)
            if index is None:
                raise UnknownPropertyError(key)
            if index in state.values:
                raise RepeatedPropertyError(key)
            state.active = index
            state.active_state = self.elements[index].new_decoding_state()

    def encode_value(self, value: tuple[Any, ...], stream: EncodingStream) -> None:
        items = _check_arity(value, len(self.elements))
        with stream.encode_object() as obj:
            for key, schema, item in zip(self.keys, self.elements, items):
                schema.encode_value(item, obj.next_property(key))
