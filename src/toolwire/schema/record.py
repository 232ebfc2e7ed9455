"""Record schemas: JSON objects with a fixed, declared set of properties."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..errors import (
    EncodingError,
    MissingPropertyError,
    RepeatedPropertyError,
    SchemaDefinitionError,
    UnknownPropertyError,
)
from ..jsonstream import (
    NEEDS_MORE_DATA,
    DecodeResult,
    DecodingStream,
    EncodingStream,
    JSONValueDecodingState,
    ObjectDecodingState,
    ObjectEncoder,
    decode_json_value,
)
from ..logging import get_logger
from .base import Schema, SchemaEncoder, combine_descriptions
from .optional import OptionalSchema

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class Field:
    """One record property.

    ``attribute`` names the keyword passed to ``build`` and the attribute (or
    mapping key) read when encoding; it defaults to ``key``. An omitted
    optional property builds as ``default_factory()``, or ``None``.
    """

    key: str
    schema: Schema[Any]
    description: str | None = None
    attribute: str | None = None
    default_factory: Callable[[], Any] | None = None

    @property
    def name(self) -> str:
        return self.attribute or self.key

    @property
    def required(self) -> bool:
        return not isinstance(self.schema, OptionalSchema)

    @property
    def property_schema(self) -> Schema[Any]:
        """Schema for the property value when it is present."""
        schema = self.schema
        if isinstance(schema, OptionalSchema):
            return schema.wrapped
        return schema

    @property
    def property_description(self) -> str | None:
        """Field description followed by the optional wrapper's own, if any."""
        if isinstance(self.schema, OptionalSchema):
            return combine_descriptions(self.description, self.schema.description)
        return self.description

    @property
    def decoding_schema(self) -> Schema[Any]:
        # Optional properties also accept an explicit null unless that would
        # be ambiguous with the wrapped schema's own null.
        schema = self.schema
        if isinstance(schema, OptionalSchema) and schema.boxed:
            return schema.wrapped
        return schema


@dataclass(slots=True)
class RecordDecodingState:
    object: ObjectDecodingState = field(default_factory=ObjectDecodingState)
    values: dict[str, Any] = field(default_factory=dict)
    active: Field | None = None
    active_state: Any = None
    skipping: JSONValueDecodingState | None = None


def _read_attribute(value: Any, name: str, required: bool) -> Any:
    if isinstance(value, Mapping):
        if name in value:
            return value[name]
    elif hasattr(value, name):
        return getattr(value, name)
    if required:
        raise EncodingError(
            f"{type(value).__name__} value has no {name!r} for a required property"
        )
    return None


class RecordSchema[V](Schema[V]):
    def __init__(
        self,
        fields: Sequence[Field],
        *,
        description: str | None = None,
        build: Callable[..., V] = dict,
        forbid_unknown_fields: bool = False,
    ) -> None:
        self.fields = tuple(fields)
        self.description = description
        self.build = build
        self.forbid_unknown_fields = forbid_unknown_fields
        self._by_key: dict[str, Field] = {}
        names: set[str] = set()
        for f in self.fields:
            if f.key in self._by_key:
                raise SchemaDefinitionError(f"Duplicate record property {f.key!r}")
            if f.name in names:
                raise SchemaDefinitionError(f"Duplicate record attribute {f.name!r}")
            self._by_key[f.key] = f
            names.add(f.name)

    def __repr__(self) -> str:
        keys = ", ".join(f.key for f in self.fields)
        return f"RecordSchema([{keys}])"

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        with encoder.encode_definition_object(self.description) as obj:
            self.encode_definition_properties(encoder, obj)

    def encode_definition_properties(
        self, encoder: SchemaEncoder, obj: ObjectEncoder
    ) -> None:
        """Write the object keywords into an already open definition."""
        obj.encode_property("type", "object")
        with obj.next_property("properties").encode_object() as properties:
            for f in self.fields:
                encoder.encode_nested(
                    f.property_schema,
                    properties.next_property(f.key),
                    description_prefix=f.property_description,
                )
        required = [f.key for f in self.fields if f.required]
        if required:
            with obj.next_property("required").encode_array() as array:
                for key in required:
                    array.encode_element(key)
        obj.encode_property("additionalProperties", False)

    def new_decoding_state(self) -> RecordDecodingState:
        return RecordDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: RecordDecodingState
    ) -> DecodeResult[V]:
        while True:
            if state.active is not None:
                active = state.active
                value = active.decoding_schema.decode_value(stream, state.active_state)
                if value is NEEDS_MORE_DATA:
                    return value
                state.values[active.key] = value
                state.active = state.active_state = None
            elif state.skipping is not None:
                if decode_json_value(stream, state.skipping) is NEEDS_MORE_DATA:
                    return NEEDS_MORE_DATA
                state.skipping = None

            key = stream.decode_object_component(state.object)
            if key is NEEDS_MORE_DATA:
                return key
            if key is None:
                return self._build(state.values)

            f = self._by_key.get(key)
            if f is None:
                if self.forbid_unknown_fields:
                    raise UnknownPropertyError(key)
                logger.debug("record.unknown_property", key=key)
                state.skipping = JSONValueDecodingState(discard=True)
            elif key in state.values:
                raise RepeatedPropertyError(key)
            else:
                state.active = f
                state.active_state = f.decoding_schema.new_decoding_state()

    def _build(self, values: dict[str, Any]) -> V:
        kwargs: dict[str, Any] = {}
        for f in self.fields:
            if f.key in values:
                kwargs[f.name] = values[f.key]
            elif f.required:
                raise MissingPropertyError(f.key)
            elif f.default_factory is not None:
                kwargs[f.name] = f.default_factory()
            else:
                kwargs[f.name] = None
        return self.build(**kwargs)

    def encode_value(self, value: V, stream: EncodingStream) -> None:
        with stream.encode_object() as obj:
            for f in self.fields:
                item = _read_attribute(value, f.name, f.required)
                if item is None and not f.required:
                    continue
                f.property_schema.encode_value(item, obj.next_property(f.key))
