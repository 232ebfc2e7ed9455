"""Sum types: exactly one of several named cases.

Cases with a payload encode as a single-key object, ``{"case": payload}``.
When every case is payload-free (``UNIT``) the schema collapses to a string
enum of the case keys.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..errors import (
    AdditionalCaseError,
    EncodingError,
    SchemaDefinitionError,
    UnknownCaseError,
)
from ..jsonstream import (
    NEEDS_MORE_DATA,
    DecodeResult,
    DecodingStream,
    EncodingStream,
    JSONValueDecodingState,
    ObjectDecodingState,
    StringDecodingState,
    decode_json_value,
)
from .base import Schema, SchemaEncoder, combine_descriptions


@dataclass(slots=True)
class UnitDecodingState:
    object: ObjectDecodingState = field(default_factory=ObjectDecodingState)
    skipping: JSONValueDecodingState | None = None


class UnitSchema(Schema[None]):
    """The payload of a case that carries no data, encoded as ``{}``."""

    def __init__(self, *, description: str | None = None) -> None:
        self.description = description

    def __repr__(self) -> str:
        return "UNIT"

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        with encoder.encode_definition_object(self.description) as obj:
            obj.encode_property("type", "object")
            obj.encode_property("additionalProperties", False)

    def new_decoding_state(self) -> UnitDecodingState:
        return UnitDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: UnitDecodingState
    ) -> DecodeResult[None]:
        while True:
            if state.skipping is not None:
                if decode_json_value(stream, state.skipping) is NEEDS_MORE_DATA:
                    return NEEDS_MORE_DATA
                state.skipping = None
            key = stream.decode_object_component(state.object)
            if key is NEEDS_MORE_DATA:
                return key
            if key is None:
                return None
            state.skipping = JSONValueDecodingState(discard=True)

    def encode_value(self, value: None, stream: EncodingStream) -> None:
        with stream.encode_object():
            pass


UNIT = UnitSchema()


@dataclass(frozen=True, slots=True)
class SumValue:
    """Default value type for sum schemas built without ``build``/``case_of``."""

    case: str
    payload: Any = None


@dataclass(frozen=True, slots=True)
class Case:
    key: str
    schema: Schema[Any] = UNIT
    description: str | None = None
    # Maps the decoded payload to the sum's value type
    build: Callable[[Any], Any] | None = None

    @property
    def is_unit(self) -> bool:
        return isinstance(self.schema, UnitSchema)


def _default_case_of(value: Any) -> tuple[str, Any]:
    if not isinstance(value, SumValue):
        raise EncodingError(
            f"Expected SumValue, got {type(value).__name__}; pass case_of= to"
            " map custom value types"
        )
    return value.case, value.payload


@dataclass(slots=True)
class SumDecodingState:
    object: ObjectDecodingState = field(default_factory=ObjectDecodingState)
    string: StringDecodingState = field(default_factory=StringDecodingState)
    case: Case | None = None
    case_state: Any = None
    has_value: bool = False
    value: Any = None


class SumTypeSchema[V](Schema[V]):
    def __init__(
        self,
        cases: Sequence[Case],
        *,
        description: str | None = None,
        case_of: Callable[[V], tuple[str, Any]] = _default_case_of,
    ) -> None:
        if not cases:
            raise SchemaDefinitionError("A sum type needs at least one case")
        self.cases = tuple(cases)
        self.description = description
        self.case_of = case_of
        self._by_key: dict[str, Case] = {}
        for case in self.cases:
            if case.key in self._by_key:
                raise SchemaDefinitionError(f"Duplicate case key {case.key!r}")
            self._by_key[case.key] = case
        self.is_enum = all(case.is_unit for case in self.cases)

    def __repr__(self) -> str:
        keys = ", ".join(case.key for case in self.cases)
        return f"SumTypeSchema([{keys}])"

    def _build(self, case: Case, payload: Any) -> V:
        if case.build is not None:
            return case.build(payload)
        return SumValue(case.key, payload)  # type: ignore[return-value]

    def _case_for(self, value: V) -> tuple[Case, Any]:
        key, payload = self.case_of(value)
        case = self._by_key.get(key)
        if case is None:
            raise EncodingError(f"Unknown case {key!r}")
        return case, payload

    def encode_schema_definition(self, encoder: SchemaEncoder) -> None:
        if self.is_enum:
            lines = [
                f" - {case.key}: {case.description}"
                for case in self.cases
                if case.description
            ]
            own = combine_descriptions(self.description, *lines)
            with encoder.encode_definition_object(own) as obj:
                obj.encode_property("type", "string")
                with obj.next_property("enum").encode_array() as values:
                    for case in self.cases:
                        values.encode_element(case.key)
            return

        with encoder.encode_definition_object(self.description) as obj:
            obj.encode_property("type", "object")
            with obj.next_property("properties").encode_object() as properties:
                for case in self.cases:
                    encoder.encode_nested(
                        case.schema,
                        properties.next_property(case.key),
                        description_prefix=case.description,
                    )
            obj.encode_property("additionalProperties", False)
            obj.encode_property("minProperties", 1)
            obj.encode_property("maxProperties", 1)

    def new_decoding_state(self) -> SumDecodingState:
        return SumDecodingState()

    def decode_value(
        self, stream: DecodingStream, state: SumDecodingState
    ) -> DecodeResult[V]:
        if self.is_enum:
            key = stream.decode_string(state.string)
            if key is NEEDS_MORE_DATA:
                return key
            case = self._by_key.get(key)
            if case is None:
                raise UnknownCaseError(key)
            return self._build(case, None)

        while True:
            if state.case is not None and not state.has_value:
                payload = state.case.schema.decode_value(stream, state.case_state)
                if payload is NEEDS_MORE_DATA:
                    return payload
                state.value = self._build(state.case, payload)
                state.has_value = True

            key = stream.decode_object_component(state.object)
            if key is NEEDS_MORE_DATA:
                return key
            if key is None:
                if state.case is None:
                    raise UnknownCaseError(None)
                return state.value
            if state.case is not None:
                raise AdditionalCaseError(state.case.key, key)
            case = self._by_key.get(key)
            if case is None:
                raise UnknownCaseError(key)
            state.case = case
            state.case_state = case.schema.new_decoding_state()

    def encode_value(self, value: V, stream: EncodingStream) -> None:
        case, payload = self._case_for(value)
        if self.is_enum:
            stream.encode(case.key)
            return
        with stream.encode_object() as obj:
            case.schema.encode_value(payload, obj.next_property(case.key))
