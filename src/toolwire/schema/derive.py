"""Build schemas from Python type hints.

Supported: ``None``, ``bool``, ``int``, ``float``, ``str``, ``typing.Any``,
``X | None``, ``list[X]``, fixed ``tuple[X, Y]``, ``enum.Enum`` subclasses,
dataclasses and ``msgspec.Struct`` types (as records), and unions of
dataclasses/Structs (as sum types keyed by snake_cased class name).
``Annotated[T, "text"]`` attaches a description.
"""

from __future__ import annotations

import dataclasses
import re
import types
import typing
from collections.abc import Callable
from enum import Enum
from typing import Any

import msgspec

from ..errors import SchemaDefinitionError
from .array import ArraySchema, JSONValueSchema
from .base import Schema
from .enumeration import EnumSchema
from .leaf import BooleanSchema, IntegerSchema, NullSchema, NumberSchema, StringSchema
from .optional import OptionalSchema
from .record import Field, RecordSchema
from .sum import Case, SumTypeSchema
from .tuple import TupleSchema

_CAMEL_BOUNDARY_RE = re.compile(r"(?<!^)(?=[A-Z])")

_LEAVES: dict[Any, type[Schema[Any]]] = {
    bool: BooleanSchema,
    int: IntegerSchema,
    float: NumberSchema,
    str: StringSchema,
}


def case_key(cls: type) -> str:
    return _CAMEL_BOUNDARY_RE.sub("_", cls.__name__).lower()


def _description_from_annotated(tp: Any) -> tuple[Any, str | None]:
    if typing.get_origin(tp) is typing.Annotated:
        base, *metadata = typing.get_args(tp)
        texts = [m for m in metadata if isinstance(m, str)]
        return base, "\n".join(texts) if texts else None
    return tp, None


def _class_description(cls: type) -> str | None:
    doc = cls.__doc__
    if not doc:
        return None
    # dataclasses synthesize "Name(field: type, ...)" when no docstring exists
    if dataclasses.is_dataclass(cls) and doc.startswith(f"{cls.__name__}("):
        return None
    return " ".join(doc.split())


def _is_record_type(tp: Any) -> bool:
    return isinstance(tp, type) and (
        dataclasses.is_dataclass(tp) or issubclass(tp, msgspec.Struct)
    )


class _Deriver:
    def __init__(self, *, forbid_unknown_fields: bool) -> None:
        self.forbid_unknown_fields = forbid_unknown_fields
        self._resolving: set[type] = set()

    def derive(self, tp: Any, description: str | None = None) -> Schema[Any]:
        tp, annotated = _description_from_annotated(tp)
        description = description or annotated

        if isinstance(tp, Schema):
            return tp
        if tp is None or tp is type(None):
            return NullSchema(description=description)
        if tp is Any:
            return JSONValueSchema(description=description)
        if tp in _LEAVES:
            return _LEAVES[tp](description=description)
        if isinstance(tp, type) and issubclass(tp, Enum):
            return EnumSchema(tp, description=description or _class_description(tp))
        if _is_record_type(tp):
            return self._record(tp, description)

        origin = typing.get_origin(tp)
        args = typing.get_args(tp)
        if origin in (typing.Union, types.UnionType):
            return self._union(args, description)
        if origin is list:
            (element,) = args or (Any,)
            return ArraySchema(self.derive(element), description=description)
        if origin is tuple:
            if not args or (len(args) == 2 and args[1] is Ellipsis):
                raise SchemaDefinitionError(
                    f"Variable-length {tp!r} is not supported; use list[...]"
                )
            elements, descriptions = [], []
            for arg in args:
                base, element_description = _description_from_annotated(arg)
                elements.append(self.derive(base))
                descriptions.append(element_description)
            return TupleSchema(
                elements, descriptions=descriptions, description=description
            )
        raise SchemaDefinitionError(f"Cannot derive a schema for {tp!r}")

    def _union(self, args: tuple[Any, ...], description: str | None) -> Schema[Any]:
        members = [arg for arg in args if arg is not type(None)]
        nullable = len(members) != len(args)
        if len(members) == 1:
            inner = self.derive(members[0])
        elif all(_is_record_type(m) for m in members):
            inner = self._sum(members, None if nullable else description)
        else:
            raise SchemaDefinitionError(
                f"Unions are supported only over record types, got {args!r}"
            )
        if nullable:
            return OptionalSchema(inner, description=description)
        return inner

    def _sum(self, members: list[type], description: str | None) -> Schema[Any]:
        keys = {cls: case_key(cls) for cls in members}
        # Case payloads are records, which already carry the class docstring
        cases = [Case(keys[cls], self.derive(cls), build=_identity) for cls in members]

        def case_of(value: Any) -> tuple[str, Any]:
            return keys.get(type(value), type(value).__name__), value

        return SumTypeSchema(cases, description=description, case_of=case_of)

    def _record(self, cls: type, description: str | None) -> Schema[Any]:
        if cls in self._resolving:
            raise SchemaDefinitionError(
                f"Recursive type {cls.__name__} cannot be derived"
            )
        self._resolving.add(cls)
        try:
            hints = typing.get_type_hints(cls, include_extras=True)
            fields = [
                self._field(name, key, base, text, default)
                for name, key, base, text, default in self._record_fields(cls, hints)
            ]
        finally:
            self._resolving.discard(cls)
        return RecordSchema(
            fields,
            description=description or _class_description(cls),
            build=cls,
            forbid_unknown_fields=self.forbid_unknown_fields,
        )

    def _field(
        self,
        name: str,
        key: str,
        tp: Any,
        description: str | None,
        default_factory: Callable[[], Any] | None,
    ) -> Field:
        schema = self.derive(tp)
        if default_factory is not None and not isinstance(schema, OptionalSchema):
            schema = OptionalSchema(schema)
        return Field(
            key,
            schema,
            description=description,
            attribute=name,
            default_factory=default_factory,
        )

    @staticmethod
    def _record_fields(cls: type, hints: dict[str, Any]):
        if issubclass(cls, msgspec.Struct):
            for info in msgspec.structs.fields(cls):
                base, text = _description_from_annotated(hints[info.name])
                yield info.name, info.encode_name, base, text, _struct_default(info)
            return
        for f in dataclasses.fields(cls):
            if not f.init:
                continue
            base, text = _description_from_annotated(hints[f.name])
            text = f.metadata.get("description", text)
            yield f.name, f.name, base, text, _dataclass_default(f)


def _identity(value: Any) -> Any:
    return value


def _constant(value: Any) -> Callable[[], Any]:
    return lambda: value


def _dataclass_default(f: dataclasses.Field[Any]) -> Callable[[], Any] | None:
    if f.default_factory is not dataclasses.MISSING:
        return f.default_factory
    if f.default is not dataclasses.MISSING:
        return _constant(f.default)
    return None


def _struct_default(info: msgspec.structs.FieldInfo) -> Callable[[], Any] | None:
    if info.default_factory is not msgspec.NODEFAULT:
        return info.default_factory
    if info.default is not msgspec.NODEFAULT:
        return _constant(info.default)
    return None


def schema_for(tp: Any, *, forbid_unknown_fields: bool = False) -> Schema[Any]:
    """Derive a schema for a type hint.

    Dataclass fields may also carry a description through
    ``field(metadata={"description": ...})``.
    """
    return _Deriver(forbid_unknown_fields=forbid_unknown_fields).derive(tp)
