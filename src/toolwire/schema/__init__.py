from .array import ArraySchema, JSONValueSchema
from .base import LeafSchema, Schema, SchemaEncoder, combine_descriptions
from .derive import schema_for
from .enumeration import EnumSchema
from .leaf import (
    BooleanSchema,
    ConstSchema,
    IntegerSchema,
    NullSchema,
    NumberSchema,
    StringSchema,
)
from .optional import OptionalSchema
from .record import Field, RecordSchema
from .sum import UNIT, Case, SumTypeSchema, SumValue, UnitSchema
from .tuple import KeyedTupleSchema, TupleSchema

__all__ = [
    "UNIT",
    "ArraySchema",
    "BooleanSchema",
    "Case",
    "ConstSchema",
    "EnumSchema",
    "Field",
    "IntegerSchema",
    "JSONValueSchema",
    "KeyedTupleSchema",
    "LeafSchema",
    "NullSchema",
    "NumberSchema",
    "OptionalSchema",
    "RecordSchema",
    "Schema",
    "SchemaEncoder",
    "StringSchema",
    "SumTypeSchema",
    "SumValue",
    "TupleSchema",
    "UnitSchema",
    "combine_descriptions",
    "schema_for",
]
