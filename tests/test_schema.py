from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

import pytest

from toolwire.codec import (
    StreamingDecoder,
    decode_value,
    encode_schema_definition,
    encode_value,
)
from toolwire.errors import (
    AdditionalCaseError,
    ArityError,
    EncodingError,
    InvalidNumberError,
    MissingPropertyError,
    RepeatedPropertyError,
    SchemaDefinitionError,
    UnexpectedValueError,
    UnknownCaseError,
    UnknownPropertyError,
)
from toolwire.jsonstream import NEEDS_MORE_DATA
from toolwire.schema import (
    UNIT,
    ArraySchema,
    BooleanSchema,
    Case,
    ConstSchema,
    EnumSchema,
    Field,
    IntegerSchema,
    JSONValueSchema,
    KeyedTupleSchema,
    NullSchema,
    NumberSchema,
    OptionalSchema,
    RecordSchema,
    Schema,
    StringSchema,
    SumTypeSchema,
    SumValue,
    TupleSchema,
)

PERSON = RecordSchema(
    [
        Field("name", StringSchema()),
        Field("age", IntegerSchema()),
        Field("isActive", OptionalSchema(BooleanSchema())),
    ]
)

SHAPES = SumTypeSchema(
    [
        Case("void"),
        Case("bool", BooleanSchema()),
        Case("tuple", TupleSchema([IntegerSchema(), StringSchema()])),
    ]
)


class Color(Enum):
    RED = "red"
    GREEN = "green"


class Level(Enum):
    LOW = 1
    HIGH = 2


@dataclass
class Person:
    full_name: str
    age: int
    active: bool | None = None


def _decode_in_chunks(text: str, schema: Schema[Any], size: int) -> Any:
    decoder = StreamingDecoder(schema)
    for start in range(0, len(text), size):
        result = decoder.push(text[start : start + size])
        if result is not NEEDS_MORE_DATA:
            return result
    return decoder.finish()


class TestLeafSchemas:
    @pytest.mark.parametrize(
        ("schema", "expected"),
        [
            (NullSchema(), '{"type":"null"}'),
            (BooleanSchema(), '{"type":"boolean"}'),
            (IntegerSchema(), '{"type":"integer"}'),
            (NumberSchema(), '{"type":"number"}'),
            (StringSchema(description="A name"), '{"description":"A name","type":"string"}'),
        ],
    )
    def test_definitions(self, schema: Schema[Any], expected: str) -> None:
        assert encode_schema_definition(schema) == expected

    def test_values(self) -> None:
        assert decode_value("null", NullSchema()) is None
        assert decode_value(" true ", BooleanSchema()) is True
        assert decode_value("-17", IntegerSchema()) == -17
        assert decode_value("2.5", NumberSchema()) == 2.5
        assert decode_value('"hi\\n"', StringSchema()) == "hi\n"

    def test_integer_schema_rejects_bool_on_encode(self) -> None:
        with pytest.raises(EncodingError):
            encode_value(True, IntegerSchema())

    def test_string_schema_rejects_non_strings(self) -> None:
        with pytest.raises(EncodingError):
            encode_value(3, StringSchema())  # type: ignore[arg-type]

    @pytest.mark.parametrize("schema", [IntegerSchema(), JSONValueSchema()])
    def test_integer_over_the_digit_limit(self, schema: Schema[Any]) -> None:
        with pytest.raises(InvalidNumberError):
            decode_value("1" * 5000, schema)

    def test_huge_exponent_integer_fails_fast(self) -> None:
        with pytest.raises(InvalidNumberError):
            decode_value("1e1000000", IntegerSchema())

    def test_const(self) -> None:
        schema = ConstSchema("v1")
        assert encode_schema_definition(schema) == '{"const":"v1"}'
        assert decode_value('"v1"', schema) == "v1"
        with pytest.raises(UnexpectedValueError):
            decode_value('"v2"', schema)


class TestRecordSchema:
    def test_absent_optional_field_is_omitted(self) -> None:
        text = encode_value({"name": "John Doe", "age": 30}, PERSON)
        assert text == '{"name":"John Doe","age":30}'
        assert json.loads(text) == json.loads('{"age":30,"name":"John Doe"}')

    def test_definition_requires_only_non_optional_fields(self) -> None:
        assert encode_schema_definition(PERSON) == (
            '{"type":"object","properties":{"name":{"type":"string"},'
            '"age":{"type":"integer"},"isActive":{"type":"boolean"}},'
            '"required":["name","age"],"additionalProperties":false}'
        )

    def test_field_description_prefixes_schema_description(self) -> None:
        schema = RecordSchema(
            [Field("name", StringSchema(description="Full name"), description="Who")]
        )
        definition = json.loads(encode_schema_definition(schema))
        assert definition["properties"]["name"]["description"] == "Who\nFull name"

    def test_optional_field_keeps_its_own_description(self) -> None:
        schema = RecordSchema(
            [
                Field("a", OptionalSchema(IntegerSchema(), description="hello")),
                Field(
                    "b",
                    OptionalSchema(StringSchema(description="text"), description="or not"),
                    description="B",
                ),
            ]
        )
        assert encode_schema_definition(schema) == (
            '{"type":"object","properties":{"a":{"description":"hello","type":"integer"},'
            '"b":{"description":"B\\nor not\\ntext","type":"string"}},'
            '"additionalProperties":false}'
        )

    def test_required_is_omitted_when_every_field_is_optional(self) -> None:
        schema = RecordSchema([Field("x", OptionalSchema(IntegerSchema()))])
        assert "required" not in json.loads(encode_schema_definition(schema))

    def test_keys_in_any_order_and_unknown_keys_skipped(self) -> None:
        text = '{"age": 30, "extra": {"x": [1, "}"]}, "name": "John Doe"}'
        assert decode_value(text, PERSON) == {
            "name": "John Doe",
            "age": 30,
            "isActive": None,
        }

    def test_optional_field_accepts_explicit_null(self) -> None:
        value = decode_value('{"name":"a","age":1,"isActive":null}', PERSON)
        assert value["isActive"] is None

    def test_missing_required_field(self) -> None:
        with pytest.raises(MissingPropertyError) as exc_info:
            decode_value('{"name": "John Doe"}', PERSON)
        assert exc_info.value.name == "age"

    def test_repeated_field(self) -> None:
        with pytest.raises(RepeatedPropertyError):
            decode_value('{"name":"a","age":1,"name":"b"}', PERSON)

    def test_forbid_unknown_fields(self) -> None:
        schema = RecordSchema(PERSON.fields, forbid_unknown_fields=True)
        with pytest.raises(UnknownPropertyError):
            decode_value('{"name":"a","age":1,"nick":"b"}', schema)

    def test_duplicate_keys_rejected_at_construction(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            RecordSchema([Field("a", StringSchema()), Field("a", IntegerSchema())])

    def test_attribute_mapping_with_build(self) -> None:
        schema = RecordSchema(
            [
                Field("name", StringSchema(), attribute="full_name"),
                Field("age", IntegerSchema()),
                Field("isActive", OptionalSchema(BooleanSchema()), attribute="active"),
            ],
            build=Person,
        )
        person = decode_value('{"name":"Ada","age":36,"isActive":true}', schema)
        assert person == Person("Ada", 36, True)
        assert encode_value(Person("Ada", 36), schema) == '{"name":"Ada","age":36}'

    def test_omitted_optional_uses_default_factory(self) -> None:
        schema = RecordSchema(
            [Field("tags", OptionalSchema(ArraySchema(StringSchema())), default_factory=list)]
        )
        assert decode_value("{}", schema) == {"tags": []}

    def test_required_value_missing_on_encode(self) -> None:
        with pytest.raises(EncodingError):
            encode_value({"name": "a"}, PERSON)


class TestSumTypeSchema:
    def test_decodes_single_case(self) -> None:
        assert decode_value('{"bool": true}', SHAPES) == SumValue("bool", True)

    def test_unit_case(self) -> None:
        assert decode_value('{"void": {}}', SHAPES) == SumValue("void")
        assert encode_value(SumValue("void"), SHAPES) == '{"void":{}}'

    def test_unknown_case(self) -> None:
        with pytest.raises(UnknownCaseError) as exc_info:
            decode_value('{"unknown": "value"}', SHAPES)
        assert exc_info.value.name == "unknown"

    def test_zero_cases(self) -> None:
        with pytest.raises(UnknownCaseError):
            decode_value("{}", SHAPES)

    def test_two_cases(self) -> None:
        with pytest.raises(AdditionalCaseError):
            decode_value('{"bool": true, "void": {}}', SHAPES)

    def test_encode_payload_case(self) -> None:
        assert encode_value(SumValue("tuple", (1, "a")), SHAPES) == '{"tuple":[1,"a"]}'

    def test_definition(self) -> None:
        assert encode_schema_definition(SHAPES) == (
            '{"type":"object","properties":{'
            '"void":{"type":"object","additionalProperties":false},'
            '"bool":{"type":"boolean"},'
            '"tuple":{"type":"array","prefixItems":[{"type":"integer"},'
            '{"type":"string"}],"minItems":2,"maxItems":2}},'
            '"additionalProperties":false,"minProperties":1,"maxProperties":1}'
        )

    def test_all_unit_cases_collapse_to_enum(self) -> None:
        schema = SumTypeSchema(
            [Case("red", description="Warm"), Case("blue", UNIT)],
            description="Color",
        )
        assert encode_schema_definition(schema) == (
            '{"description":"Color\\n - red: Warm","type":"string",'
            '"enum":["red","blue"]}'
        )
        assert decode_value('"blue"', schema) == SumValue("blue")
        assert encode_value(SumValue("red"), schema) == '"red"'
        with pytest.raises(UnknownCaseError):
            decode_value('"green"', schema)

    def test_custom_value_mapping(self) -> None:
        schema = SumTypeSchema(
            [Case("count", IntegerSchema(), build=lambda n: ("count", n))],
            case_of=lambda value: value,
        )
        assert decode_value('{"count": 3}', schema) == ("count", 3)
        assert encode_value(("count", 4), schema) == '{"count":4}'

    def test_empty_and_duplicate_cases_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            SumTypeSchema([])
        with pytest.raises(SchemaDefinitionError):
            SumTypeSchema([Case("a"), Case("a")])

    def test_unknown_case_on_encode(self) -> None:
        with pytest.raises(EncodingError):
            encode_value(SumValue("nope"), SHAPES)


class TestTupleSchemas:
    def test_unkeyed_round_trip(self) -> None:
        schema = TupleSchema([IntegerSchema(), StringSchema(), BooleanSchema()])
        assert encode_value((1, "a", False), schema) == '[1,"a",false]'
        assert decode_value('[1, "a", false]', schema) == (1, "a", False)

    @pytest.mark.parametrize("text", ["[1]", '[1, "a", 2]', "[]"])
    def test_unkeyed_arity(self, text: str) -> None:
        with pytest.raises(ArityError):
            decode_value(text, TupleSchema([IntegerSchema(), StringSchema()]))

    def test_keyed(self) -> None:
        schema = KeyedTupleSchema([("x", IntegerSchema()), ("y", IntegerSchema())])
        assert decode_value('{"y": 2, "x": 1}', schema) == (1, 2)
        assert encode_value((1, 2), schema) == '{"x":1,"y":2}'
        assert encode_schema_definition(schema) == (
            '{"type":"object","properties":{"x":{"type":"integer"},'
            '"y":{"type":"integer"}},"required":["x","y"],'
            '"additionalProperties":false}'
        )

    def test_keyed_cardinality(self) -> None:
        schema = KeyedTupleSchema([("x", IntegerSchema()), ("y", IntegerSchema())])
        with pytest.raises(MissingPropertyError):
            decode_value('{"x": 1}', schema)
        with pytest.raises(UnknownPropertyError):
            decode_value('{"x": 1, "y": 2, "z": 3}', schema)
        with pytest.raises(RepeatedPropertyError):
            decode_value('{"x": 1, "x": 2}', schema)

    def test_keyed_duplicate_names_rejected(self) -> None:
        with pytest.raises(SchemaDefinitionError):
            KeyedTupleSchema([("x", IntegerSchema()), ("x", StringSchema())])

    def test_encode_wrong_arity(self) -> None:
        with pytest.raises(EncodingError):
            encode_value((1,), TupleSchema([IntegerSchema(), IntegerSchema()]))


class TestOptionalSchema:
    def test_leaf_definition(self) -> None:
        schema = OptionalSchema(IntegerSchema())
        assert encode_schema_definition(schema) == '{"type":["null","integer"]}'
        assert decode_value("null", schema) is None
        assert decode_value("5", schema) == 5
        assert encode_value(None, schema) == "null"

    def test_composite_definition_uses_one_of(self) -> None:
        schema = OptionalSchema(ArraySchema(IntegerSchema()))
        assert encode_schema_definition(schema) == (
            '{"oneOf":[{"type":"null"},{"type":"array","items":{"type":"integer"}}]}'
        )
        assert decode_value("[1]", schema) == [1]

    def test_nullable_wrapped_value_is_boxed(self) -> None:
        schema = OptionalSchema(OptionalSchema(IntegerSchema()))
        assert encode_value(5, schema) == '{"value":5}'
        assert encode_value(None, schema) == "null"
        assert decode_value('{"value": 5}', schema) == 5
        assert decode_value('{"value": null}', schema) is None
        assert decode_value("null", schema) is None
        with pytest.raises(MissingPropertyError):
            decode_value("{}", schema)


class TestOtherSchemas:
    def test_string_enum(self) -> None:
        schema = EnumSchema(Color)
        assert encode_schema_definition(schema) == (
            '{"type":"string","enum":["red","green"]}'
        )
        assert decode_value('"green"', schema) is Color.GREEN
        assert encode_value(Color.RED, schema) == '"red"'
        with pytest.raises(UnexpectedValueError):
            decode_value('"purple"', schema)

    def test_integer_enum(self) -> None:
        schema = EnumSchema(Level)
        assert encode_schema_definition(schema) == '{"type":"integer","enum":[1,2]}'
        assert decode_value("2", schema) is Level.HIGH

    def test_array(self) -> None:
        schema = ArraySchema(StringSchema(), description="Tags")
        assert encode_schema_definition(schema) == (
            '{"description":"Tags","type":"array","items":{"type":"string"}}'
        )
        assert decode_value('["a", "b"]', schema) == ["a", "b"]
        assert decode_value("[]", schema) == []

    def test_json_value(self) -> None:
        schema = JSONValueSchema()
        assert encode_schema_definition(schema) == "{}"
        value = {"a": [1, 2.5, None, True, "x"], "b": {}}
        assert decode_value(encode_value(value, schema), schema) == value


class TestChunkedDecoding:
    SCHEMA = RecordSchema(
        [
            Field("title", StringSchema()),
            Field("shape", SHAPES),
            Field("point", KeyedTupleSchema([("x", NumberSchema()), ("y", NumberSchema())])),
            Field("tags", ArraySchema(StringSchema())),
            Field("color", OptionalSchema(EnumSchema(Color))),
        ]
    )
    TEXT = (
        '{"title": "caf\\u00e9 \\"quoted\\" \\ud83d\\ude00", "ignored": [{"a": null}],'
        ' "shape": {"tuple": [12, "twelve"]},'
        ' "point": {"y": -1.5e2, "x": 0.25}, "tags": ["a", "b\\n"], "color": "green"}'
    )
    EXPECTED = {
        "title": 'café "quoted" 😀',
        "shape": SumValue("tuple", (12, "twelve")),
        "point": (0.25, -150.0),
        "tags": ["a", "b\n"],
        "color": Color.GREEN,
    }

    def test_every_chunk_size(self) -> None:
        for size in range(1, len(self.TEXT) + 1):
            assert _decode_in_chunks(self.TEXT, self.SCHEMA, size) == self.EXPECTED, size

    def test_round_trip(self) -> None:
        text = encode_value(self.EXPECTED, self.SCHEMA)
        assert decode_value(text, self.SCHEMA) == self.EXPECTED
