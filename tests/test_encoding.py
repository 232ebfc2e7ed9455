from __future__ import annotations

import json

import pytest

from toolwire.errors import EncodingError
from toolwire.jsonstream import EncodingStream


class TestPrimitives:
    def test_integer(self) -> None:
        stream = EncodingStream()
        stream.encode(42)
        assert stream.text == "42"

    def test_large_and_negative_integers(self) -> None:
        stream = EncodingStream()
        with stream.encode_array() as array:
            array.encode_element(-7)
            array.encode_element(2**70)
        assert stream.text == "[-7,1180591620717411303424]"

    def test_string_escapes_quotes(self) -> None:
        stream = EncodingStream()
        stream.encode('He said "hi"')
        assert stream.text == '"He said \\"hi\\""'

    def test_string_escapes_control_characters(self) -> None:
        value = "line\nbreak\ttab\x01bell\\"
        stream = EncodingStream()
        stream.encode(value)
        assert "\n" not in stream.text
        assert "\x01" not in stream.text
        assert json.loads(stream.text) == value

    def test_unicode_passes_through(self) -> None:
        stream = EncodingStream()
        stream.encode("café 😀")
        assert stream.text == '"café 😀"'

    def test_literals(self) -> None:
        stream = EncodingStream()
        with stream.encode_array() as array:
            array.encode_element(True)
            array.encode_element(False)
            array.encode_element(None)
        assert stream.text == "[true,false,null]"

    @pytest.mark.parametrize("value", [0.1, -2.5, 1e300, 5e-324, 123456789.125])
    def test_float_round_trips(self, value: float) -> None:
        stream = EncodingStream()
        stream.encode(value)
        assert json.loads(stream.text) == value

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), -float("inf")])
    def test_non_finite_float_is_rejected(self, value: float) -> None:
        with pytest.raises(EncodingError):
            EncodingStream().encode(value)

    def test_unsupported_type_is_rejected(self) -> None:
        with pytest.raises(EncodingError):
            EncodingStream().encode(object())  # type: ignore[arg-type]


class TestContainers:
    def test_array_of_three_elements(self) -> None:
        stream = EncodingStream()
        with stream.encode_array() as array:
            array.encode_element(1)
            array.encode_element(2)
            array.encode_element(3)
        assert stream.text == "[1,2,3]"

    def test_nested_object(self) -> None:
        stream = EncodingStream()
        with stream.encode_object() as obj:
            obj.encode_property("name", "Ada")
            with obj.next_property("tags").encode_array() as tags:
                tags.encode_element("math")
            with obj.next_property("empty").encode_object():
                pass
        assert stream.text == '{"name":"Ada","tags":["math"],"empty":{}}'

    def test_pretty_print(self) -> None:
        stream = EncodingStream(pretty_print=True, indent=2)
        with stream.encode_object() as obj:
            with obj.next_property("a").encode_array() as array:
                array.encode_element(1)
                array.encode_element(2)
            with obj.next_property("b").encode_array():
                pass
        assert stream.text == '{\n  "a": [\n    1,\n    2\n  ],\n  "b": []\n}'

    def test_reset_clears_buffer(self) -> None:
        stream = EncodingStream()
        stream.encode("x")
        stream.reset()
        stream.encode(1)
        assert stream.text == "1"
