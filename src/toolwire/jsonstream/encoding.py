"""Append-only JSON text sink.

Arrays and objects are written through scoped builders::

    stream = EncodingStream()
    with stream.encode_object() as obj:
        obj.encode_property("name", "Ada")
        with obj.next_property("tags").encode_array() as tags:
            tags.encode_element("math")
    stream.text  # '{"name":"Ada","tags":["math"]}'

Closing brackets are written when a scope exits normally. If encoding raises
inside a scope the stream is left mid-document and must be discarded.
"""

from __future__ import annotations

import math
from collections.abc import Iterator
from contextlib import contextmanager

import msgspec

from ..errors import EncodingError

type JSONScalar = None | bool | int | float | str

_JSON_ENCODER = msgspec.json.Encoder()


class EncodingStream:
    __slots__ = ("_parts", "_depth", "pretty_print", "indent")

    def __init__(self, *, pretty_print: bool = False, indent: int = 2) -> None:
        self._parts: list[str] = []
        self._depth = 0
        self.pretty_print = pretty_print
        self.indent = indent

    @property
    def text(self) -> str:
        if len(self._parts) > 1:
            self._parts[:] = ["".join(self._parts)]
        return self._parts[0] if self._parts else ""

    def reset(self) -> None:
        self._parts.clear()
        self._depth = 0

    def write(self, raw: str) -> None:
        self._parts.append(raw)

    # Primitives

    def encode_null(self) -> None:
        self.write("null")

    def encode(self, value: JSONScalar) -> None:
        if value is None:
            self.write("null")
        elif value is True:
            self.write("true")
        elif value is False:
            self.write("false")
        elif isinstance(value, int):
            self.write(str(int(value)))
        elif isinstance(value, float):
            if not math.isfinite(value):
                raise EncodingError(f"{value!r} has no JSON representation")
            self.write(_JSON_ENCODER.encode(value).decode())
        elif isinstance(value, str):
            try:
                self.write(_JSON_ENCODER.encode(value).decode())
            except UnicodeEncodeError as e:
                raise EncodingError(f"String is not valid Unicode: {e}") from e
        else:
            raise EncodingError(
                f"Cannot encode {type(value).__name__} as a JSON primitive"
            )

    # Containers

    @contextmanager
    def encode_array(self) -> Iterator[ArrayEncoder]:
        self.write("[")
        encoder = ArrayEncoder(self)
        self._depth += 1
        yield encoder
        self._close(encoder.count, "]")

    @contextmanager
    def encode_object(self) -> Iterator[ObjectEncoder]:
        self.write("{")
        encoder = ObjectEncoder(self)
        self._depth += 1
        yield encoder
        self._close(encoder.count, "}")

    # Pretty printing

    def _write_separator(self, is_first: bool) -> None:
        if not is_first:
            self.write(",")
        if self.pretty_print:
            self.write("\n" + " " * (self.indent * self._depth))

    def _close(self, count: int, bracket: str) -> None:
        self._depth -= 1
        if self.pretty_print and count:
            self.write("\n" + " " * (self.indent * self._depth))
        self.write(bracket)


class ArrayEncoder:
    __slots__ = ("_stream", "count")

    def __init__(self, stream: EncodingStream) -> None:
        self._stream = stream
        self.count = 0

    def next_element(self) -> EncodingStream:
        """Write the separator and return the stream; exactly one value must follow."""
        self._stream._write_separator(self.count == 0)
        self.count += 1
        return self._stream

    def encode_element(self, value: JSONScalar) -> None:
        self.next_element().encode(value)


class ObjectEncoder:
    __slots__ = ("_stream", "count")

    def __init__(self, stream: EncodingStream) -> None:
        self._stream = stream
        self.count = 0

    def next_property(self, name: str) -> EncodingStream:
        """Write ``"name":`` and return the stream; exactly one value must follow."""
        stream = self._stream
        stream._write_separator(self.count == 0)
        self.count += 1
        stream.encode(name)
        stream.write(": " if stream.pretty_print else ":")
        return stream

    def encode_property(self, name: str, value: JSONScalar) -> None:
        self.next_property(name).encode(value)
