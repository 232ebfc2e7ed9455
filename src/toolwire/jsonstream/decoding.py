"""Chunked, resumable JSON tokenizer.

Text is pushed into a ``DecodingStream`` as it arrives. Token operations
never block: when the text seen so far is a valid but incomplete prefix of a
token they return ``NEEDS_MORE_DATA`` and leave the cursor at the start of
that token, so retrying after ``push`` re-reads the same text plus whatever
was appended. Progress inside strings and containers lives in explicit state
objects owned by the caller.
"""

from __future__ import annotations

import codecs
import re
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Final

from ..errors import (
    DecodingError,
    InvalidEscapeError,
    InvalidNumberError,
    TrailingDataError,
    UnexpectedCharacterError,
    UnexpectedEndOfStreamError,
)


class NeedsMoreData:
    """Decode outcome for a valid but incomplete prefix. Not an error."""

    __slots__ = ()
    _instance: NeedsMoreData | None = None

    def __new__(cls) -> NeedsMoreData:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NEEDS_MORE_DATA"

    def __reduce__(self) -> str:
        return "NEEDS_MORE_DATA"


NEEDS_MORE_DATA: Final = NeedsMoreData()

type DecodeResult[T] = T | NeedsMoreData


class ValueKind(Enum):
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


class ArrayComponent(Enum):
    ELEMENT = "element"
    END = "end"


_WHITESPACE_RE = re.compile(r"[ \t\n\r]*")
_NUMBER_CHARS_RE = re.compile(r"[-+.eE0-9]*")
_NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][-+]?[0-9]+)?")
_NUMBER_PREFIX_RE = re.compile(
    r"-?(?:(?:0|[1-9][0-9]*)(?:\.[0-9]*)?(?:[eE][-+]?[0-9]*)?)?"
)
# Everything up to a quote, a backslash or a raw control character
_STRING_RUN_RE = re.compile(r'[^"\\\x00-\x1f]*')
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

_SIMPLE_ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}

_VALUE_KINDS = {
    "n": ValueKind.NULL,
    "t": ValueKind.BOOLEAN,
    "f": ValueKind.BOOLEAN,
    '"': ValueKind.STRING,
    "-": ValueKind.NUMBER,
    "{": ValueKind.OBJECT,
    "[": ValueKind.ARRAY,
    **{digit: ValueKind.NUMBER for digit in "0123456789"},
}

_REPLACEMENT_CHARACTER = "\ufffd"


@dataclass(frozen=True, slots=True)
class JSONNumber:
    """A number token, kept as text until the caller picks a representation."""

    text: str

    @property
    def is_integer(self) -> bool:
        return not any(c in self.text for c in ".eE")

    def to_int(self) -> int:
        if self.is_integer:
            return self._parse_int()
        try:
            value = Decimal(self.text)
            integral = value.is_finite() and value == value.to_integral_value()
        except ArithmeticError as e:
            raise InvalidNumberError(self.text, str(e)) from e
        if not integral:
            raise InvalidNumberError(self.text, "expected an integer")
        if value.is_zero():
            return 0
        # Exponent form would otherwise build an arbitrarily large integer
        if value.adjusted() >= _max_int_digits():
            raise InvalidNumberError(self.text, "integer has too many digits")
        return int(value)

    def to_float(self) -> float:
        return float(self.text)

    def to_python(self) -> int | float:
        return self._parse_int() if self.is_integer else float(self.text)

    def _parse_int(self) -> int:
        try:
            return int(self.text)
        except ValueError as e:
            raise InvalidNumberError(self.text, str(e)) from e


def _max_int_digits() -> int:
    # 0 disables the interpreter limit
    return sys.get_int_max_str_digits() or sys.int_info.default_max_str_digits


@dataclass(slots=True)
class StringDecodingState:
    started: bool = False
    complete: bool = False
    fragments: list[str] = field(default_factory=list)


class _ObjectPhase(Enum):
    OPEN = "open"
    FIRST = "first"
    KEY = "key"
    COLON = "colon"
    VALUE = "value"
    END = "end"


@dataclass(slots=True)
class ObjectDecodingState:
    phase: _ObjectPhase = _ObjectPhase.OPEN
    key: StringDecodingState = field(default_factory=StringDecodingState)
    name: str | None = None


class _ArrayPhase(Enum):
    OPEN = "open"
    FIRST = "first"
    ELEMENT = "element"
    END = "end"


@dataclass(slots=True)
class ArrayDecodingState:
    phase: _ArrayPhase = _ArrayPhase.OPEN


class DecodingStream:
    __slots__ = ("_text", "_position", "_discarded", "_finished", "_utf8")

    def __init__(self) -> None:
        self._text = ""
        self._position = 0
        self._discarded = 0
        self._finished = False
        self._utf8: codecs.IncrementalDecoder | None = None

    @property
    def is_finished(self) -> bool:
        return self._finished

    @property
    def consumed(self) -> int:
        """Number of characters consumed since creation or the last reset."""
        return self._discarded + self._position

    @property
    def pending(self) -> str:
        """Text pushed but not consumed yet."""
        return self._text[self._position :]

    def reset(self) -> None:
        self._text = ""
        self._position = 0
        self._discarded = 0
        self._finished = False
        self._utf8 = None

    def push(self, fragment: str | bytes) -> None:
        if self._finished:
            raise RuntimeError("Cannot push to a finished DecodingStream")
        if not isinstance(fragment, str):
            fragment = self._decode_utf8(bytes(fragment), final=False)
        if self._position:
            # Consumed text is never re-read
            self._discarded += self._position
            self._text = self._text[self._position :] + fragment
            self._position = 0
        else:
            self._text += fragment

    def finish(self) -> None:
        if self._finished:
            raise RuntimeError("DecodingStream.finish() called twice")
        if self._utf8 is not None:
            self._text += self._decode_utf8(b"", final=True)
        self._finished = True

    def _decode_utf8(self, data: bytes, *, final: bool) -> str:
        if self._utf8 is None:
            self._utf8 = codecs.getincrementaldecoder("utf-8")()
        try:
            return self._utf8.decode(data, final=final)
        except UnicodeDecodeError as e:
            raise DecodingError(f"Invalid UTF-8 input: {e}") from e

    # Reading helpers

    def _offset(self, position: int) -> int:
        return self._discarded + position

    def _skip_whitespace(self) -> int:
        match = _WHITESPACE_RE.match(self._text, self._position)
        assert match is not None
        self._position = match.end()
        return self._position

    def _end_of_input(self, expected: str) -> NeedsMoreData:
        if self._finished:
            raise UnexpectedEndOfStreamError(expected)
        return NEEDS_MORE_DATA

    def _unexpected(self, position: int, expected: str) -> UnexpectedCharacterError:
        return UnexpectedCharacterError(
            self._text[position], self._offset(position), expected=expected
        )

    def _read_character(self, accepted: str, expected: str) -> DecodeResult[str]:
        position = self._skip_whitespace()
        if position >= len(self._text):
            return self._end_of_input(expected)
        character = self._text[position]
        if character not in accepted:
            raise self._unexpected(position, expected)
        self._position = position + 1
        return character

    def _read_literal(self, literal: str) -> DecodeResult[None]:
        position = self._position
        available = self._text[position : position + len(literal)]
        if available == literal:
            self._position = position + len(literal)
            return None
        for i, character in enumerate(available):
            if character != literal[i]:
                raise self._unexpected(position + i, repr(literal))
        return self._end_of_input(repr(literal))

    # Tokens

    def peek_value_kind(self) -> DecodeResult[ValueKind]:
        position = self._skip_whitespace()
        if position >= len(self._text):
            return self._end_of_input("a JSON value")
        kind = _VALUE_KINDS.get(self._text[position])
        if kind is None:
            raise self._unexpected(position, "a JSON value")
        return kind

    def decode_null(self) -> DecodeResult[None]:
        self._skip_whitespace()
        return self._read_literal("null")

    def decode_boolean(self) -> DecodeResult[bool]:
        position = self._skip_whitespace()
        if position >= len(self._text):
            return self._end_of_input("true or false")
        match self._text[position]:
            case "t":
                result = self._read_literal("true")
                return result if result is NEEDS_MORE_DATA else True
            case "f":
                result = self._read_literal("false")
                return result if result is NEEDS_MORE_DATA else False
            case _:
                raise self._unexpected(position, "true or false")

    def decode_number(self) -> DecodeResult[JSONNumber]:
        text = self._text
        position = self._skip_whitespace()
        match = _NUMBER_CHARS_RE.match(text, position)
        assert match is not None
        end = match.end()
        run = text[position:end]
        if not _NUMBER_PREFIX_RE.fullmatch(run):
            raise InvalidNumberError(run, _number_problem(run))
        if end >= len(text) and not self._finished:
            # More digits or an exponent may still arrive
            return NEEDS_MORE_DATA
        if not run:
            if end >= len(text):
                raise UnexpectedEndOfStreamError("a number")
            raise self._unexpected(end, "a number")
        if not _NUMBER_RE.fullmatch(run):
            raise InvalidNumberError(run, _number_problem(run))
        self._position = end
        return JSONNumber(run)

    def decode_string_fragments(
        self,
        state: StringDecodingState,
        on_fragment: Callable[[str], object],
    ) -> DecodeResult[None]:
        """Decode string content, passing resolved runs to ``on_fragment``.

        Fragments are emitted as soon as they are resolved; an escape sequence
        cut off by the end of available text is left unconsumed and resolved
        on a later call with the same state.
        """
        if state.complete:
            raise RuntimeError("String was already decoded with this state")
        if not state.started:
            result = self._read_character('"', "'\"'")
            if result is NEEDS_MORE_DATA:
                return result
            state.started = True

        text = self._text
        position = self._position
        while True:
            match = _STRING_RUN_RE.match(text, position)
            assert match is not None
            end = match.end()
            if end > position:
                on_fragment(text[position:end])
                position = self._position = end
            if position >= len(text):
                return self._end_of_input("closing '\"'")
            character = text[position]
            if character == '"':
                self._position = position + 1
                state.complete = True
                return None
            if character != "\\":
                raise self._unexpected(position, "escaped control character")
            escape = self._read_escape(position)
            if escape is NEEDS_MORE_DATA:
                return escape
            fragment, position = escape
            on_fragment(fragment)
            self._position = position

    def decode_string(self, state: StringDecodingState) -> DecodeResult[str]:
        result = self.decode_string_fragments(state, state.fragments.append)
        if result is NEEDS_MORE_DATA:
            return result
        value = "".join(state.fragments)
        state.fragments.clear()
        return value

    def _read_escape(self, position: int) -> DecodeResult[tuple[str, int]]:
        text = self._text
        if position + 1 >= len(text):
            return self._end_of_input("escape sequence")
        escaped = text[position + 1]
        simple = _SIMPLE_ESCAPES.get(escaped)
        if simple is not None:
            return simple, position + 2
        if escaped != "u":
            raise InvalidEscapeError("\\" + escaped, self._offset(position))

        code = self._read_hex4(position + 2)
        if code is NEEDS_MORE_DATA:
            return code
        after = position + 6
        if 0xDC00 <= code <= 0xDFFF:
            return _REPLACEMENT_CHARACTER, after
        if not 0xD800 <= code <= 0xDBFF:
            return chr(code), after

        # High surrogate; the low half must follow as another \u escape
        following = text[after : after + 2]
        if following != "\\u":
            if len(following) < 2 and "\\u".startswith(following):
                if not self._finished:
                    return NEEDS_MORE_DATA
            return _REPLACEMENT_CHARACTER, after
        low = self._read_hex4(after + 2)
        if low is NEEDS_MORE_DATA:
            return low
        if 0xDC00 <= low <= 0xDFFF:
            scalar = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
            return chr(scalar), after + 6
        # Leave the second escape to be decoded on its own
        return _REPLACEMENT_CHARACTER, after

    def _read_hex4(self, start: int) -> DecodeResult[int]:
        digits = self._text[start : start + 4]
        for i, digit in enumerate(digits):
            if digit not in _HEX_DIGITS:
                raise InvalidEscapeError(
                    "\\u" + digits[: i + 1], self._offset(start - 2)
                )
        if len(digits) < 4:
            return self._end_of_input("4 hex digits")
        return int(digits, 16)

    # Containers

    def decode_object_component(
        self, state: ObjectDecodingState
    ) -> DecodeResult[str | None]:
        """Advance through an object.

        Returns the next property name with the cursor at the start of its
        value, or ``None`` once the closing brace has been read. The caller
        must decode (or skip) the value before calling again.
        """
        while True:
            match state.phase:
                case _ObjectPhase.OPEN:
                    result = self._read_character("{", "'{'")
                    if result is NEEDS_MORE_DATA:
                        return result
                    state.phase = _ObjectPhase.FIRST
                case _ObjectPhase.FIRST:
                    position = self._skip_whitespace()
                    if position >= len(self._text):
                        return self._end_of_input("property name or '}'")
                    if self._text[position] == "}":
                        self._position = position + 1
                        state.phase = _ObjectPhase.END
                        return None
                    state.phase = _ObjectPhase.KEY
                case _ObjectPhase.VALUE:
                    result = self._read_character(",}", "',' or '}'")
                    if result is NEEDS_MORE_DATA:
                        return result
                    if result == "}":
                        state.phase = _ObjectPhase.END
                        return None
                    state.phase = _ObjectPhase.KEY
                case _ObjectPhase.KEY:
                    name = self.decode_string(state.key)
                    if name is NEEDS_MORE_DATA:
                        return name
                    state.key = StringDecodingState()
                    state.name = name
                    state.phase = _ObjectPhase.COLON
                case _ObjectPhase.COLON:
                    result = self._read_character(":", "':'")
                    if result is NEEDS_MORE_DATA:
                        return result
                    state.phase = _ObjectPhase.VALUE
                    return state.name
                case _ObjectPhase.END:
                    raise RuntimeError("Object was already decoded with this state")

    def decode_array_component(
        self, state: ArrayDecodingState
    ) -> DecodeResult[ArrayComponent]:
        """Advance through an array.

        Returns ``ArrayComponent.ELEMENT`` with the cursor at the start of the
        next element, or ``ArrayComponent.END`` once ``]`` has been read.
        """
        while True:
            match state.phase:
                case _ArrayPhase.OPEN:
                    result = self._read_character("[", "'['")
                    if result is NEEDS_MORE_DATA:
                        return result
                    state.phase = _ArrayPhase.FIRST
                case _ArrayPhase.FIRST:
                    position = self._skip_whitespace()
                    if position >= len(self._text):
                        return self._end_of_input("a value or ']'")
                    if self._text[position] == "]":
                        self._position = position + 1
                        state.phase = _ArrayPhase.END
                        return ArrayComponent.END
                    state.phase = _ArrayPhase.ELEMENT
                    return ArrayComponent.ELEMENT
                case _ArrayPhase.ELEMENT:
                    result = self._read_character(",]", "',' or ']'")
                    if result is NEEDS_MORE_DATA:
                        return result
                    if result == "]":
                        state.phase = _ArrayPhase.END
                        return ArrayComponent.END
                    return ArrayComponent.ELEMENT
                case _ArrayPhase.END:
                    raise RuntimeError("Array was already decoded with this state")

    def expect_end(self) -> DecodeResult[None]:
        """Check that only whitespace remains once the stream is finished."""
        position = self._skip_whitespace()
        if position < len(self._text):
            raise TrailingDataError(self._offset(position))
        if not self._finished:
            return NEEDS_MORE_DATA
        return None


def _number_problem(run: str) -> str:
    digits = run.removeprefix("-")
    if len(digits) > 1 and digits[0] == "0" and digits[1].isdigit():
        return "leading zeroes are not allowed"
    return "malformed number"
