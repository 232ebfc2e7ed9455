"""Error taxonomy for toolwire.

Decoding errors describe malformed input and are terminal for the decode
attempt that raised them. Needs-more-data is not an error and never appears
here. The remaining errors indicate a caller bug (bad schema construction,
misuse of a content block slot, consecutive cache breakpoints).
"""

from __future__ import annotations


class ToolwireError(RuntimeError):
    pass


# Decoding


class DecodingError(ToolwireError, ValueError):
    pass


class UnexpectedCharacterError(DecodingError):
    def __init__(self, character: str, offset: int, *, expected: str | None = None):
        self.character = character
        self.offset = offset
        self.expected = expected
        message = f"Unexpected character {character!r} at offset {offset}"
        if expected:
            message += f" (expected {expected})"
        super().__init__(message)


class UnexpectedEndOfStreamError(DecodingError):
    def __init__(self, expected: str | None = None):
        self.expected = expected
        message = "Unexpected end of stream"
        if expected:
            message += f" (expected {expected})"
        super().__init__(message)


class InvalidNumberError(DecodingError):
    def __init__(self, text: str, reason: str):
        self.text = text
        super().__init__(f"Invalid number {text!r}: {reason}")


class InvalidEscapeError(DecodingError):
    def __init__(self, sequence: str, offset: int):
        self.sequence = sequence
        self.offset = offset
        super().__init__(f"Invalid escape sequence {sequence!r} at offset {offset}")


class UnknownPropertyError(DecodingError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown property {name!r}")


class MissingPropertyError(DecodingError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Missing required property {name!r}")


class RepeatedPropertyError(DecodingError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Property {name!r} appears more than once")


class UnknownCaseError(DecodingError):
    def __init__(self, name: str | None):
        self.name = name
        if name is None:
            super().__init__("Object has no case key; exactly one is required")
        else:
            super().__init__(f"Unknown case {name!r}")


class AdditionalCaseError(DecodingError):
    def __init__(self, first: str, second: str):
        self.first = first
        self.second = second
        super().__init__(
            f"Found case {second!r} after {first!r}; exactly one case key is allowed"
        )


class ArityError(DecodingError):
    def __init__(self, expected: int, *, found: int | None = None):
        self.expected = expected
        self.found = found
        if found is None:
            super().__init__(f"Expected exactly {expected} elements, found more")
        else:
            super().__init__(f"Expected exactly {expected} elements, found {found}")


class UnexpectedValueError(DecodingError):
    def __init__(self, value: object, *, expected: str):
        self.value = value
        self.expected = expected
        super().__init__(f"Unexpected value {value!r} (expected {expected})")


class TrailingDataError(DecodingError):
    def __init__(self, offset: int):
        self.offset = offset
        super().__init__(f"Unexpected data after the value at offset {offset}")


# Encoding


class EncodingError(ToolwireError, ValueError):
    pass


# Schema construction


class SchemaDefinitionError(ToolwireError):
    pass


# Content blocks


class ContentBlocksError(ToolwireError):
    def __init__(self, index: int, message: str):
        self.index = index
        super().__init__(f"{message} (index {index})")


class InvalidInsertionError(ContentBlocksError):
    def __init__(self, index: int, expected: int):
        self.expected = expected
        super().__init__(index, f"Content blocks must start at index {expected}")


class InvalidIndexError(ContentBlocksError):
    def __init__(self, index: int):
        super().__init__(index, "No content block has been started")


class UseAfterStopError(ContentBlocksError):
    def __init__(self, index: int):
        super().__init__(index, "Content block was already stopped")


class ConcurrentMutationError(ContentBlocksError):
    def __init__(self, index: int):
        super().__init__(index, "Content block is being mutated")


# Cache breakpoints


class ConsecutiveCacheBreakpointsError(ToolwireError):
    def __init__(self, position: int):
        self.position = position
        super().__init__(
            f"Cache breakpoint at position {position} directly follows another"
            " breakpoint; there is no component to attach it to"
        )


# Streaming messages


class StreamingMessageError(ToolwireError):
    pass


class MultipleMessageStartError(StreamingMessageError):
    def __init__(self) -> None:
        super().__init__("Received more than one message_start event")


class MissingMessageStartError(StreamingMessageError):
    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(f"Received {event_type} before message_start")


class EventAfterMessageStopError(StreamingMessageError):
    def __init__(self, event_type: str):
        self.event_type = event_type
        super().__init__(f"Received {event_type} after the message stopped")


class ContentBlocksNotStoppedError(StreamingMessageError):
    def __init__(self) -> None:
        super().__init__("message_stop arrived while content blocks were still open")


class MessageNotStoppedError(StreamingMessageError):
    def __init__(self) -> None:
        super().__init__("Event stream ended without message_stop")


class StreamErrorEvent(StreamingMessageError):
    def __init__(self, error_type: str, message: str):
        self.error_type = error_type
        self.message = message
        super().__init__(f"{error_type}: {message}")


# Configuration


class ConfigError(ToolwireError):
    pass
