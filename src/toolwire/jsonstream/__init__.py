from .decoding import (
    NEEDS_MORE_DATA,
    ArrayComponent,
    ArrayDecodingState,
    DecodeResult,
    DecodingStream,
    JSONNumber,
    NeedsMoreData,
    ObjectDecodingState,
    StringDecodingState,
    ValueKind,
)
from .encoding import ArrayEncoder, EncodingStream, JSONScalar, ObjectEncoder
from .values import JSONValueDecodingState, decode_json_value, encode_json_value

__all__ = [
    "NEEDS_MORE_DATA",
    "ArrayComponent",
    "ArrayDecodingState",
    "ArrayEncoder",
    "DecodeResult",
    "DecodingStream",
    "EncodingStream",
    "JSONNumber",
    "JSONScalar",
    "JSONValueDecodingState",
    "NeedsMoreData",
    "ObjectDecodingState",
    "ObjectEncoder",
    "StringDecodingState",
    "ValueKind",
    "decode_json_value",
    "encode_json_value",
]
