"""Schema-driven, resumable JSON codec for tool-calling message streams."""

from .codec import (
    Codec,
    StreamingDecoder,
    decode_value,
    encode_schema_definition,
    encode_value,
)
from .jsonstream import NEEDS_MORE_DATA, DecodingStream, EncodingStream
from .tools import Tool

__version__ = "0.1.0"

__all__ = [
    "NEEDS_MORE_DATA",
    "Codec",
    "DecodingStream",
    "EncodingStream",
    "StreamingDecoder",
    "Tool",
    "__version__",
    "decode_value",
    "encode_schema_definition",
    "encode_value",
]
