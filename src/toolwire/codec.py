from __future__ import annotations

from pathlib import Path
from typing import Any

from .config import CodecSettings, load_settings
from .errors import UnexpectedEndOfStreamError
from .jsonstream import NEEDS_MORE_DATA, DecodeResult, DecodingStream, EncodingStream
from .logging import get_logger, setup_logging
from .schema import Schema, SchemaEncoder, schema_for

logger = get_logger(__name__)


class StreamingDecoder[V]:
    """Owns the push/retry loop for decoding one value from chunks.

    ``push`` returns the value as soon as it is complete, otherwise
    ``NEEDS_MORE_DATA``. Anything other than whitespace after the value is a
    ``TrailingDataError``.
    """

    def __init__(self, schema: Schema[V]) -> None:
        self.schema = schema
        self._stream = DecodingStream()
        self._state = schema.new_decoding_state()
        self._result: DecodeResult[V] = NEEDS_MORE_DATA

    @property
    def result(self) -> DecodeResult[V]:
        return self._result

    @property
    def consumed(self) -> int:
        return self._stream.consumed

    def push(self, chunk: str | bytes) -> DecodeResult[V]:
        self._stream.push(chunk)
        return self._advance()

    def finish(self) -> V:
        self._stream.finish()
        result = self._advance()
        if result is NEEDS_MORE_DATA:
            raise UnexpectedEndOfStreamError("a complete value")
        return result

    def _advance(self) -> DecodeResult[V]:
        if self._result is NEEDS_MORE_DATA:
            value = self.schema.decode_value(self._stream, self._state)
            if value is NEEDS_MORE_DATA:
                return value
            self._result = value
        self._stream.expect_end()
        return self._result


def encode_schema_definition(
    schema: Schema[Any], *, pretty_print: bool = False, indent: int = 2
) -> str:
    stream = EncodingStream(pretty_print=pretty_print, indent=indent)
    schema.encode_schema_definition(SchemaEncoder(stream))
    return stream.text


def encode_value[V](
    value: V, schema: Schema[V], *, pretty_print: bool = False, indent: int = 2
) -> str:
    stream = EncodingStream(pretty_print=pretty_print, indent=indent)
    schema.encode_value(value, stream)
    return stream.text


def decode_value[V](text: str | bytes, schema: Schema[V]) -> V:
    decoder = StreamingDecoder(schema)
    decoder.push(text)
    return decoder.finish()


class Codec:
    """Codec helpers bound to loaded settings."""

    def __init__(self, settings: CodecSettings | None = None) -> None:
        self.settings = settings or CodecSettings()

    @classmethod
    def from_config(cls, path: str | Path | None = None) -> Codec:
        settings, cfg_path = load_settings(path)
        setup_logging(
            level=settings.logging.level, json_format=settings.logging.json
        )
        logger.info(
            "codec.configured",
            config_path=str(cfg_path) if cfg_path else None,
            pretty_print=settings.encoding.pretty_print,
        )
        return cls(settings)

    def schema_for(self, tp: Any) -> Schema[Any]:
        return schema_for(
            tp, forbid_unknown_fields=self.settings.decoding.forbid_unknown_fields
        )

    def encode_schema_definition(self, schema: Schema[Any]) -> str:
        encoding = self.settings.encoding
        return encode_schema_definition(
            schema, pretty_print=encoding.pretty_print, indent=encoding.indent
        )

    def encode_value[V](self, value: V, schema: Schema[V]) -> str:
        encoding = self.settings.encoding
        return encode_value(
            value, schema, pretty_print=encoding.pretty_print, indent=encoding.indent
        )

    def decode_value[V](self, text: str | bytes, schema: Schema[V]) -> V:
        return decode_value(text, schema)

    def streaming_decoder[V](self, schema: Schema[V]) -> StreamingDecoder[V]:
        return StreamingDecoder(schema)
