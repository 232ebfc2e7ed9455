"""Incremental server-sent-event framing over byte or text chunks."""

from __future__ import annotations

import codecs
import re
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass

import msgspec

from ..logging import get_logger
from .events import StreamEvent, UnknownEvent, decode_stream_event

logger = get_logger(__name__)

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class ServerSentEvent:
    event: str | None
    data: str
    id: str | None = None
    retry: int | None = None


class SSEDecoder:
    def __init__(self) -> None:
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""
        self._event: str | None = None
        self._data: list[str] = []
        self._id: str | None = None
        self._retry: int | None = None

    def feed(self, chunk: str | bytes) -> list[ServerSentEvent]:
        if not isinstance(chunk, str):
            chunk = self._utf8.decode(bytes(chunk))
        self._buffer += chunk
        return self._drain(final=False)

    def flush(self) -> list[ServerSentEvent]:
        """End of input. An event without its terminating blank line is dropped."""
        self._buffer += self._utf8.decode(b"", final=True)
        events = self._drain(final=True)
        if self._buffer:
            event = self._process_line(self._buffer)
            if event is not None:
                events.append(event)
            self._buffer = ""
        if self._data:
            logger.debug("sse.incomplete_event_dropped", event=self._event)
        self._reset_event()
        return events

    def _drain(self, *, final: bool) -> list[ServerSentEvent]:
        events: list[ServerSentEvent] = []
        while match := _LINE_BREAK_RE.search(self._buffer):
            # A trailing "\r" may be the first half of "\r\n"
            at_end = match.end() == len(self._buffer)
            if not final and at_end and match.group() == "\r":
                break
            line = self._buffer[: match.start()]
            self._buffer = self._buffer[match.end() :]
            event = self._process_line(line)
            if event is not None:
                events.append(event)
        return events

    def _reset_event(self) -> None:
        self._event = None
        self._data = []

    def _process_line(self, line: str) -> ServerSentEvent | None:
        if not line:
            if not self._data:
                self._reset_event()
                return None
            event = ServerSentEvent(
                event=self._event,
                data="\n".join(self._data),
                id=self._id,
                retry=self._retry,
            )
            self._reset_event()
            return event
        if line.startswith(":"):
            return None
        name, _, value = line.partition(":")
        value = value.removeprefix(" ")
        match name:
            case "event":
                self._event = value
            case "data":
                self._data.append(value)
            case "id":
                if "\0" not in value:
                    self._id = value
            case "retry":
                if value.isdigit():
                    self._retry = int(value)
        return None


def _to_stream_event(sse: ServerSentEvent) -> StreamEvent | UnknownEvent:
    try:
        return decode_stream_event(sse.data)
    except msgspec.DecodeError as e:
        return UnknownEvent(event=sse.event, data=sse.data, error=str(e))


async def aiter_stream_events(
    chunks: AsyncIterable[str | bytes],
) -> AsyncIterator[StreamEvent | UnknownEvent]:
    """Turn a chunked ``text/event-stream`` body into stream events."""
    decoder = SSEDecoder()
    async for chunk in chunks:
        for sse in decoder.feed(chunk):
            yield _to_stream_event(sse)
    for sse in decoder.flush():
        yield _to_stream_event(sse)
