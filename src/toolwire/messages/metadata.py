"""Message-level metadata accumulated from start and delta events."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from ..errors import (
    EventAfterMessageStopError,
    MissingMessageStartError,
    MultipleMessageStartError,
)
from .events import MessageDelta, MessageStart, Usage


class MetadataState(Enum):
    IDLE = "idle"
    STARTED = "started"
    STOPPED = "stopped"


def merge_usage(current: Usage | None, update: Usage | None) -> Usage | None:
    """Overlay the counters present in ``update`` onto ``current``."""
    if update is None:
        return current
    if current is None:
        return update
    return Usage(
        input_tokens=_pick(update.input_tokens, current.input_tokens),
        output_tokens=_pick(update.output_tokens, current.output_tokens),
        cache_creation_input_tokens=_pick(
            update.cache_creation_input_tokens, current.cache_creation_input_tokens
        ),
        cache_read_input_tokens=_pick(
            update.cache_read_input_tokens, current.cache_read_input_tokens
        ),
    )


def _pick[T](new: T | None, old: T | None) -> T | None:
    return old if new is None else new


@dataclass(frozen=True, slots=True)
class Metadata:
    state: MetadataState = MetadataState.IDLE
    id: str | None = None
    model: str | None = None
    stop_reason: str | None = None
    stop_sequence: str | None = None
    usage: Usage | None = None
    error: BaseException | None = None

    def _check_open(self, event_type: str) -> None:
        if self.state is MetadataState.STOPPED:
            raise EventAfterMessageStopError(event_type)

    def apply_start(self, event: MessageStart) -> Metadata:
        self._check_open("message_start")
        if self.state is MetadataState.STARTED:
            raise MultipleMessageStartError()
        message = event.message
        return replace(
            self,
            state=MetadataState.STARTED,
            id=message.id,
            model=message.model,
            stop_reason=message.stop_reason,
            stop_sequence=message.stop_sequence,
            usage=message.usage,
        )

    def apply_delta(self, event: MessageDelta) -> Metadata:
        self._check_open("message_delta")
        if self.state is MetadataState.IDLE:
            raise MissingMessageStartError("message_delta")
        return replace(
            self,
            stop_reason=_pick(event.delta.stop_reason, self.stop_reason),
            stop_sequence=_pick(event.delta.stop_sequence, self.stop_sequence),
            usage=merge_usage(self.usage, event.usage),
        )

    def stop(self, error: BaseException | None = None) -> Metadata:
        self._check_open("message_stop")
        return replace(self, state=MetadataState.STOPPED, error=error)
