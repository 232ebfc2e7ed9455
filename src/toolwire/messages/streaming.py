"""Apply a stream of response events to a message.

``stream_message`` owns the ordering rules: content blocks are started,
updated and stopped through a ``ContentBlocks`` tracker, and on any failure
every open block and the message itself are stopped with the error instead
of raising to the caller.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterable

from ..errors import (
    ContentBlocksNotStoppedError,
    EventAfterMessageStopError,
    MessageNotStoppedError,
    MissingMessageStartError,
    StreamErrorEvent,
    StreamingMessageError,
)
from ..logging import get_logger
from .content_blocks import ContentBlocks
from .events import (
    ContentBlockDelta,
    ContentBlockStart,
    ContentBlockStop,
    ContentDelta,
    Error,
    MessageDelta,
    MessageStart,
    MessageStop,
    Ping,
    StreamEvent,
    UnknownEvent,
    event_type,
)
from .metadata import Metadata, MetadataState

logger = get_logger(__name__)


class StreamingContentBlock(ABC):
    @abstractmethod
    def update(self, delta: ContentDelta) -> None: ...

    async def stop(self, error: BaseException | None) -> None:
        """Called exactly once; ``error`` is set when the stream failed."""


class StreamingMessage[B: StreamingContentBlock](ABC):
    """Receiver for ``stream_message``. Override what you need."""

    def update_metadata(self, metadata: Metadata) -> None:
        pass

    @abstractmethod
    def append_content_block(self, event: ContentBlockStart) -> B: ...

    def recover_from_unknown_event(self, event: UnknownEvent) -> None:
        raise StreamingMessageError(
            f"Could not decode {event.event or 'event'}: {event.error}"
        )

    def recover_from_event_after_stop(
        self, event: StreamEvent | UnknownEvent, error: EventAfterMessageStopError
    ) -> None:
        raise error

    def stop(self, error: BaseException | None) -> None:
        pass


def _require_started(metadata: Metadata, event: StreamEvent) -> None:
    if metadata.state is MetadataState.IDLE:
        raise MissingMessageStartError(event_type(event))


async def stream_message[B: StreamingContentBlock](
    message: StreamingMessage[B],
    events: AsyncIterable[StreamEvent | UnknownEvent],
) -> None:
    metadata = Metadata()
    blocks: ContentBlocks[B] = ContentBlocks()
    try:
        stopped = False
        async for event in events:
            if stopped:
                message.recover_from_event_after_stop(
                    event, EventAfterMessageStopError(event_type(event))
                )
                continue
            match event:
                case UnknownEvent():
                    logger.warning(
                        "stream.unknown_event", event=event.event, error=event.error
                    )
                    message.recover_from_unknown_event(event)
                case Ping():
                    pass
                case Error(error=detail):
                    raise StreamErrorEvent(detail.type, detail.message)
                case MessageStart():
                    metadata = metadata.apply_start(event)
                    logger.info(
                        "stream.message_start", id=metadata.id, model=metadata.model
                    )
                    message.update_metadata(metadata)
                case MessageDelta():
                    metadata = metadata.apply_delta(event)
                    message.update_metadata(metadata)
                case MessageStop():
                    _require_started(metadata, event)
                    if not blocks.all_stopped:
                        raise ContentBlocksNotStoppedError()
                    stopped = True
                case ContentBlockStart():
                    _require_started(metadata, event)
                    blocks.start(message.append_content_block(event), event.index)
                case ContentBlockDelta():
                    _require_started(metadata, event)
                    with blocks.borrow(event.index) as block:
                        block.update(event.delta)
                case ContentBlockStop():
                    _require_started(metadata, event)
                    await blocks.stop(event.index).stop(None)
        if not stopped:
            raise MessageNotStoppedError()
        metadata = metadata.stop()
        message.update_metadata(metadata)
        logger.info(
            "stream.message_stop",
            id=metadata.id,
            stop_reason=metadata.stop_reason,
            blocks=len(blocks),
        )
        message.stop(None)
    except Exception as error:
        await _stop_with_error(message, blocks, metadata, error)


async def _stop_with_error[B: StreamingContentBlock](
    message: StreamingMessage[B],
    blocks: ContentBlocks[B],
    metadata: Metadata,
    error: Exception,
) -> None:
    logger.warning(
        "stream.failed", error=str(error), error_type=type(error).__name__
    )
    for block in blocks.stop_remaining():
        try:
            await block.stop(error)
        except Exception as stop_error:
            logger.warning(
                "stream.block_stop_failed",
                error=str(stop_error),
                error_type=type(stop_error).__name__,
            )
    if metadata.state is not MetadataState.STOPPED:
        metadata = metadata.stop(error)
    try:
        message.update_metadata(metadata)
        message.stop(error)
    except Exception as stop_error:
        logger.warning(
            "stream.message_stop_failed",
            error=str(stop_error),
            error_type=type(stop_error).__name__,
        )
