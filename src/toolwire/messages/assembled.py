"""An in-memory message assembled from a response stream."""

from __future__ import annotations

from collections.abc import AsyncIterable, Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ..codec import StreamingDecoder
from ..errors import DecodingError, StreamingMessageError
from ..jsonstream import NEEDS_MORE_DATA
from ..logging import get_logger
from ..schema import JSONValueSchema
from ..tools import Tool
from .events import (
    ContentBlockStart,
    ContentDelta,
    InputJSONDelta,
    TextBlockStart,
    TextDelta,
    ToolUseBlockStart,
)
from .metadata import Metadata
from .streaming import StreamingContentBlock, StreamingMessage, stream_message

logger = get_logger(__name__)

type ToolUseCallback = Callable[[ToolUseContent], Awaitable[None]]


@dataclass
class TextContent(StreamingContentBlock):
    text: str = ""
    stopped: bool = False
    error: BaseException | None = None

    def update(self, delta: ContentDelta) -> None:
        if not isinstance(delta, TextDelta):
            raise StreamingMessageError(
                f"Text block received {type(delta).__name__}"
            )
        self.text += delta.text

    async def stop(self, error: BaseException | None) -> None:
        self.stopped = True
        self.error = error


@dataclass
class ToolUseContent(StreamingContentBlock):
    """A tool call whose input is decoded while it streams in.

    ``partial_input`` always holds the raw JSON received so far. A decoding
    failure is kept in ``error`` rather than aborting the stream.
    """

    id: str
    name: str
    tool: Tool[Any] | None = None
    on_complete: ToolUseCallback | None = field(default=None, repr=False)
    partial_input: str = ""
    input: Any = None
    complete: bool = False
    stopped: bool = False
    error: BaseException | None = None
    _decoder: StreamingDecoder[Any] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        schema = self.tool.input_schema if self.tool else JSONValueSchema()
        self._decoder = StreamingDecoder(schema)

    def update(self, delta: ContentDelta) -> None:
        if not isinstance(delta, InputJSONDelta):
            raise StreamingMessageError(
                f"Tool use block received {type(delta).__name__}"
            )
        self.partial_input += delta.partial_json
        if self.error is not None or not delta.partial_json:
            return
        try:
            result = self._decoder.push(delta.partial_json)
        except DecodingError as e:
            self._fail(e)
            return
        if result is not NEEDS_MORE_DATA:
            self.input = result

    def _fail(self, error: DecodingError) -> None:
        logger.warning(
            "assembled.tool_input_invalid",
            tool=self.name,
            id=self.id,
            error=str(error),
        )
        self.error = error

    async def stop(self, error: BaseException | None) -> None:
        self.stopped = True
        if error is not None:
            self.error = self.error or error
            return
        if self.error is not None:
            return
        try:
            if not self.partial_input.strip():
                # Tools without parameters stream no input at all
                self._decoder.push("{}")
            self.input = self._decoder.finish()
        except DecodingError as e:
            self._fail(e)
            return
        self.complete = True
        if self.on_complete is not None:
            await self.on_complete(self)


type AssembledBlock = TextContent | ToolUseContent


class AssembledMessage(StreamingMessage[AssembledBlock]):
    def __init__(
        self,
        tools: Iterable[Tool[Any]] = (),
        *,
        on_tool_use: ToolUseCallback | None = None,
    ) -> None:
        self.tools = {tool.name: tool for tool in tools}
        self.on_tool_use = on_tool_use
        self.content: list[AssembledBlock] = []
        self.metadata = Metadata()
        self.stopped = False
        self.error: BaseException | None = None

    def __repr__(self) -> str:
        return (
            f"AssembledMessage(id={self.metadata.id!r}, blocks={len(self.content)},"
            f" stopped={self.stopped}, error={self.error!r})"
        )

    @property
    def text(self) -> str:
        return "".join(b.text for b in self.content if isinstance(b, TextContent))

    @property
    def tool_uses(self) -> list[ToolUseContent]:
        return [b for b in self.content if isinstance(b, ToolUseContent)]

    def update_metadata(self, metadata: Metadata) -> None:
        self.metadata = metadata

    def append_content_block(self, event: ContentBlockStart) -> AssembledBlock:
        block: AssembledBlock
        match event.content_block:
            case TextBlockStart(text=text):
                block = TextContent(text)
            case ToolUseBlockStart(id=tool_use_id, name=name):
                tool = self.tools.get(name)
                if tool is None:
                    logger.info("assembled.undeclared_tool", name=name)
                block = ToolUseContent(
                    tool_use_id, name, tool, on_complete=self.on_tool_use
                )
        self.content.append(block)
        return block

    def stop(self, error: BaseException | None) -> None:
        self.stopped = True
        self.error = error


async def assemble_message(
    events: AsyncIterable[Any],
    tools: Iterable[Tool[Any]] = (),
    *,
    on_tool_use: ToolUseCallback | None = None,
) -> AssembledMessage:
    message = AssembledMessage(tools, on_tool_use=on_tool_use)
    await stream_message(message, events)
    return message
