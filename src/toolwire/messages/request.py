"""Request body components for the Messages endpoint."""

from __future__ import annotations

import base64
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, Literal

from ..jsonstream import EncodingStream, ObjectEncoder
from ..schema import JSONValueSchema, Schema
from ..tools import Tool
from .cache import CacheableComponentArray, CacheBreakpoint


@dataclass(frozen=True, slots=True)
class TextBlock:
    text: str

    def encode_properties(self, obj: ObjectEncoder) -> None:
        obj.encode_property("type", "text")
        obj.encode_property("text", self.text)


@dataclass(frozen=True, slots=True)
class ImageBlock:
    media_type: str
    data: bytes

    def encode_properties(self, obj: ObjectEncoder) -> None:
        obj.encode_property("type", "image")
        with obj.next_property("source").encode_object() as source:
            source.encode_property("type", "base64")
            source.encode_property("media_type", self.media_type)
            source.encode_property("data", base64.b64encode(self.data).decode("ascii"))


@dataclass(frozen=True, slots=True)
class ToolUseBlock:
    """A tool call made by the assistant, replayed in a later request."""

    id: str
    name: str
    input: Any
    input_schema: Schema[Any] | None = None

    def encode_properties(self, obj: ObjectEncoder) -> None:
        obj.encode_property("type", "tool_use")
        obj.encode_property("id", self.id)
        obj.encode_property("name", self.name)
        schema = self.input_schema or JSONValueSchema()
        schema.encode_value(self.input, obj.next_property("input"))


@dataclass(frozen=True, slots=True)
class ToolResultBlock:
    tool_use_id: str
    content: Content | None = None
    is_error: bool = False

    def encode_properties(self, obj: ObjectEncoder) -> None:
        obj.encode_property("type", "tool_result")
        obj.encode_property("tool_use_id", self.tool_use_id)
        if self.content is not None:
            self.content.encode(obj.next_property("content"))
        if self.is_error:
            obj.encode_property("is_error", True)


type ContentBlock = TextBlock | ImageBlock | ToolUseBlock | ToolResultBlock
type ContentItem = str | ContentBlock | CacheBreakpoint


class Content:
    """Text and content blocks, optionally interleaved with cache breakpoints.

    Adjacent text is merged and empty text is dropped. Content made only of
    text encodes as a plain string.
    """

    __slots__ = ("_elements",)

    def __init__(self, *items: ContentItem) -> None:
        self._elements: list[ContentBlock | CacheBreakpoint] = []
        self.extend(items)

    def __repr__(self) -> str:
        return f"Content({', '.join(repr(e) for e in self._elements)})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Content):
            return NotImplemented
        return self._elements == other._elements

    def __iter__(self) -> Iterator[ContentBlock | CacheBreakpoint]:
        return iter(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __add__(self, other: Content | ContentItem) -> Content:
        result = Content(*self._elements)
        if isinstance(other, Content):
            result.extend(other)
        else:
            result.append(other)
        return result

    def append(self, item: ContentItem) -> None:
        if isinstance(item, str):
            if not item:
                return
            last = self._elements[-1] if self._elements else None
            if isinstance(last, TextBlock):
                self._elements[-1] = TextBlock(last.text + item)
            else:
                self._elements.append(TextBlock(item))
        elif isinstance(item, TextBlock):
            self.append(item.text)
        else:
            self._elements.append(item)

    def extend(self, items: Iterable[ContentItem]) -> None:
        for item in items:
            self.append(item)

    @property
    def contains_cache_breakpoints(self) -> bool:
        return any(isinstance(e, CacheBreakpoint) for e in self._elements)

    @property
    def text(self) -> str | None:
        """The text, when the content is text only."""
        if all(isinstance(e, TextBlock) for e in self._elements):
            return "".join(e.text for e in self._elements)
        return None

    def encode(self, stream: EncodingStream) -> None:
        text = self.text
        if text is not None:
            stream.encode(text)
        else:
            CacheableComponentArray(list(self._elements)).encode(stream)


def _as_content(content: Content | ContentItem) -> Content:
    return content if isinstance(content, Content) else Content(content)


@dataclass(frozen=True, slots=True)
class Message:
    role: Literal["user", "assistant"]
    content: Content

    @classmethod
    def user(cls, *items: ContentItem) -> Message:
        return cls("user", Content(*items))

    @classmethod
    def assistant(cls, *items: ContentItem) -> Message:
        return cls("assistant", Content(*items))

    @property
    def contains_cache_breakpoints(self) -> bool:
        return self.content.contains_cache_breakpoints

    def encode(self, stream: EncodingStream) -> None:
        with stream.encode_object() as obj:
            obj.encode_property("role", self.role)
            self.content.encode(obj.next_property("content"))


type ToolDefinitions = CacheableComponentArray[Tool[Any]]


@dataclass(frozen=True, slots=True)
class ToolChoice:
    type: Literal["auto", "any", "tool", "none"] = "auto"
    name: str | None = None
    disable_parallel_tool_use: bool | None = None

    @classmethod
    def auto(cls, *, disable_parallel_tool_use: bool | None = None) -> ToolChoice:
        return cls("auto", disable_parallel_tool_use=disable_parallel_tool_use)

    @classmethod
    def any(cls, *, disable_parallel_tool_use: bool | None = None) -> ToolChoice:
        return cls("any", disable_parallel_tool_use=disable_parallel_tool_use)

    @classmethod
    def tool(
        cls, name: str, *, disable_parallel_tool_use: bool | None = None
    ) -> ToolChoice:
        return cls("tool", name, disable_parallel_tool_use)

    @classmethod
    def none(cls) -> ToolChoice:
        return cls("none")

    def encode(self, stream: EncodingStream) -> None:
        with stream.encode_object() as obj:
            obj.encode_property("type", self.type)
            if self.name is not None:
                obj.encode_property("name", self.name)
            if self.disable_parallel_tool_use is not None:
                obj.encode_property(
                    "disable_parallel_tool_use", self.disable_parallel_tool_use
                )


@dataclass(slots=True)
class MessagesRequest:
    model: str
    max_tokens: int
    messages: Sequence[Message]
    system: Content | str | None = None
    tools: ToolDefinitions | Sequence[Tool[Any] | CacheBreakpoint] | None = None
    tool_choice: ToolChoice | None = None
    temperature: float | None = None
    stop_sequences: Sequence[str] = field(default_factory=list)
    stream: bool = True

    def _tool_definitions(self) -> ToolDefinitions | None:
        if self.tools is None or isinstance(self.tools, CacheableComponentArray):
            return self.tools
        return CacheableComponentArray(list(self.tools))

    @property
    def contains_cache_breakpoints(self) -> bool:
        tools = self._tool_definitions()
        return (
            (tools is not None and tools.contains_cache_breakpoints)
            or (
                self.system is not None
                and _as_content(self.system).contains_cache_breakpoints
            )
            or any(m.contains_cache_breakpoints for m in self.messages)
        )

    def encode(self, stream: EncodingStream) -> None:
        with stream.encode_object() as obj:
            obj.encode_property("model", self.model)
            obj.encode_property("max_tokens", self.max_tokens)
            obj.encode_property("stream", self.stream)
            if self.system is not None:
                _as_content(self.system).encode(obj.next_property("system"))
            tools = self._tool_definitions()
            if tools:
                tools.encode(obj.next_property("tools"))
            if self.tool_choice is not None:
                self.tool_choice.encode(obj.next_property("tool_choice"))
            if self.temperature is not None:
                obj.encode_property("temperature", self.temperature)
            if self.stop_sequences:
                with obj.next_property("stop_sequences").encode_array() as array:
                    for sequence in self.stop_sequences:
                        array.encode_element(sequence)
            with obj.next_property("messages").encode_array() as array:
                for message in self.messages:
                    message.encode(array.next_element())

    def to_json(self, *, pretty_print: bool = False) -> str:
        stream = EncodingStream(pretty_print=pretty_print)
        self.encode(stream)
        return stream.text
