from .assembled import (
    AssembledMessage,
    TextContent,
    ToolUseContent,
    assemble_message,
)
from .cache import (
    CacheableComponentArray,
    CacheBreakpoint,
    CacheControl,
    attach_cache_breakpoints,
    encode_cacheable_components,
    peek_pairs,
)
from .content_blocks import ContentBlocks
from .events import StreamEvent, UnknownEvent, decode_stream_event
from .metadata import Metadata, MetadataState
from .request import (
    Content,
    ImageBlock,
    Message,
    MessagesRequest,
    TextBlock,
    ToolChoice,
    ToolResultBlock,
    ToolUseBlock,
)
from .sse import ServerSentEvent, SSEDecoder, aiter_stream_events
from .streaming import StreamingContentBlock, StreamingMessage, stream_message

__all__ = [
    "AssembledMessage",
    "CacheBreakpoint",
    "CacheControl",
    "CacheableComponentArray",
    "Content",
    "ContentBlocks",
    "ImageBlock",
    "Message",
    "MessagesRequest",
    "Metadata",
    "MetadataState",
    "SSEDecoder",
    "ServerSentEvent",
    "StreamEvent",
    "StreamingContentBlock",
    "StreamingMessage",
    "TextBlock",
    "TextContent",
    "ToolChoice",
    "ToolResultBlock",
    "ToolUseBlock",
    "ToolUseContent",
    "UnknownEvent",
    "aiter_stream_events",
    "assemble_message",
    "attach_cache_breakpoints",
    "decode_stream_event",
    "encode_cacheable_components",
    "peek_pairs",
    "stream_message",
]
