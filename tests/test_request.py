from __future__ import annotations

import base64
import json
from dataclasses import dataclass
from typing import Annotated

from toolwire import Tool
from toolwire.jsonstream import EncodingStream
from toolwire.messages import (
    CacheBreakpoint,
    Content,
    ImageBlock,
    Message,
    MessagesRequest,
    TextBlock,
    ToolChoice,
    ToolResultBlock,
    ToolUseBlock,
)


@dataclass
class WeatherInput:
    city: Annotated[str, "City name"]


WEATHER = Tool.from_type("get_weather", "Look up the weather.", WeatherInput)


def _encode(value: Content | Message | ToolChoice) -> str:
    stream = EncodingStream()
    value.encode(stream)
    return stream.text


def test_content_merges_adjacent_text() -> None:
    content = Content("Hello, ", "", TextBlock("world"))

    assert list(content) == [TextBlock("Hello, world")]
    assert content.text == "Hello, world"
    assert _encode(content) == '"Hello, world"'


def test_content_with_blocks_encodes_as_array() -> None:
    content = Content("Look:", ImageBlock("image/png", b"\x89PNG"), CacheBreakpoint())

    assert content.text is None
    assert content.contains_cache_breakpoints
    assert json.loads(_encode(content)) == [
        {"type": "text", "text": "Look:"},
        {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": "image/png",
                "data": base64.b64encode(b"\x89PNG").decode("ascii"),
            },
            "cache_control": {"type": "ephemeral"},
        },
    ]


def test_content_concatenation() -> None:
    content = Content("a") + "b" + Content(CacheBreakpoint())

    assert list(content) == [TextBlock("ab"), CacheBreakpoint()]


def test_tool_blocks() -> None:
    message = Message(
        "user",
        Content(ToolResultBlock("toolu_1", Content("14 degrees")), "thanks"),
    )
    assert json.loads(_encode(message)) == {
        "role": "user",
        "content": [
            {"type": "tool_result", "tool_use_id": "toolu_1", "content": "14 degrees"},
            {"type": "text", "text": "thanks"},
        ],
    }

    assistant = Message.assistant(
        ToolUseBlock("toolu_1", "get_weather", {"city": "Oslo"})
    )
    assert _encode(assistant) == (
        '{"role":"assistant","content":[{"type":"tool_use","id":"toolu_1",'
        '"name":"get_weather","input":{"city":"Oslo"}}]}'
    )


def test_failed_tool_result() -> None:
    message = Message.user(ToolResultBlock("toolu_2", is_error=True))

    assert json.loads(_encode(message))["content"] == [
        {"type": "tool_result", "tool_use_id": "toolu_2", "is_error": True}
    ]


def test_tool_definition() -> None:
    assert WEATHER.definition() == (
        '{"name":"get_weather","description":"Look up the weather.",'
        '"input_schema":{"type":"object","properties":{"city":'
        '{"description":"City name","type":"string"}},"required":["city"],'
        '"additionalProperties":false}}'
    )


def test_tool_decodes_input() -> None:
    assert WEATHER.decode_input('{"city": "Oslo"}') == WeatherInput("Oslo")
    decoder = WEATHER.input_decoder()
    decoder.push('{"ci')
    assert decoder.push('ty": "Lima"}') == WeatherInput("Lima")


def test_tool_choice() -> None:
    assert _encode(ToolChoice.auto()) == '{"type":"auto"}'
    assert _encode(ToolChoice.none()) == '{"type":"none"}'
    assert _encode(ToolChoice.any(disable_parallel_tool_use=True)) == (
        '{"type":"any","disable_parallel_tool_use":true}'
    )
    assert _encode(ToolChoice.tool("get_weather")) == (
        '{"type":"tool","name":"get_weather"}'
    )


def test_messages_request_property_order() -> None:
    request = MessagesRequest(
        model="claude-test",
        max_tokens=256,
        system="Be brief.",
        tools=[WEATHER, CacheBreakpoint()],
        tool_choice=ToolChoice.auto(),
        temperature=0.5,
        stop_sequences=["END"],
        messages=[Message.user("Weather in Oslo?")],
    )
    body = json.loads(request.to_json())

    assert list(body) == [
        "model",
        "max_tokens",
        "stream",
        "system",
        "tools",
        "tool_choice",
        "temperature",
        "stop_sequences",
        "messages",
    ]
    assert body["stream"] is True
    assert body["system"] == "Be brief."
    assert body["tools"][0]["name"] == "get_weather"
    assert body["tools"][0]["cache_control"] == {"type": "ephemeral"}
    assert body["messages"] == [{"role": "user", "content": "Weather in Oslo?"}]
    assert request.contains_cache_breakpoints


def test_minimal_request_omits_optional_properties() -> None:
    request = MessagesRequest(
        model="claude-test",
        max_tokens=16,
        messages=[Message.user("hi")],
        stream=False,
    )

    assert request.to_json() == (
        '{"model":"claude-test","max_tokens":16,"stream":false,'
        '"messages":[{"role":"user","content":"hi"}]}'
    )
    assert not request.contains_cache_breakpoints


def test_pretty_printed_request_is_equivalent() -> None:
    request = MessagesRequest(
        model="claude-test",
        max_tokens=16,
        messages=[Message.user("hi", CacheBreakpoint())],
    )

    assert json.loads(request.to_json(pretty_print=True)) == json.loads(
        request.to_json()
    )
    assert request.contains_cache_breakpoints
