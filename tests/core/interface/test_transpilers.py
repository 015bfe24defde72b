"""Tests for the OpenAI wire transpiler."""

import json
from types import SimpleNamespace

import pytest

from termichat.core.interface.errors import ToolArgumentsError
from termichat.core.interface.models import (
    ChatMessage,
    ImageEntry,
    ToolCallEntry,
    ToolDeclaration,
    ToolResultEntry,
)
from termichat.core.interface.schema import compile_tools
from termichat.core.interface.transpilers import OpenAITranspiler
from termichat.core.interface.transpilers.openai import read_field, read_usage


@pytest.fixture
def transpiler() -> OpenAITranspiler:
    return OpenAITranspiler()


class TestToProvider:
    def test_text_messages(self, transpiler: OpenAITranspiler) -> None:
        result = transpiler.to_provider(
            [
                ChatMessage(role="system", content="Be brief."),
                ChatMessage(role="user", content="Hi"),
            ]
        )
        assert result == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ]

    def test_tool_calls(self, transpiler: OpenAITranspiler) -> None:
        msg = ChatMessage(
            role="assistant",
            content=[ToolCallEntry(tool_call_id="call_1", tool_name="calc", args={"x": 2})],
        )
        [result] = transpiler.to_provider([msg])
        assert result["role"] == "assistant"
        assert result["content"] is None
        call = result["tool_calls"][0]
        assert call["id"] == "call_1"
        assert call["type"] == "function"
        assert call["function"]["name"] == "calc"
        assert json.loads(call["function"]["arguments"]) == {"x": 2}

    def test_tool_results(self, transpiler: OpenAITranspiler) -> None:
        msg = ChatMessage(
            role="tool",
            content=[ToolResultEntry(tool_call_id="call_1", tool_name="calc", result="4")],
        )
        assert transpiler.to_provider([msg]) == [
            {"role": "tool", "tool_call_id": "call_1", "content": "4"}
        ]

    def test_image(self, transpiler: OpenAITranspiler) -> None:
        msg = ChatMessage(role="user", content=[ImageEntry(image=b"abc", mime_type="image/png")])
        [result] = transpiler.to_provider([msg])
        assert result["content"] == [
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,YWJj"}}
        ]


class TestToolsToProvider:
    def test_function_tools(self, transpiler: OpenAITranspiler) -> None:
        tools = compile_tools(
            [
                ToolDeclaration.model_validate(
                    {
                        "functionDeclarations": [
                            {
                                "name": "search",
                                "description": "Search the web",
                                "parameters": {"properties": {"q": {"type": "STRING"}}},
                            }
                        ]
                    }
                )
            ]
        )
        [tool] = transpiler.tools_to_provider(tools)
        assert tool["type"] == "function"
        assert tool["function"]["name"] == "search"
        assert tool["function"]["description"] == "Search the web"
        assert tool["function"]["parameters"]["properties"]["q"]["type"] == "string"


class TestFromProvider:
    def test_text(self, transpiler: OpenAITranspiler) -> None:
        response = {
            "choices": [{"message": {"content": "Hello"}, "finish_reason": "stop"}],
            "usage": {"prompt_tokens": 3, "completion_tokens": 1, "total_tokens": 4},
        }
        result = transpiler.from_provider(response)
        assert result.text == "Hello"
        assert result.tool_calls == []
        assert result.finish_reason == "stop"
        assert result.usage is not None
        assert result.usage.total_tokens == 4

    def test_tool_calls(self, transpiler: OpenAITranspiler) -> None:
        response = {
            "choices": [
                {
                    "message": {
                        "content": None,
                        "tool_calls": [
                            {
                                "id": "call_9",
                                "type": "function",
                                "function": {"name": "calc", "arguments": '{"e": "2+2"}'},
                            }
                        ],
                    },
                    "finish_reason": "tool_calls",
                }
            ]
        }
        result = transpiler.from_provider(response)
        assert result.text == ""
        assert result.tool_calls[0].tool_call_id == "call_9"
        assert result.tool_calls[0].args == {"e": "2+2"}
        assert result.usage is None

    def test_malformed_arguments(self, transpiler: OpenAITranspiler) -> None:
        response = {
            "choices": [
                {"message": {"tool_calls": [{"id": "c", "function": {"name": "f", "arguments": "{"}}]}}
            ]
        }
        with pytest.raises(ToolArgumentsError):
            transpiler.from_provider(response)

    def test_content_list(self, transpiler: OpenAITranspiler) -> None:
        response = {
            "choices": [
                {
                    "message": {
                        "content": [
                            {"type": "text", "text": "a"},
                            {"type": "refusal", "refusal": "no"},
                            {"type": "text", "text": "b"},
                        ]
                    }
                }
            ]
        }
        assert transpiler.from_provider(response).text == "ab"

    def test_no_choices(self, transpiler: OpenAITranspiler) -> None:
        result = transpiler.from_provider({"choices": []})
        assert result.text == ""
        assert result.tool_calls == []

    def test_attribute_objects(self, transpiler: OpenAITranspiler) -> None:
        response = SimpleNamespace(
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content="obj", tool_calls=None),
                    finish_reason="length",
                )
            ],
            usage=SimpleNamespace(prompt_tokens=1, completion_tokens=2, total_tokens=3),
        )
        result = transpiler.from_provider(response)
        assert result.text == "obj"
        assert result.finish_reason == "length"
        assert result.usage is not None
        assert result.usage.completion_tokens == 2


class TestReadHelpers:
    def test_read_field(self) -> None:
        assert read_field({"a": 1}, "a") == 1
        assert read_field(SimpleNamespace(a=2), "a") == 2
        assert read_field(None, "a") is None
        assert read_field(SimpleNamespace(), "a") is None

    def test_read_usage_missing_counts(self) -> None:
        usage = read_usage({"usage": {"prompt_tokens": 5, "completion_tokens": None}})
        assert usage is not None
        assert usage.prompt_tokens == 5
        assert usage.completion_tokens == 0
        assert usage.total_tokens == 0

    def test_read_usage_absent(self) -> None:
        assert read_usage({"choices": []}) is None
