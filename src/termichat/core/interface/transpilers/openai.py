"""OpenAI transpiler: chat messages to the chat-completions wire format and back.

litellm speaks this format for every OpenAI-compatible backend, so it is the
only transpiler the generator needs. Responses may be litellm objects or
plain dicts; both are read through ``read_field``.
"""

import base64
import json
from collections.abc import Mapping
from typing import Any

from termichat.core.interface.converter import parse_tool_arguments
from termichat.core.interface.models import (
    BackendToolCall,
    ChatMessage,
    GenerateTextResult,
    ImageEntry,
    TokenUsage,
    ToolCallEntry,
    ToolResultEntry,
)
from termichat.core.interface.schema import CompiledTool


def read_field(obj: Any, key: str) -> Any:
    """Read *key* from a dict or an attribute-style response object."""
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(key)
    return getattr(obj, key, None)


def read_usage(obj: Any) -> TokenUsage | None:
    usage = read_field(obj, "usage")
    if not usage:
        return None
    return TokenUsage(
        prompt_tokens=read_field(usage, "prompt_tokens"),
        completion_tokens=read_field(usage, "completion_tokens"),
        total_tokens=read_field(usage, "total_tokens"),
    )


class OpenAITranspiler:
    """Converts between chat messages and OpenAI's chat completion format."""

    def to_provider(self, messages: list[ChatMessage]) -> list[dict[str, Any]]:
        """Convert chat messages to OpenAI ``messages``.

        Each tool result becomes its own ``tool`` message.
        """
        result: list[dict[str, Any]] = []
        for msg in messages:
            result.extend(self._message_to_openai(msg))
        return result

    def tools_to_provider(self, tools: dict[str, CompiledTool]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.json_schema(),
                },
            }
            for tool in tools.values()
        ]

    def from_provider(self, response: Any) -> GenerateTextResult:
        """Convert an OpenAI chat completion into a ``GenerateTextResult``."""
        usage = read_usage(response)
        choices = read_field(response, "choices") or []
        if not choices:
            return GenerateTextResult(usage=usage)

        choice = choices[0]
        message = read_field(choice, "message")

        tool_calls: list[BackendToolCall] = []
        for tc in read_field(message, "tool_calls") or []:
            function = read_field(tc, "function")
            name = read_field(function, "name") or ""
            tool_calls.append(
                BackendToolCall(
                    tool_call_id=read_field(tc, "id"),
                    tool_name=name,
                    args=parse_tool_arguments(name, read_field(function, "arguments")),
                )
            )

        return GenerateTextResult(
            text=_message_text(read_field(message, "content")),
            tool_calls=tool_calls,
            usage=usage,
            finish_reason=read_field(choice, "finish_reason"),
        )

    def _message_to_openai(self, msg: ChatMessage) -> list[dict[str, Any]]:
        if isinstance(msg.content, str):
            return [{"role": msg.role, "content": msg.content}]

        if msg.role == "tool":
            return [
                {
                    "role": "tool",
                    "tool_call_id": entry.tool_call_id,
                    "content": entry.result,
                }
                for entry in msg.content
                if isinstance(entry, ToolResultEntry)
            ]

        calls = [e for e in msg.content if isinstance(e, ToolCallEntry)]
        if calls:
            return [
                {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": call.tool_call_id,
                            "type": "function",
                            "function": {
                                "name": call.tool_name,
                                "arguments": json.dumps(call.args),
                            },
                        }
                        for call in calls
                    ],
                }
            ]

        images = [e for e in msg.content if isinstance(e, ImageEntry)]
        return [
            {
                "role": msg.role,
                "content": [
                    {"type": "image_url", "image_url": {"url": _data_url(image)}}
                    for image in images
                ],
            }
        ]


def _message_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(
            str(read_field(item, "text") or "")
            for item in content
            if read_field(item, "type") == "text"
        )
    return ""


def _data_url(image: ImageEntry) -> str:
    encoded = base64.b64encode(image.image).decode("ascii")
    return f"data:{image.mime_type};base64,{encoded}"
