"""ModelConverter: content blocks to chat messages and chat results back to responses.

Request direction: each content block is translated in three fixed passes
(text, then function responses, then function calls), followed by at most one
image message. That order is part of the contract: callers rely on it to
keep conversation history faithful.

Response direction: complete results become a single candidate; stream
events become one small envelope each. Text deltas are never accumulated
here; concatenation belongs to the caller.
"""

import base64
import binascii
import json
import logging
from typing import Any, Protocol
from uuid import uuid4

from termichat.core.interface.contents import normalize_contents
from termichat.core.interface.errors import ToolArgumentsError
from termichat.core.interface.models import (
    Candidate,
    ChatMessage,
    Content,
    FunctionCall,
    FunctionCallPart,
    FunctionResponsePart,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerateObjectResult,
    GenerateTextResult,
    ImageEntry,
    InlineDataPart,
    Part,
    TextPart,
    TokenUsage,
    ToolCallEntry,
    ToolResultEntry,
)

logger = logging.getLogger(__name__)

_ROLE_MAP = {"model": "assistant", "user": "user", "system": "system"}

# Chat-completion finish reasons in content-protocol terms.
_FINISH_REASONS = {
    "stop": "STOP",
    "tool_calls": "STOP",
    "function_call": "STOP",
    "length": "MAX_TOKENS",
    "content_filter": "SAFETY",
}


class CallIdGenerator(Protocol):
    """Produces a unique identifier for each outgoing tool call."""

    def __call__(self) -> str: ...


def random_call_id() -> str:
    return f"call_{uuid4().hex[:16]}"


def parse_tool_arguments(tool_name: str, raw: str | None) -> dict[str, Any]:
    """Parse tool-call argument text.

    Absent or blank text means no arguments. Anything else must be a JSON
    object; malformed text raises ``ToolArgumentsError`` instead of turning
    into ``{}``.
    """
    if raw is None or not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ToolArgumentsError(tool_name, raw) from exc
    if not isinstance(parsed, dict):
        raise ToolArgumentsError(tool_name, raw)
    return parsed


def _finish_reason(reason: str | None) -> str | None:
    if not reason:
        return None
    return _FINISH_REASONS.get(reason, reason.upper())


def _model_response(parts: list[Part], finish_reason: str | None = None) -> GenerateContentResponse:
    return GenerateContentResponse(
        candidates=[
            Candidate(
                content=Content(role="model", parts=parts),
                index=0,
                finish_reason=_finish_reason(finish_reason),
            )
        ]
    )


class ModelConverter:
    """Bidirectional converter between the content and chat-completion shapes."""

    def __init__(self, id_generator: CallIdGenerator | None = None) -> None:
        self._next_call_id: CallIdGenerator = id_generator or random_call_id

    # -- request direction -------------------------------------------------

    def to_messages(self, request: GenerateContentRequest) -> list[ChatMessage]:
        """Convert a request into the ordered chat message list."""
        messages: list[ChatMessage] = []

        system_text = request.config.system_text
        if system_text:
            messages.append(ChatMessage(role="system", content=system_text))

        for content in normalize_contents(request.contents):
            messages.extend(self.content_to_messages(content))
        return messages

    def content_to_messages(self, content: Content) -> list[ChatMessage]:
        role = _ROLE_MAP[content.role]
        parts = content.parts
        messages: list[ChatMessage] = []

        text = self._text_message(parts, role)
        if text is not None:
            messages.append(text)

        responses = [p for p in parts if isinstance(p, FunctionResponsePart)]
        messages.extend(self._tool_result_message(p) for p in responses)

        calls = self._tool_call_message(parts)
        if calls is not None:
            messages.append(calls)

        if responses:
            image = self._image_message(parts)
            if image is not None:
                messages.append(image)
        return messages

    @staticmethod
    def _text_message(parts: list[Part], role: str) -> ChatMessage | None:
        texts = [p.text for p in parts if isinstance(p, TextPart)]
        if not texts:
            return None
        return ChatMessage(role=role, content="\n".join(texts))  # type: ignore[arg-type]

    @staticmethod
    def _tool_result_message(part: FunctionResponsePart) -> ChatMessage:
        resp = part.function_response
        # A non-empty error wins over any output.
        if resp.response.error:
            result = f"Error: {resp.response.error}"
        else:
            result = resp.response.output or ""
        entry = ToolResultEntry(tool_call_id=resp.id, tool_name=resp.name, result=result)
        return ChatMessage(role="tool", content=[entry])

    def _tool_call_message(self, parts: list[Part]) -> ChatMessage | None:
        entries = [
            ToolCallEntry(
                tool_call_id=self._next_call_id(),
                tool_name=p.function_call.name,
                args=p.function_call.args,
            )
            for p in parts
            if isinstance(p, FunctionCallPart)
        ]
        if not entries:
            return None
        return ChatMessage(role="assistant", content=entries)

    @staticmethod
    def _image_message(parts: list[Part]) -> ChatMessage | None:
        for part in parts:
            if not (isinstance(part, InlineDataPart) and part.inline_data.is_image):
                continue
            try:
                data = base64.b64decode(part.inline_data.data, validate=True)
            except (binascii.Error, ValueError):
                logger.debug("Skipping image part with undecodable payload")
                continue
            entry = ImageEntry(image=data, mime_type=part.inline_data.mime_type)
            return ChatMessage(role="user", content=[entry])
        return None

    # -- response direction ------------------------------------------------

    @staticmethod
    def to_response(result: GenerateTextResult) -> GenerateContentResponse:
        """Build a response from a complete text/tool-call result.

        Usage metadata is always present, even when there is no candidate.
        """
        parts: list[Part] = []
        if result.text:
            parts.append(TextPart(text=result.text))
        parts.extend(
            FunctionCallPart(function_call=FunctionCall(name=call.tool_name, args=call.args))
            for call in result.tool_calls
        )

        response = _model_response(parts, result.finish_reason) if parts else GenerateContentResponse()
        response.usage_metadata = (result.usage or TokenUsage()).to_metadata()
        return response

    @staticmethod
    def to_object_response(result: GenerateObjectResult) -> GenerateContentResponse:
        """Serialize a structured-output object into a single JSON text part.

        A missing object (extraction failed upstream) yields no candidate.
        """
        if result.object is None:
            response = GenerateContentResponse()
        else:
            text = json.dumps(result.object, ensure_ascii=False)
            response = _model_response([TextPart(text=text)], result.finish_reason)
        response.usage_metadata = (result.usage or TokenUsage()).to_metadata()
        return response

    @staticmethod
    def to_stream_text_response(text: str) -> GenerateContentResponse:
        return _model_response([TextPart(text=text)])

    @staticmethod
    def to_stream_tool_call_response(name: str, arguments: str | None) -> GenerateContentResponse:
        """Envelope for one completed tool call; argument text is parsed here, once."""
        args = parse_tool_arguments(name, arguments)
        return _model_response([FunctionCallPart(function_call=FunctionCall(name=name, args=args))])

    @staticmethod
    def to_stream_end_response(finish_reason: str | None = None) -> GenerateContentResponse:
        return _model_response([], finish_reason)

    @staticmethod
    def to_stream_usage_response(usage: TokenUsage) -> GenerateContentResponse:
        response = _model_response([])
        response.usage_metadata = usage.to_metadata()
        return response
