"""Wire models for both sides of the translation layer.

The *content* side is part-based: a conversation is a list of role-tagged
``Content`` blocks, each holding typed parts (text, function call, function
response, inline data). The *chat* side is the OpenAI-compatible
role/content message list. Content-side models carry camelCase aliases so
they dump to the exact wire shape with ``by_alias=True``.
"""

import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_serializer

# ---------------------------------------------------------------------------
# Parts: the tagged union, one variant per part kind
# ---------------------------------------------------------------------------


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class TextPart(_WireModel):
    """A text fragment."""

    text: str


class FunctionCall(_WireModel):
    name: str
    args: dict[str, Any] = {}


class FunctionCallPart(_WireModel):
    """A model-issued function call."""

    function_call: FunctionCall = Field(alias="functionCall")


class FunctionResponsePayload(_WireModel):
    output: str | None = None
    error: str | None = None


class FunctionResponse(_WireModel):
    id: str
    name: str
    response: FunctionResponsePayload


class FunctionResponsePart(_WireModel):
    """The result of a function call, sent back to the model."""

    function_response: FunctionResponse = Field(alias="functionResponse")


class Blob(_WireModel):
    mime_type: str = Field(alias="mimeType")
    data: str

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


class InlineDataPart(_WireModel):
    """Inline base64 binary data."""

    inline_data: Blob = Field(alias="inlineData")


class OpaquePart(_WireModel):
    """A part no classifier recognised. Carried along, never converted."""

    raw: dict[str, Any] = {}

    @model_serializer
    def _as_wire(self) -> dict[str, Any]:
        return self.raw


Part = TextPart | FunctionCallPart | FunctionResponsePart | InlineDataPart | OpaquePart


# ---------------------------------------------------------------------------
# Content blocks
# ---------------------------------------------------------------------------


class Content(_WireModel):
    """One conversation turn: a role and its ordered parts."""

    role: Literal["user", "model", "system"] = "user"
    parts: list[Part] = []

    @field_validator("role", mode="before")
    @classmethod
    def _default_role(cls, value: Any) -> Any:
        return "user" if value is None else value

    @field_validator("parts", mode="before")
    @classmethod
    def _parse_parts(cls, value: Any) -> Any:
        from termichat.core.interface.parts import parse_part

        if value is None:
            return []
        return [parse_part(item) for item in value]

    @property
    def text(self) -> str:
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))


# ---------------------------------------------------------------------------
# Request side
# ---------------------------------------------------------------------------


class FunctionDeclaration(_WireModel):
    name: str
    description: str = ""
    parameters: dict[str, Any] | None = None


class ToolDeclaration(_WireModel):
    """A tool entry; entries without function declarations are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    function_declarations: list[FunctionDeclaration] = Field(
        default_factory=list, alias="functionDeclarations"
    )


class GenerateContentConfig(_WireModel):
    system_instruction: str | Content | None = Field(default=None, alias="systemInstruction")
    response_mime_type: str | None = Field(default=None, alias="responseMimeType")
    response_schema: dict[str, Any] | None = Field(default=None, alias="responseSchema")
    tools: list[ToolDeclaration] | None = None
    temperature: float | None = None
    max_output_tokens: int | None = Field(default=None, alias="maxOutputTokens")
    top_p: float | None = Field(default=None, alias="topP")

    @property
    def system_text(self) -> str | None:
        """System instruction as plain text, if any."""
        if isinstance(self.system_instruction, Content):
            return "\n".join(
                p.text for p in self.system_instruction.parts if isinstance(p, TextPart)
            )
        return self.system_instruction

    @property
    def wants_json(self) -> bool:
        return self.response_mime_type == "application/json" and bool(self.response_schema)


class GenerateContentRequest(_WireModel):
    """Inbound request. ``contents`` is any shape accepted by ``normalize_contents``."""

    contents: Any
    config: GenerateContentConfig = Field(default_factory=GenerateContentConfig)


# ---------------------------------------------------------------------------
# Response side
# ---------------------------------------------------------------------------


class UsageMetadata(_WireModel):
    prompt_token_count: int = Field(default=0, alias="promptTokenCount")
    candidates_token_count: int = Field(default=0, alias="candidatesTokenCount")
    total_token_count: int = Field(default=0, alias="totalTokenCount")


class Candidate(_WireModel):
    content: Content
    index: int = 0
    finish_reason: str | None = Field(default=None, alias="finishReason")
    safety_ratings: list[dict[str, Any]] = Field(default_factory=list, alias="safetyRatings")


class GenerateContentResponse(_WireModel):
    candidates: list[Candidate] = []
    usage_metadata: UsageMetadata | None = Field(default=None, alias="usageMetadata")

    @property
    def parts(self) -> list[Part]:
        if not self.candidates:
            return []
        return list(self.candidates[0].content.parts)

    @property
    def text(self) -> str | None:
        """Concatenated text of the first candidate, ``None`` when it has none."""
        texts = [p.text for p in self.parts if isinstance(p, TextPart)]
        return "".join(texts) if texts else None

    @property
    def function_calls(self) -> list[FunctionCall]:
        return [p.function_call for p in self.parts if isinstance(p, FunctionCallPart)]


class CountTokensResponse(_WireModel):
    total_tokens: int = Field(alias="totalTokens")


# ---------------------------------------------------------------------------
# Chat side: messages handed to the chat-completion backend
# ---------------------------------------------------------------------------


class ToolCallEntry(BaseModel):
    type: Literal["tool-call"] = "tool-call"
    tool_call_id: str
    tool_name: str
    args: dict[str, Any] = {}


class ToolResultEntry(BaseModel):
    type: Literal["tool-result"] = "tool-result"
    tool_call_id: str
    tool_name: str
    result: str


class ImageEntry(BaseModel):
    model_config = ConfigDict(ser_json_bytes="base64")

    type: Literal["image"] = "image"
    image: bytes
    mime_type: str


ChatEntry = ToolCallEntry | ToolResultEntry | ImageEntry


class ChatMessage(BaseModel):
    """A single chat-completion message.

    ``content`` is a plain string for text messages and a list of entries
    for tool calls, tool results and images.
    """

    role: Literal["system", "user", "assistant", "tool"]
    content: str | list[ChatEntry]

    @property
    def text(self) -> str:
        """Text used for token estimation."""
        if isinstance(self.content, str):
            return self.content
        pieces: list[str] = []
        for entry in self.content:
            if isinstance(entry, ToolResultEntry):
                pieces.append(entry.result)
            elif isinstance(entry, ToolCallEntry):
                pieces.append(f"{entry.tool_name} {json.dumps(entry.args)}")
        return " ".join(pieces)


# ---------------------------------------------------------------------------
# Backend results
# ---------------------------------------------------------------------------


class TokenUsage(BaseModel):
    """Usage as reported by the chat backend; absent counts are zero."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    @field_validator("prompt_tokens", "completion_tokens", "total_tokens", mode="before")
    @classmethod
    def _none_is_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    def to_metadata(self) -> UsageMetadata:
        return UsageMetadata(
            prompt_token_count=self.prompt_tokens,
            candidates_token_count=self.completion_tokens,
            total_token_count=self.total_tokens,
        )


class BackendToolCall(BaseModel):
    tool_call_id: str | None = None
    tool_name: str
    args: dict[str, Any] = {}


class GenerateTextResult(BaseModel):
    text: str = ""
    tool_calls: list[BackendToolCall] = []
    usage: TokenUsage | None = None
    finish_reason: str | None = None


class GenerateObjectResult(BaseModel):
    object: Any = None
    usage: TokenUsage | None = None
    finish_reason: str | None = None
