"""ContentGenerator: serves content-protocol requests from an OpenAI-compatible backend.

The generator owns no protocol logic of its own: ``ModelConverter`` builds
chat messages, ``OpenAITranspiler`` serializes them for litellm, and the
result (or stream) is converted back. Backend failures surface as
``GenerationError`` naming the operation that failed; nothing is retried
here.
"""

import logging
from collections.abc import AsyncIterable, AsyncIterator
from typing import Any

import litellm
from pydantic import TypeAdapter, ValidationError

from termichat.core.context.counter import TokenCounter
from termichat.core.context.counter_registry import get_counter
from termichat.core.interface.config import GeneratorConfig
from termichat.core.interface.converter import ModelConverter
from termichat.core.interface.errors import GenerationError, UnsupportedCapabilityError
from termichat.core.interface.models import (
    ChatMessage,
    CountTokensResponse,
    GenerateContentRequest,
    GenerateContentResponse,
    GenerateObjectResult,
)
from termichat.core.interface.schema import compile_schema, compile_tools
from termichat.core.interface.streaming import (
    FinishEvent,
    StreamEvent,
    TextDeltaEvent,
    iter_stream_events,
    translate_stream,
)
from termichat.core.interface.transpilers.openai import OpenAITranspiler
from termichat.core.polyfills.json_extractor import try_extract_json
from termichat.utils.telemetry import (
    ATTR_FINISH_REASON,
    ATTR_MESSAGE_COUNT,
    ATTR_MODEL,
    ATTR_OPERATION,
    ATTR_STRUCTURED,
    ATTR_TOOL_COUNT,
    get_tracer,
    record_usage,
)

logger = logging.getLogger(__name__)

_tracer = get_tracer(__name__)

_RESPONSE_SCHEMA_NAME = "response"


class ContentGenerator:
    """Async content generator backed by litellm.

    Usage::

        config = GeneratorConfig.from_env(os.environ)
        generator = ContentGenerator(config)
        response = await generator.generate_content(request)
    """

    def __init__(
        self,
        config: GeneratorConfig,
        converter: ModelConverter | None = None,
        counter: TokenCounter | None = None,
    ) -> None:
        self.config = config
        self.converter = converter or ModelConverter()
        self.counter = counter or get_counter(config)
        self.transpiler = OpenAITranspiler()

    # -- complete responses ------------------------------------------------

    async def generate_content(self, request: GenerateContentRequest) -> GenerateContentResponse:
        """Generate one complete response.

        Requests asking for ``application/json`` with a schema take the
        structured-output path; everything else is plain text plus tools.
        """
        messages = self.converter.to_messages(request)
        if request.config.wants_json:
            return await self._generate_object(request, messages)
        return await self._generate_text(request, messages)

    async def _generate_text(
        self, request: GenerateContentRequest, messages: list[ChatMessage]
    ) -> GenerateContentResponse:
        operation = "generate text"
        with _tracer.start_as_current_span("generator.generate_content") as span:
            call_kwargs = self._call_kwargs(request, messages)
            self._add_tools(request, call_kwargs)
            self._annotate(span, operation, call_kwargs)

            try:
                response = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]
            except Exception as exc:
                raise GenerationError(operation, str(exc)) from exc

            result = self.transpiler.from_provider(response)
            record_usage(span, result.usage)
            if result.finish_reason:
                span.set_attribute(ATTR_FINISH_REASON, result.finish_reason)
            return self.converter.to_response(result)

    async def _generate_object(
        self, request: GenerateContentRequest, messages: list[ChatMessage]
    ) -> GenerateContentResponse:
        operation = "generate object"
        with _tracer.start_as_current_span("generator.generate_content") as span:
            schema = compile_schema(request.config.response_schema or {}, name=_RESPONSE_SCHEMA_NAME)
            call_kwargs = self._call_kwargs(request, messages)
            call_kwargs["response_format"] = _response_format(schema)
            self._annotate(span, operation, call_kwargs)

            try:
                response = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]
            except Exception as exc:
                raise GenerationError(operation, str(exc)) from exc

            result = self.transpiler.from_provider(response)
            record_usage(span, result.usage)

            obj: Any = None
            data = try_extract_json(result.text)
            if data is not None:
                try:
                    schema.validate_python(data, strict=True)
                except ValidationError as exc:
                    raise GenerationError(operation, str(exc)) from exc
                obj = data

            return self.converter.to_object_response(
                GenerateObjectResult(
                    object=obj,
                    usage=result.usage,
                    finish_reason=result.finish_reason,
                )
            )

    # -- streaming ---------------------------------------------------------

    async def generate_content_stream(
        self, request: GenerateContentRequest
    ) -> AsyncIterator[GenerateContentResponse]:
        """Stream response envelopes, one per backend event.

        Text envelopes carry only the new fragment. The structured-output
        path streams its JSON text deltas and nothing else.
        """
        messages = self.converter.to_messages(request)
        structured = request.config.wants_json
        operation = "stream object" if structured else "stream text"

        call_kwargs = self._call_kwargs(request, messages)
        call_kwargs["stream"] = True
        if self.config.include_usage:
            call_kwargs["stream_options"] = {"include_usage": True}
        if structured:
            schema = compile_schema(request.config.response_schema or {}, name=_RESPONSE_SCHEMA_NAME)
            call_kwargs["response_format"] = _response_format(schema)
        else:
            self._add_tools(request, call_kwargs)

        span = _tracer.start_span("generator.generate_content_stream")
        try:
            self._annotate(span, operation, call_kwargs)
            try:
                stream = await litellm.acompletion(**call_kwargs)  # pyright: ignore[reportUnknownMemberType]
            except Exception as exc:
                raise GenerationError(operation, str(exc)) from exc

            events = _observe(iter_stream_events(_guarded(stream, operation)), span)
            if structured:
                async for event in events:
                    if isinstance(event, TextDeltaEvent):
                        yield self.converter.to_stream_text_response(event.text)
            else:
                async for envelope in translate_stream(events, self.converter):
                    yield envelope
        finally:
            span.end()

    # -- other capabilities ------------------------------------------------

    async def count_tokens(self, request: GenerateContentRequest) -> CountTokensResponse:
        """Estimate the prompt size of *request* without calling the backend."""
        messages = self.converter.to_messages(request)
        return CountTokensResponse(total_tokens=self.counter.count_messages(messages))

    async def embed_content(self, request: Any) -> Any:
        raise UnsupportedCapabilityError("embed content")

    # -- helpers -----------------------------------------------------------

    def _call_kwargs(
        self, request: GenerateContentRequest, messages: list[ChatMessage]
    ) -> dict[str, Any]:
        cfg = request.config
        call_kwargs: dict[str, Any] = {
            "model": self.config.model,
            "custom_llm_provider": "openai",
            "messages": self.transpiler.to_provider(messages),
            "temperature": cfg.temperature if cfg.temperature is not None else self.config.temperature,
            "max_tokens": cfg.max_output_tokens or self.config.max_tokens,
            "top_p": cfg.top_p if cfg.top_p is not None else self.config.top_p,
        }
        if self.config.api_key:
            call_kwargs["api_key"] = self.config.api_key
        if self.config.base_url:
            call_kwargs["api_base"] = self.config.base_url
        return call_kwargs

    def _add_tools(self, request: GenerateContentRequest, call_kwargs: dict[str, Any]) -> None:
        tools = compile_tools(request.config.tools)
        if tools:
            call_kwargs["tools"] = self.transpiler.tools_to_provider(tools)

    def _annotate(self, span: Any, operation: str, call_kwargs: dict[str, Any]) -> None:
        span.set_attribute(ATTR_MODEL, self.config.model)
        span.set_attribute(ATTR_OPERATION, operation)
        span.set_attribute(ATTR_STRUCTURED, "response_format" in call_kwargs)
        span.set_attribute(ATTR_MESSAGE_COUNT, len(call_kwargs["messages"]))
        span.set_attribute(ATTR_TOOL_COUNT, len(call_kwargs.get("tools", [])))


def _response_format(schema: TypeAdapter[Any]) -> dict[str, Any]:
    return {
        "type": "json_schema",
        "json_schema": {
            "name": _RESPONSE_SCHEMA_NAME,
            "schema": schema.json_schema(),
            "strict": False,
        },
    }


async def _guarded(stream: AsyncIterable[Any], operation: str) -> AsyncIterator[Any]:
    """Re-raise failures from inside the backend stream as ``GenerationError``."""
    try:
        async for chunk in stream:
            yield chunk
    except Exception as exc:
        raise GenerationError(operation, str(exc)) from exc


async def _observe(events: AsyncIterable[StreamEvent], span: Any) -> AsyncIterator[StreamEvent]:
    async for event in events:
        if isinstance(event, FinishEvent):
            record_usage(span, event.usage)
            if event.finish_reason:
                span.set_attribute(ATTR_FINISH_REASON, event.finish_reason)
        yield event
