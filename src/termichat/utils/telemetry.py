"""Tracing hooks for the content generator.

Everything here goes through the OpenTelemetry *API* only, which hands out
no-op tracers until an SDK provider is installed. Install one with
:func:`configure_telemetry` (needs ``pip install termichat[otel]``) or let
the host application register its own.

    _tracer = get_tracer(__name__)
    with _tracer.start_as_current_span("generator.generate_content") as span:
        span.set_attribute(ATTR_MODEL, config.model)
"""

from __future__ import annotations

from typing import Any

from opentelemetry import trace

ATTR_MODEL = "termichat.model"
ATTR_OPERATION = "termichat.operation"
ATTR_STRUCTURED = "termichat.structured_output"
ATTR_TOOL_COUNT = "termichat.tools.count"
ATTR_MESSAGE_COUNT = "termichat.messages.count"
ATTR_TOKENS_PROMPT = "termichat.tokens.prompt"
ATTR_TOKENS_COMPLETION = "termichat.tokens.completion"
ATTR_TOKENS_TOTAL = "termichat.tokens.total"
ATTR_FINISH_REASON = "termichat.finish_reason"

_DEFAULT_TRACER = "termichat"
_EXTRA_HINT = "Install the otel extra: pip install termichat[otel]"


def get_tracer(name: str | None = None) -> trace.Tracer:
    return trace.get_tracer(name or _DEFAULT_TRACER)


def record_usage(span: Any, usage: Any) -> None:
    """Put the token counts of a ``TokenUsage`` on *span*; ``None`` is a no-op."""
    if usage is None:
        return
    for key, value in (
        (ATTR_TOKENS_PROMPT, usage.prompt_tokens),
        (ATTR_TOKENS_COMPLETION, usage.completion_tokens),
        (ATTR_TOKENS_TOTAL, usage.total_tokens),
    ):
        span.set_attribute(key, value)


def configure_telemetry(
    *,
    service_name: str = "termichat",
    export_to_console: bool = True,
    otlp_endpoint: str | None = None,
) -> None:
    """Install a global SDK tracer provider.

    Console export writes finished spans to stdout as they end. OTLP export
    batches spans to a gRPC collector at *otlp_endpoint*. The global provider
    is only replaced once every requested exporter could be built, so a
    missing optional package leaves tracing untouched.
    """
    try:
        from opentelemetry.sdk.resources import Resource  # pyright: ignore[reportMissingImports]
        from opentelemetry.sdk.trace import TracerProvider  # pyright: ignore[reportMissingImports]
    except ImportError as exc:
        raise ImportError(f"configure_telemetry() needs opentelemetry-sdk. {_EXTRA_HINT}") from exc

    processors = _span_processors(export_to_console, otlp_endpoint)

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))  # pyright: ignore[reportUnknownVariableType]
    for processor in processors:
        provider.add_span_processor(processor)  # pyright: ignore[reportUnknownMemberType]
    trace.set_tracer_provider(provider)  # pyright: ignore[reportUnknownArgumentType]


def _span_processors(console: bool, otlp_endpoint: str | None) -> list[Any]:
    from opentelemetry.sdk.trace.export import (  # pyright: ignore[reportMissingImports]
        BatchSpanProcessor,
        ConsoleSpanExporter,
        SimpleSpanProcessor,
    )

    processors: list[Any] = []
    if console:
        processors.append(SimpleSpanProcessor(ConsoleSpanExporter()))
    if otlp_endpoint:
        try:
            from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # pyright: ignore[reportMissingImports]
                OTLPSpanExporter,
            )
        except ImportError as exc:
            raise ImportError(
                f"OTLP export needs opentelemetry-exporter-otlp. {_EXTRA_HINT}"
            ) from exc
        processors.append(BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint)))
    return processors
