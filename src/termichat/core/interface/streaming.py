"""Streaming: decode chat-completion chunks into events and events into envelopes.

Chat backends stream tool calls as argument fragments keyed by a slot index.
``ToolCallAccumulator`` reassembles them; a slot's argument text is handed on
only once the stream says the call is complete (a finish reason arrives or
the stream ends). Text deltas pass straight through.

Both stages are single-consumer async generators: nothing is buffered beyond
the current chunk and the accumulator, and a consumer that stops pulling
simply abandons the stream.
"""

import logging
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass, field

from termichat.core.interface.converter import ModelConverter
from termichat.core.interface.models import GenerateContentResponse, TokenUsage
from termichat.core.interface.transpilers.openai import read_field, read_usage

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tool-call accumulator
# ---------------------------------------------------------------------------


@dataclass
class ToolCallData:
    """Partial state for one streamed tool call."""

    name: str = ""
    arguments: str = ""
    call_id: str | None = None


class ToolCallAccumulator:
    """Reassembles streamed tool calls by slot index. One per stream."""

    def __init__(self) -> None:
        self._slots: dict[int, ToolCallData] = {}

    def add(
        self,
        index: int,
        *,
        name: str | None = None,
        arguments: str | None = None,
        call_id: str | None = None,
    ) -> None:
        """Merge one fragment into slot *index*.

        Argument text is appended. The name and id are replaced, since some
        backends repeat them on every delta.
        """
        slot = self._slots.setdefault(index, ToolCallData())
        if name:
            slot.name = name
        if arguments:
            slot.arguments += arguments
        if call_id:
            slot.call_id = call_id

    def get(self, index: int) -> ToolCallData | None:
        return self._slots.get(index)

    def complete(self, index: int) -> ToolCallData:
        """Remove and return the finished call in slot *index*."""
        return self._slots.pop(index)

    def complete_all(self) -> list[tuple[int, ToolCallData]]:
        """Remove and return every pending call, in slot order."""
        return [(index, self.complete(index)) for index in sorted(self._slots)]

    def __len__(self) -> int:
        return len(self._slots)

    def __contains__(self, index: object) -> bool:
        return index in self._slots


# ---------------------------------------------------------------------------
# Stream events
# ---------------------------------------------------------------------------


@dataclass
class TextDeltaEvent:
    text: str
    type: str = "text-delta"


@dataclass
class ToolCallEvent:
    index: int
    name: str
    arguments: str
    call_id: str | None = None
    type: str = "tool-call"


@dataclass
class FinishEvent:
    finish_reason: str | None = None
    usage: TokenUsage | None = None
    type: str = "finish"


StreamEvent = TextDeltaEvent | ToolCallEvent | FinishEvent


@dataclass
class _StreamState:
    accumulator: ToolCallAccumulator = field(default_factory=ToolCallAccumulator)
    finish_reason: str | None = None
    usage: TokenUsage | None = None


def _drain(state: _StreamState) -> list[ToolCallEvent]:
    return [
        ToolCallEvent(index=index, name=data.name, arguments=data.arguments, call_id=data.call_id)
        for index, data in state.accumulator.complete_all()
    ]


async def iter_stream_events(chunks: AsyncIterable[object]) -> AsyncIterator[StreamEvent]:
    """Decode raw chat-completion stream chunks into typed events.

    Yields text deltas as they arrive, one ``ToolCallEvent`` per completed
    slot, and exactly one trailing ``FinishEvent`` carrying the last usage
    block seen (if any).
    """
    state = _StreamState()

    async for chunk in chunks:
        usage = read_usage(chunk)
        if usage is not None:
            state.usage = usage

        choices = read_field(chunk, "choices") or []
        if not choices:
            continue
        choice = choices[0]
        delta = read_field(choice, "delta")

        text = read_field(delta, "content")
        if text:
            yield TextDeltaEvent(text=text)

        for fragment in read_field(delta, "tool_calls") or []:
            function = read_field(fragment, "function")
            index = read_field(fragment, "index")
            state.accumulator.add(
                index if isinstance(index, int) else 0,
                name=read_field(function, "name"),
                arguments=read_field(function, "arguments"),
                call_id=read_field(fragment, "id"),
            )

        finish_reason = read_field(choice, "finish_reason")
        if finish_reason:
            state.finish_reason = finish_reason
            for event in _drain(state):
                yield event

    if len(state.accumulator):
        logger.debug("Stream ended with %d unfinished tool call(s)", len(state.accumulator))
        for event in _drain(state):
            yield event

    yield FinishEvent(finish_reason=state.finish_reason, usage=state.usage)


async def translate_stream(
    events: AsyncIterable[StreamEvent],
    converter: ModelConverter,
) -> AsyncIterator[GenerateContentResponse]:
    """Map each stream event to its response envelope(s).

    A finish event yields an empty-parts envelope and, when usage is known, a
    trailing usage-only envelope.
    """
    async for event in events:
        if isinstance(event, TextDeltaEvent):
            yield converter.to_stream_text_response(event.text)
        elif isinstance(event, ToolCallEvent):
            yield converter.to_stream_tool_call_response(event.name, event.arguments)
        elif isinstance(event, FinishEvent):
            yield converter.to_stream_end_response(event.finish_reason)
            if event.usage is not None:
                yield converter.to_stream_usage_response(event.usage)
