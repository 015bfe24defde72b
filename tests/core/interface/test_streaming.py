"""Tests for stream decoding, the tool-call accumulator and envelope translation."""

from collections.abc import AsyncIterator
from typing import Any

import pytest

from termichat.core.interface.converter import ModelConverter
from termichat.core.interface.errors import ToolArgumentsError
from termichat.core.interface.streaming import (
    FinishEvent,
    StreamEvent,
    TextDeltaEvent,
    ToolCallAccumulator,
    ToolCallEvent,
    iter_stream_events,
    translate_stream,
)


async def _chunks(*items: dict[str, Any]) -> AsyncIterator[dict[str, Any]]:
    for item in items:
        yield item


def _delta(
    content: str | None = None,
    tool_calls: list[dict[str, Any]] | None = None,
    finish_reason: str | None = None,
) -> dict[str, Any]:
    delta: dict[str, Any] = {}
    if content is not None:
        delta["content"] = content
    if tool_calls is not None:
        delta["tool_calls"] = tool_calls
    return {"choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}]}


def _fragment(index: int, *, name: str | None = None, arguments: str = "", call_id: str | None = None) -> dict[str, Any]:
    function: dict[str, Any] = {"arguments": arguments}
    if name is not None:
        function["name"] = name
    fragment: dict[str, Any] = {"index": index, "function": function}
    if call_id is not None:
        fragment["id"] = call_id
    return fragment


async def _collect(events: AsyncIterator[StreamEvent]) -> list[StreamEvent]:
    return [event async for event in events]


class TestToolCallAccumulator:
    def test_concatenates_arguments(self) -> None:
        acc = ToolCallAccumulator()
        acc.add(0, name="get_weather", arguments='{"a":')
        acc.add(0, arguments="1}", call_id="call_x")
        data = acc.get(0)
        assert data is not None
        assert data.name == "get_weather"
        assert data.arguments == '{"a":1}'
        assert data.call_id == "call_x"

    def test_complete_removes_slot(self) -> None:
        acc = ToolCallAccumulator()
        acc.add(3, name="f")
        assert 3 in acc
        assert acc.complete(3).name == "f"
        assert 3 not in acc
        assert len(acc) == 0

    def test_complete_all_in_slot_order(self) -> None:
        acc = ToolCallAccumulator()
        acc.add(2, name="b")
        acc.add(0, name="a")
        assert [(i, d.name) for i, d in acc.complete_all()] == [(0, "a"), (2, "b")]
        assert len(acc) == 0

    def test_get_missing(self) -> None:
        assert ToolCallAccumulator().get(0) is None


class TestIterStreamEvents:
    async def test_text_deltas_pass_through(self) -> None:
        events = await _collect(
            iter_stream_events(_chunks(_delta("Hel"), _delta("lo"), _delta(finish_reason="stop")))
        )
        assert events == [
            TextDeltaEvent(text="Hel"),
            TextDeltaEvent(text="lo"),
            FinishEvent(finish_reason="stop"),
        ]

    async def test_tool_call_split_across_chunks(self) -> None:
        events = await _collect(
            iter_stream_events(
                _chunks(
                    _delta(tool_calls=[_fragment(0, name="f", arguments='{"a":', call_id="call_1")]),
                    _delta(tool_calls=[_fragment(0, arguments="1}")]),
                    _delta(finish_reason="tool_calls"),
                )
            )
        )
        assert events == [
            ToolCallEvent(index=0, name="f", arguments='{"a":1}', call_id="call_1"),
            FinishEvent(finish_reason="tool_calls"),
        ]

    async def test_name_repeated_on_every_delta(self) -> None:
        events = await _collect(
            iter_stream_events(
                _chunks(
                    _delta(tool_calls=[_fragment(0, name="get_weather", arguments='{"a":')]),
                    _delta(tool_calls=[_fragment(0, name="get_weather", arguments="1}")]),
                    _delta(finish_reason="tool_calls"),
                )
            )
        )
        call = events[0]
        assert isinstance(call, ToolCallEvent)
        assert call.name == "get_weather"
        assert call.arguments == '{"a":1}'

    async def test_interleaved_slots(self) -> None:
        events = await _collect(
            iter_stream_events(
                _chunks(
                    _delta(tool_calls=[_fragment(0, name="a", arguments='{"x":')]),
                    _delta(tool_calls=[_fragment(1, name="b", arguments="{}")]),
                    _delta(tool_calls=[_fragment(0, arguments="2}")]),
                    _delta(finish_reason="tool_calls"),
                )
            )
        )
        calls = [e for e in events if isinstance(e, ToolCallEvent)]
        assert [(c.name, c.arguments) for c in calls] == [("a", '{"x":2}'), ("b", "{}")]

    async def test_unfinished_calls_drained_at_end(self) -> None:
        events = await _collect(
            iter_stream_events(_chunks(_delta(tool_calls=[_fragment(0, name="f", arguments="{}")])))
        )
        assert isinstance(events[0], ToolCallEvent)
        assert events[-1] == FinishEvent(finish_reason=None)

    async def test_usage_chunk_without_choices(self) -> None:
        usage = {"prompt_tokens": 4, "completion_tokens": 2, "total_tokens": 6}
        events = await _collect(
            iter_stream_events(
                _chunks(_delta("hi"), _delta(finish_reason="stop"), {"choices": [], "usage": usage})
            )
        )
        finish = events[-1]
        assert isinstance(finish, FinishEvent)
        assert finish.usage is not None
        assert finish.usage.total_tokens == 6

    async def test_empty_stream_still_finishes(self) -> None:
        assert await _collect(iter_stream_events(_chunks())) == [FinishEvent()]


class TestTranslateStream:
    async def test_envelopes(self) -> None:
        converter = ModelConverter()
        usage = {"prompt_tokens": 1, "completion_tokens": 1, "total_tokens": 2}
        envelopes = [
            env
            async for env in translate_stream(
                iter_stream_events(
                    _chunks(
                        _delta("Hi"),
                        _delta(tool_calls=[_fragment(0, name="f", arguments='{"a":')]),
                        _delta(tool_calls=[_fragment(0, arguments="1}")]),
                        _delta(finish_reason="tool_calls"),
                        {"choices": [], "usage": usage},
                    )
                ),
                converter,
            )
        ]
        assert len(envelopes) == 4
        assert envelopes[0].text == "Hi"
        assert envelopes[1].function_calls[0].name == "f"
        assert envelopes[1].function_calls[0].args == {"a": 1}
        assert envelopes[2].parts == []
        assert envelopes[2].candidates[0].finish_reason == "STOP"
        assert envelopes[3].usage_metadata is not None
        assert envelopes[3].usage_metadata.total_token_count == 2

    async def test_text_not_accumulated(self) -> None:
        envelopes = [
            env
            async for env in translate_stream(
                iter_stream_events(_chunks(_delta("a"), _delta("b"))),
                ModelConverter(),
            )
        ]
        assert [e.text for e in envelopes[:2]] == ["a", "b"]

    async def test_no_usage_no_usage_envelope(self) -> None:
        envelopes = [
            env
            async for env in translate_stream(
                iter_stream_events(_chunks(_delta(finish_reason="stop"))),
                ModelConverter(),
            )
        ]
        assert len(envelopes) == 1

    async def test_malformed_arguments_raise(self) -> None:
        events = iter_stream_events(
            _chunks(
                _delta(tool_calls=[_fragment(0, name="f", arguments='{"a":')]),
                _delta(finish_reason="tool_calls"),
            )
        )
        with pytest.raises(ToolArgumentsError):
            async for _ in translate_stream(events, ModelConverter()):
                pass
