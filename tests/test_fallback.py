"""Tests for the reasoning-only fallback."""

from __future__ import annotations

import pytest

from chutes_stream.llm.fallback import (
    emit_reasoning_only_fallback,
    events_from_response,
    needs_reasoning_only_fallback,
)
from chutes_stream.llm.reasoning import ReasoningStrategy
from chutes_stream.llm.stream import StreamReassembler
from chutes_stream.types import TextEvent, ToolCallEnd, ToolCallPartial

from _chunks import FakeTransport, chunk, tool_fragment

KIMI = "moonshotai/kimi-k2.5-tee"


def _reassembled(strategy: ReasoningStrategy, *chunks: dict) -> StreamReassembler:
    r = StreamReassembler(strategy)
    for c in chunks:
        r.feed(c)
    r.finish()
    return r


class TestNeedsFallback:
    def test_reasoning_only_triggers(self):
        r = _reassembled(ReasoningStrategy.NATIVE, chunk(reasoning="hmm"))
        assert needs_reasoning_only_fallback(KIMI, r)

    def test_text_present(self):
        r = _reassembled(ReasoningStrategy.NATIVE, chunk(reasoning="hmm"), chunk(content="hi"))
        assert not needs_reasoning_only_fallback(KIMI, r)

    def test_tool_call_present(self):
        r = _reassembled(
            ReasoningStrategy.NATIVE,
            chunk(reasoning="hmm"),
            chunk(tool_calls=[tool_fragment(0, id="a")]),
        )
        assert not needs_reasoning_only_fallback(KIMI, r)

    def test_no_reasoning(self):
        r = _reassembled(ReasoningStrategy.NATIVE, chunk(usage={"prompt_tokens": 1}))
        assert not needs_reasoning_only_fallback(KIMI, r)

    def test_other_model(self):
        r = _reassembled(ReasoningStrategy.NATIVE, chunk(reasoning="hmm"))
        assert not needs_reasoning_only_fallback("moonshotai/Kimi-K2-Instruct", r)

    def test_inline_strategy(self):
        r = _reassembled(ReasoningStrategy.INLINE, chunk(content="<think>hmm</think>"))
        assert not needs_reasoning_only_fallback(KIMI, r)


class TestEventsFromResponse:
    def test_content_and_tool_calls(self):
        response = {"choices": [{"message": {
            "content": "Let me check.",
            "tool_calls": [
                {"id": "call_x", "type": "function", "function": {"name": "ls", "arguments": "{}"}},
                {"type": "function", "function": {"name": "cat", "arguments": '{"p": 1}'}},
            ],
        }}]}
        assert events_from_response(response) == [
            TextEvent(text="Let me check."),
            ToolCallPartial(index=0, id="call_x", name="ls", arguments="{}"),
            ToolCallEnd(id="call_x"),
            ToolCallPartial(index=1, id="chutes_tool_call_1", name="cat", arguments='{"p": 1}'),
            ToolCallEnd(id="chutes_tool_call_1"),
        ]

    def test_blank_content_skipped(self):
        response = {"choices": [{"message": {"content": "  \n"}}]}
        assert events_from_response(response) == []

    def test_non_function_tool_skipped(self):
        response = {"choices": [{"message": {"content": None, "tool_calls": [
            {"id": "c", "type": "custom", "custom": {}},
        ]}}]}
        assert events_from_response(response) == []

    def test_no_message(self):
        assert events_from_response({}) == []
        assert events_from_response({"choices": [{}]}) == []
        assert events_from_response({"choices": ["x"]}) == []
        assert events_from_response({"choices": "x"}) == []
        assert events_from_response([]) == []

    def test_malformed_tool_calls_skipped(self):
        response = {"choices": [{"message": {"content": None, "tool_calls": [
            None,
            {"id": "c", "function": "oops"},
        ]}}]}
        assert events_from_response(response) == [
            ToolCallPartial(index=1, id="c", name=None, arguments=None),
            ToolCallEnd(id="c"),
        ]


class TestEmitFallback:
    @pytest.mark.asyncio
    async def test_single_request(self):
        transport = FakeTransport(response={"choices": [{"message": {"content": "Answer"}}]})
        events = [
            e async for e in emit_reasoning_only_fallback(transport, {"model": KIMI}, timeout=5)
        ]
        assert events == [TextEvent(text="Answer")]
        assert transport.completion_calls == [({"model": KIMI}, 5)]
