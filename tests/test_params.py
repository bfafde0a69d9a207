"""Tests for completion request construction."""

from __future__ import annotations

import pytest

from chutes_stream.config import ProviderSpec
from chutes_stream.llm.params import CompletionParamsBuilder, resolve_tool_choice
from chutes_stream.types import CreateMessageMetadata, ModelInfo, ResolvedModel

KIMI = "moonshotai/kimi-k2.5-tee"
TOOLS = [{"type": "function", "function": {"name": "ls", "parameters": {}}}]


def _builder(model_id: str = "Qwen/Qwen3-32B", **settings) -> CompletionParamsBuilder:
    info = ModelInfo(max_tokens=8000, context_window=20000, temperature=0.5)
    model = ResolvedModel(model_id, info)
    return CompletionParamsBuilder(ProviderSpec(**settings), lambda: model)


class TestResolveToolChoice:
    def test_passes_through_with_tools(self):
        meta = CreateMessageMetadata(tools=TOOLS, tool_choice="auto")
        assert resolve_tool_choice("any", meta) == "auto"
        assert resolve_tool_choice(KIMI, meta) == "auto"

    def test_never_forces_required(self):
        meta = CreateMessageMetadata(tools=TOOLS)
        assert resolve_tool_choice(KIMI, meta) is None

    def test_dropped_without_tools(self):
        assert resolve_tool_choice("any", CreateMessageMetadata(tool_choice="required")) is None
        assert resolve_tool_choice("any", None) is None


class TestStreamingParams:
    def test_shape(self):
        payload = _builder().streaming("sys", [{"role": "user", "content": "hi"}]).to_payload()
        assert payload["model"] == "Qwen/Qwen3-32B"
        assert payload["stream"] is True
        assert payload["stream_options"] == {"include_usage": True}
        assert payload["max_tokens"] == 4000
        assert payload["temperature"] == 0.5
        assert payload["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]
        assert "tools" not in payload
        assert "tool_choice" not in payload

    def test_tools_and_choice(self):
        meta = CreateMessageMetadata(tools=TOOLS, tool_choice={"type": "function", "function": {"name": "ls"}})
        payload = _builder().streaming("sys", [], meta).to_payload()
        assert payload["tools"] == TOOLS
        assert payload["tool_choice"]["function"]["name"] == "ls"

    def test_temperature_override(self):
        payload = _builder(model_temperature=0.1).streaming("s", []).to_payload()
        assert payload["temperature"] == 0.1

    def test_no_temperature_when_unsupported(self):
        model = ResolvedModel("m", ModelInfo(supports_temperature=False, temperature=0.5))
        builder = CompletionParamsBuilder(ProviderSpec(model_temperature=0.9), lambda: model)
        assert "temperature" not in builder.streaming("s", []).to_payload()

    def test_deepseek_r1_collapses_messages(self):
        payload = _builder("deepseek-ai/DeepSeek-R1").streaming(
            "sys", [{"role": "user", "content": "q"}],
        ).to_payload()
        assert payload["messages"] == [{"role": "user", "content": "sys\nq"}]


class TestNonStreamingParams:
    @pytest.mark.parametrize("model_id", ["Qwen/Qwen3-32B", "deepseek-ai/DeepSeek-R1"])
    def test_shape(self, model_id: str):
        meta = CreateMessageMetadata(tools=TOOLS, tool_choice="auto")
        payload = _builder(model_id).non_streaming("sys", [{"role": "user", "content": "q"}], meta).to_payload()
        assert "stream" not in payload
        assert "stream_options" not in payload
        assert payload["messages"][0] == {"role": "system", "content": "sys"}
        assert payload["tool_choice"] == "auto"

    def test_single_prompt(self):
        payload = _builder(model_max_tokens=99).single_prompt("hello").to_payload()
        assert payload["messages"] == [{"role": "user", "content": "hello"}]
        assert payload["max_tokens"] == 99
        assert "tools" not in payload


class TestExtraParams:
    def test_merged_into_every_request(self):
        builder = _builder(extra_params={"top_p": 0.9, "seed": 7})
        for request in (
            builder.streaming("s", []),
            builder.non_streaming("s", []),
            builder.single_prompt("q"),
        ):
            payload = request.to_payload()
            assert payload["top_p"] == 0.9
            assert payload["seed"] == 7

    def test_not_shared_between_requests(self):
        settings_extra = {"top_p": 0.9}
        builder = _builder(extra_params=settings_extra)
        builder.streaming("s", []).extra["top_p"] = 0.1
        assert settings_extra == {"top_p": 0.9}
