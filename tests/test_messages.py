"""Tests for message conversion."""

from __future__ import annotations

import json

from chutes_stream.llm.messages import convert_to_openai_messages, convert_to_r1_format


class TestConvertToOpenAI:
    def test_plain_strings(self):
        msgs = [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "yo"}]
        assert convert_to_openai_messages(msgs) == msgs

    def test_assistant_tool_use(self):
        result = convert_to_openai_messages([{
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Reading."},
                {"type": "tool_use", "id": "t1", "name": "read_file", "input": {"path": "a.py"}},
            ],
        }])
        assert len(result) == 1
        msg = result[0]
        assert msg["content"] == "Reading."
        call = msg["tool_calls"][0]
        assert call["id"] == "t1"
        assert call["function"]["name"] == "read_file"
        assert json.loads(call["function"]["arguments"]) == {"path": "a.py"}

    def test_tool_result_becomes_tool_message(self):
        result = convert_to_openai_messages([{
            "role": "user",
            "content": [
                {"type": "tool_result", "tool_use_id": "t1", "content": "file body"},
                {"type": "text", "text": "continue"},
            ],
        }])
        assert result[0] == {"role": "tool", "tool_call_id": "t1", "content": "file body"}
        assert result[1] == {"role": "user", "content": [{"type": "text", "text": "continue"}]}

    def test_image_block(self):
        result = convert_to_openai_messages([{
            "role": "user",
            "content": [{"type": "image", "source": {"type": "base64", "media_type": "image/jpeg", "data": "AAA"}}],
        }])
        assert result[0]["content"][0]["image_url"]["url"] == "data:image/jpeg;base64,AAA"


class TestConvertToR1:
    def test_merges_consecutive_roles(self):
        result = convert_to_r1_format([
            {"role": "user", "content": "system prompt"},
            {"role": "user", "content": "question"},
            {"role": "assistant", "content": "answer"},
        ])
        assert result == [
            {"role": "user", "content": "system prompt\nquestion"},
            {"role": "assistant", "content": "answer"},
        ]

    def test_keeps_image_parts(self):
        result = convert_to_r1_format([{
            "role": "user",
            "content": [
                {"type": "text", "text": "look"},
                {"type": "image", "source": {"type": "url", "url": "http://x/img.png"}},
            ],
        }])
        assert result[0]["content"][1] == {"type": "image_url", "image_url": {"url": "http://x/img.png"}}
