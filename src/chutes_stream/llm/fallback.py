"""Recover an answer when Kimi K2.5 streams reasoning and nothing else.

The tee variant of Kimi K2.5 sometimes ends a streamed response after its
reasoning, with no answer text and no tool calls.  Re-issuing the same
request without streaming usually returns the missing output.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncGenerator

from chutes_stream.types import NormalizedEvent, TextEvent, ToolCallEnd, ToolCallPartial

from .models import is_kimi_k2_5_tee
from .reasoning import ReasoningStrategy
from .stream import StreamReassembler
from .tool_ids import resolve_tool_call_id

_logger = logging.getLogger(__name__)


def needs_reasoning_only_fallback(
    model_id: str,
    reassembler: StreamReassembler,
) -> bool:
    return (
        reassembler.strategy is ReasoningStrategy.NATIVE
        and is_kimi_k2_5_tee(model_id)
        and reassembler.saw_reasoning
        and not reassembler.saw_text
        and not reassembler.saw_tool_calls
    )


def response_message(response: Any) -> dict[str, Any] | None:
    """Return ``choices[0].message`` of a completion, or ``None`` if malformed."""
    if not isinstance(response, dict):
        return None
    choices = response.get("choices")
    choice = choices[0] if isinstance(choices, list) and choices else None
    if not isinstance(choice, dict):
        return None
    message = choice.get("message")
    return message if isinstance(message, dict) else None


def events_from_response(response: Any) -> list[NormalizedEvent]:
    """Turn a fully materialized completion into normalized events.

    Each tool call becomes a ``ToolCallPartial`` immediately followed by
    its ``ToolCallEnd``.
    """
    message = response_message(response)
    if message is None:
        return []

    events: list[NormalizedEvent] = []
    content = message.get("content")
    if isinstance(content, str) and content.strip():
        events.append(TextEvent(text=content))

    tool_calls = message.get("tool_calls")
    if isinstance(tool_calls, list):
        ids_by_index: dict[int, str] = {}
        for index, tool_call in enumerate(tool_calls):
            if not isinstance(tool_call, dict):
                continue
            tool_call_id = resolve_tool_call_id(
                {"id": tool_call.get("id"), "index": index}, ids_by_index,
            )
            if tool_call.get("type", "function") != "function":
                continue
            func = tool_call.get("function")
            if not isinstance(func, dict):
                func = {}
            events.append(
                ToolCallPartial(
                    index=index,
                    id=tool_call_id,
                    name=func.get("name"),
                    arguments=func.get("arguments"),
                )
            )
            events.append(ToolCallEnd(id=tool_call_id))
    return events


async def emit_reasoning_only_fallback(
    transport: Any,
    payload: dict[str, Any],
    timeout: float | None = None,
) -> AsyncGenerator[NormalizedEvent, None]:
    """Issue one non-streaming request and yield whatever it recovers."""
    _logger.debug("Reasoning-only response from %s, retrying without streaming", payload.get("model"))
    response = await transport.completion(payload, timeout=timeout)
    events = events_from_response(response)
    if not events:
        _logger.debug("Non-streaming retry returned no content or tool calls")
    for event in events:
        yield event
