"""Per-response state machine turning streamed chunks into normalized events.

States:
  streaming - consuming chunks
  draining  - upstream exhausted, flushing classifier residue
  done      - nothing more will be emitted
"""

from __future__ import annotations

import enum
import logging
from typing import Any, AsyncGenerator, AsyncIterable

from chutes_stream.types import (
    NormalizedEvent,
    ReasoningEvent,
    TextEvent,
    ToolCallEnd,
    ToolCallPartial,
    UsageEvent,
)

from .reasoning import InlineThinkClassifier, ReasoningStrategy, extract_reasoning_text
from .tool_ids import resolve_tool_call_id

_logger = logging.getLogger(__name__)

FINISH_TOOL_CALLS = "tool_calls"


class StreamState(enum.Enum):
    STREAMING = "streaming"
    DRAINING = "draining"
    DONE = "done"


class StreamReassembler:
    """Reassembles one upstream response.

    Owns the per-response tool-call id registry and the set of open tool
    call ids; neither is shared with any other response.
    """

    def __init__(self, strategy: ReasoningStrategy) -> None:
        self.strategy = strategy
        self.state = StreamState.STREAMING
        self._classifier = (
            InlineThinkClassifier() if strategy is ReasoningStrategy.INLINE else None
        )
        self._ids_by_index: dict[int, str] = {}
        # Insertion-ordered set of open tool call ids
        self._active: dict[str, None] = {}
        self.saw_text = False
        self.saw_reasoning = False
        self.saw_tool_calls = False

    @property
    def active_tool_call_ids(self) -> list[str]:
        return list(self._active)

    def feed(self, chunk: dict[str, Any]) -> list[NormalizedEvent]:
        """Process one chunk and return the events it produces, in order."""
        if self.state is not StreamState.STREAMING:
            raise RuntimeError(f"Cannot feed a stream in state {self.state.value}")

        choices = chunk.get("choices")
        choice = choices[0] if isinstance(choices, list) and choices else None
        if not isinstance(choice, dict):
            choice = {}
        delta = choice.get("delta")
        if not isinstance(delta, dict):
            delta = {}

        events: list[NormalizedEvent] = []

        content = delta.get("content")
        if isinstance(content, str) and content:
            if self._classifier is not None:
                events.extend(self._track(self._classifier.feed(content)))
            else:
                self.saw_text = True
                events.append(TextEvent(text=content))

        if self.strategy is ReasoningStrategy.NATIVE:
            reasoning = extract_reasoning_text(delta)
            if reasoning:
                self.saw_reasoning = True
                events.append(ReasoningEvent(text=reasoning))

        tool_calls = delta.get("tool_calls")
        if isinstance(tool_calls, list):
            for fragment in tool_calls:
                if isinstance(fragment, dict):
                    events.append(self._tool_fragment(fragment))

        if choice.get("finish_reason") == FINISH_TOOL_CALLS:
            events.extend(self._close_active())

        usage = chunk.get("usage")
        if isinstance(usage, dict) and usage:
            events.append(
                UsageEvent(
                    input_tokens=usage.get("prompt_tokens") or 0,
                    output_tokens=usage.get("completion_tokens") or 0,
                )
            )

        return events

    def finish(self) -> list[NormalizedEvent]:
        """Flush residue once the upstream stream is exhausted."""
        self.state = StreamState.DRAINING
        events: list[NormalizedEvent] = []

        if self._classifier is not None:
            events.extend(self._track(self._classifier.finish()))

        if self._active:
            _logger.debug(
                "Stream ended without a tool_calls finish marker; closing %d tool call(s)",
                len(self._active),
            )
            events.extend(self._close_active())

        self.state = StreamState.DONE
        return events

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _tool_fragment(self, fragment: dict[str, Any]) -> ToolCallPartial:
        self.saw_tool_calls = True
        tool_call_id = resolve_tool_call_id(fragment, self._ids_by_index)
        self._active[tool_call_id] = None
        func = fragment.get("function")
        if not isinstance(func, dict):
            func = {}
        index = fragment.get("index")
        return ToolCallPartial(
            index=index if index is not None else 0,
            id=tool_call_id,
            name=func.get("name"),
            arguments=func.get("arguments"),
        )

    def _close_active(self) -> list[NormalizedEvent]:
        ends: list[NormalizedEvent] = [ToolCallEnd(id=i) for i in self._active]
        self._active.clear()
        return ends

    def _track(
        self,
        events: list[TextEvent | ReasoningEvent],
    ) -> list[TextEvent | ReasoningEvent]:
        for event in events:
            if isinstance(event, ReasoningEvent):
                self.saw_reasoning = True
            else:
                self.saw_text = True
        return events


async def reassemble(
    chunks: AsyncIterable[dict[str, Any]],
    reassembler: StreamReassembler,
) -> AsyncGenerator[NormalizedEvent, None]:
    """Drive *reassembler* over *chunks*, yielding events lazily.

    The chunk source is closed when iteration stops, early or not.
    """
    try:
        async for chunk in chunks:
            for event in reassembler.feed(chunk):
                yield event
    finally:
        aclose = getattr(chunks, "aclose", None)
        if aclose is not None:
            await aclose()
    for event in reassembler.finish():
        yield event
