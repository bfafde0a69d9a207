"""Shared data types for chutes-stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union


# ---------------------------------------------------------------------------
# Normalized stream events
# ---------------------------------------------------------------------------

@dataclass
class TextEvent:
    """Visible answer text."""

    text: str
    type: Literal["text"] = "text"


@dataclass
class ReasoningEvent:
    """Model deliberation text, kept apart from the answer."""

    text: str
    type: Literal["reasoning"] = "reasoning"


@dataclass
class ToolCallPartial:
    """One fragment of a tool call.

    ``name`` and ``arguments`` are ``None`` when the fragment carried no new
    piece of that kind, which is not the same as an empty string.
    """

    index: int
    id: str
    name: str | None = None
    arguments: str | None = None
    type: Literal["tool_call_partial"] = "tool_call_partial"


@dataclass
class ToolCallEnd:
    """Closes the tool call with the given id."""

    id: str
    type: Literal["tool_call_end"] = "tool_call_end"


@dataclass
class UsageEvent:
    """Token counters reported by the upstream API."""

    input_tokens: int = 0
    output_tokens: int = 0
    type: Literal["usage"] = "usage"


NormalizedEvent = Union[
    TextEvent, ReasoningEvent, ToolCallPartial, ToolCallEnd, UsageEvent,
]


# ---------------------------------------------------------------------------
# Model types
# ---------------------------------------------------------------------------

@dataclass
class ModelInfo:
    """Capabilities and limits of a model as known to the registry."""

    max_tokens: int | None = None
    context_window: int = 0
    supports_images: bool = False
    supports_prompt_cache: bool = False
    supports_temperature: bool = True
    input_price: float = 0.0
    output_price: float = 0.0
    temperature: float | None = None  # default sampling temperature
    description: str = ""


@dataclass(frozen=True)
class ResolvedModel:
    """Effective model id paired with the metadata used for a request."""

    id: str
    info: ModelInfo


# ---------------------------------------------------------------------------
# Request types
# ---------------------------------------------------------------------------

@dataclass
class CreateMessageMetadata:
    """Caller intent that shapes a ``create_message`` request."""

    tools: list[dict[str, Any]] | None = None
    tool_choice: str | dict[str, Any] | None = None


@dataclass
class CompletionRequest:
    """Everything needed for a single chat-completions call."""

    model: str
    messages: list[dict[str, Any]]
    max_tokens: int | None = None
    tools: list[dict[str, Any]] | None = None
    tool_choice: str | dict[str, Any] | None = None
    temperature: float | None = None
    stream: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        """Render the JSON body, omitting unset optional fields."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": self.messages,
        }
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens
        if self.stream:
            payload["stream"] = True
            payload["stream_options"] = {"include_usage": True}
        if self.tools:
            payload["tools"] = self.tools
        if self.tool_choice:
            payload["tool_choice"] = self.tool_choice
        if self.temperature is not None:
            payload["temperature"] = self.temperature
        if self.extra:
            payload.update(self.extra)
        return payload
