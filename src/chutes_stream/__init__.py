"""chutes-stream: normalized event streams from the Chutes chat API."""

from chutes_stream.config import ProviderSpec, load_config
from chutes_stream.errors import CompletionError
from chutes_stream.llm.handler import ChutesHandler
from chutes_stream.types import (
    CreateMessageMetadata,
    ModelInfo,
    NormalizedEvent,
    ReasoningEvent,
    ResolvedModel,
    TextEvent,
    ToolCallEnd,
    ToolCallPartial,
    UsageEvent,
)

__all__ = [
    "ChutesHandler",
    "CompletionError",
    "CreateMessageMetadata",
    "ModelInfo",
    "NormalizedEvent",
    "ProviderSpec",
    "ReasoningEvent",
    "ResolvedModel",
    "TextEvent",
    "ToolCallEnd",
    "ToolCallPartial",
    "UsageEvent",
    "load_config",
]
