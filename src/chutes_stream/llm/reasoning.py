"""Route delta content to text or reasoning events.

Two strategies exist and exactly one is active per response:

* ``inline`` - the model writes ``<think>...</think>`` inside the normal
  content field; an :class:`XmlMatcher` splits it out.
* ``native`` - the vendor sends reasoning in a dedicated delta field; the
  first non-blank candidate from :data:`REASONING_FIELDS` is used.
"""

from __future__ import annotations

import enum
import logging
from typing import Any

from chutes_stream.types import ReasoningEvent, TextEvent

from .xml_matcher import MatcherChunk, XmlMatcher

_logger = logging.getLogger(__name__)

# Candidate delta keys, in priority order
REASONING_FIELDS: tuple[str, ...] = ("reasoning_content", "reasoning")

THINK_TAG = "think"


class ReasoningStrategy(enum.Enum):
    INLINE = "inline"
    NATIVE = "native"


def is_deepseek_r1(model_id: str) -> bool:
    return "DeepSeek-R1" in model_id


def select_strategy(model_id: str) -> ReasoningStrategy:
    """Pick the reasoning strategy for *model_id*."""
    if is_deepseek_r1(model_id):
        return ReasoningStrategy.INLINE
    return ReasoningStrategy.NATIVE


def extract_reasoning_text(
    delta: Any,
    fields: tuple[str, ...] = REASONING_FIELDS,
) -> str | None:
    """Return the first non-blank reasoning string on *delta*, untrimmed."""
    if not isinstance(delta, dict):
        return None
    for key in fields:
        value = delta.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _to_event(chunk: MatcherChunk) -> TextEvent | ReasoningEvent:
    if chunk.matched:
        return ReasoningEvent(text=chunk.data)
    return TextEvent(text=chunk.data)


class InlineThinkClassifier:
    """Splits ``<think>`` markup out of streamed content."""

    def __init__(self, tag_name: str = THINK_TAG) -> None:
        self._matcher = XmlMatcher(tag_name, _to_event)

    def feed(self, text: str) -> list[TextEvent | ReasoningEvent]:
        return self._matcher.update(text)

    def finish(self) -> list[TextEvent | ReasoningEvent]:
        residue = self._matcher.final()
        if residue and self._matcher.inside:
            _logger.debug("Stream ended inside an unterminated <%s> block", THINK_TAG)
        return residue
