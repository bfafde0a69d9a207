"""Chutes streaming adapter internals."""

from chutes_stream.llm.handler import ChutesHandler
from chutes_stream.llm.models import ModelRegistry, resolve_model
from chutes_stream.llm.params import CompletionParamsBuilder
from chutes_stream.llm.stream import StreamReassembler, StreamState
from chutes_stream.llm.transport import ChutesTransport
from chutes_stream.llm.xml_matcher import XmlMatcher

__all__ = [
    "ChutesHandler",
    "ChutesTransport",
    "CompletionParamsBuilder",
    "ModelRegistry",
    "StreamReassembler",
    "StreamState",
    "XmlMatcher",
    "resolve_model",
]
