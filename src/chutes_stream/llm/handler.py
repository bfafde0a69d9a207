"""Chutes provider handler: the public streaming entry point."""

from __future__ import annotations

import logging
from contextlib import aclosing
from typing import Any, AsyncGenerator

from chutes_stream.config import ProviderSpec
from chutes_stream.errors import CompletionError
from chutes_stream.types import (
    CreateMessageMetadata,
    ModelInfo,
    NormalizedEvent,
    ResolvedModel,
)

from .fallback import (
    emit_reasoning_only_fallback,
    needs_reasoning_only_fallback,
    response_message,
)
from .models import (
    CHUTES_DEFAULT_MODEL_ID,
    CHUTES_DEFAULT_MODEL_INFO,
    ModelRegistry,
    resolve_model,
)
from .params import CompletionParamsBuilder
from .reasoning import select_strategy
from .stream import StreamReassembler, reassemble
from .transport import ChutesTransport

_logger = logging.getLogger(__name__)

PROVIDER_NAME = "chutes"


class ChutesHandler:
    """Streams chat completions from Chutes as normalized events.

    Parameters
    ----------
    settings:
        Provider settings (API key, model id, overrides, timeout).
    registry:
        Shared model registry.  A fresh empty one is created if omitted.
    transport:
        Anything with ``stream_completion``, ``completion`` and
        ``list_models``; defaults to an httpx-backed ``ChutesTransport``.
    """

    def __init__(
        self,
        settings: ProviderSpec,
        registry: ModelRegistry | None = None,
        transport: Any | None = None,
        default_model_id: str = CHUTES_DEFAULT_MODEL_ID,
        default_model_info: ModelInfo = CHUTES_DEFAULT_MODEL_INFO,
    ) -> None:
        self.settings = settings
        self.registry = registry if registry is not None else ModelRegistry()
        self.transport = transport or ChutesTransport(
            api_key=settings.api_key, base_url=settings.base_url,
        )
        self.default_model_id = default_model_id
        self.default_model_info = default_model_info
        self._params = CompletionParamsBuilder(settings, self.get_model)

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def get_model(self) -> ResolvedModel:
        """Resolve the effective model from settings and the registry as of now."""
        return resolve_model(
            self.settings.model_id,
            self.registry,
            self.default_model_id,
            self.default_model_info,
            self.settings.enable_reasoning_effort,
        )

    async def fetch_model(self) -> ResolvedModel:
        """Refresh the registry, then resolve the model."""
        await self.registry.refresh(self.transport)
        return self.get_model()

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def create_message(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        metadata: CreateMessageMetadata | None = None,
    ) -> AsyncGenerator[NormalizedEvent, None]:
        """Stream one assistant turn as normalized events."""
        model = await self.fetch_model()
        strategy = select_strategy(model.id)
        _logger.debug("Streaming %s with %s reasoning strategy", model.id, strategy.value)

        request = self._params.streaming(system_prompt, messages, metadata)
        reassembler = StreamReassembler(strategy)
        chunks = self.transport.stream_completion(
            request.to_payload(), timeout=self.settings.timeout,
        )
        async with aclosing(reassemble(chunks, reassembler)) as events:
            async for event in events:
                yield event

        if needs_reasoning_only_fallback(model.id, reassembler):
            fallback = self._params.non_streaming(system_prompt, messages, metadata)
            async for event in emit_reasoning_only_fallback(
                self.transport, fallback.to_payload(), timeout=self.settings.timeout,
            ):
                yield event

    # ------------------------------------------------------------------
    # Single completion
    # ------------------------------------------------------------------

    async def complete_prompt(self, prompt: str) -> str:
        """Send *prompt* as one non-streaming request and return the text."""
        await self.fetch_model()
        request = self._params.single_prompt(prompt)
        try:
            response = await self.transport.completion(
                request.to_payload(), timeout=self.settings.timeout,
            )
            message = response_message(response)
            if message is None:
                return ""
            content = message.get("content")
            return content if isinstance(content, str) else ""
        except Exception as e:
            raise CompletionError(PROVIDER_NAME, str(e)) from e

    async def close(self) -> None:
        await self.transport.close()
