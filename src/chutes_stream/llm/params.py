"""Build chat-completions requests from model metadata and caller intent."""

from __future__ import annotations

from typing import Any, Callable

from chutes_stream.config import ProviderSpec
from chutes_stream.types import CompletionRequest, CreateMessageMetadata, ResolvedModel

from .messages import convert_to_openai_messages, convert_to_r1_format
from .models import effective_temperature, is_kimi_k2_5_tee
from .reasoning import is_deepseek_r1
from .token_budget import compute_max_output_tokens


def resolve_tool_choice(
    model_id: str,
    metadata: CreateMessageMetadata | None,
) -> str | dict[str, Any] | None:
    """Tool-choice directive to send, or ``None``.

    The caller's choice is passed through unchanged; forcing ``"required"``
    traps Kimi in repeated tool calls.
    """
    if metadata is None or not metadata.tools:
        return None

    if is_kimi_k2_5_tee(model_id):
        return metadata.tool_choice

    return metadata.tool_choice


class CompletionParamsBuilder:
    """Derives request parameters for one handler.

    Parameters
    ----------
    settings:
        Provider settings (caller overrides for temperature / max tokens).
    get_model:
        Returns the ``ResolvedModel`` for the current call.
    """

    def __init__(
        self,
        settings: ProviderSpec,
        get_model: Callable[[], ResolvedModel],
    ) -> None:
        self._settings = settings
        self._get_model = get_model

    def _base(
        self,
        model: ResolvedModel,
        messages: list[dict[str, Any]],
        metadata: CreateMessageMetadata | None,
        stream: bool,
    ) -> CompletionRequest:
        return CompletionRequest(
            model=model.id,
            messages=messages,
            max_tokens=compute_max_output_tokens(model.id, model.info, self._settings),
            tools=metadata.tools if metadata and metadata.tools else None,
            tool_choice=resolve_tool_choice(model.id, metadata),
            temperature=effective_temperature(model, self._settings.model_temperature),
            stream=stream,
            extra=dict(self._settings.extra_params),
        )

    def streaming(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        metadata: CreateMessageMetadata | None = None,
    ) -> CompletionRequest:
        """Streaming request; usage accounting is always requested."""
        model = self._get_model()
        if is_deepseek_r1(model.id):
            # R1 takes the system prompt as a leading user turn
            encoded = convert_to_r1_format(
                [{"role": "user", "content": system_prompt}, *messages],
            )
        else:
            encoded = [
                {"role": "system", "content": system_prompt},
                *convert_to_openai_messages(messages),
            ]
        return self._base(model, encoded, metadata, stream=True)

    def non_streaming(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]],
        metadata: CreateMessageMetadata | None = None,
    ) -> CompletionRequest:
        encoded = [
            {"role": "system", "content": system_prompt},
            *convert_to_openai_messages(messages),
        ]
        return self._base(self._get_model(), encoded, metadata, stream=False)

    def single_prompt(self, prompt: str) -> CompletionRequest:
        """One-shot request for ``complete_prompt``; no tools, no streaming."""
        model = self._get_model()
        return CompletionRequest(
            model=model.id,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=compute_max_output_tokens(model.id, model.info, self._settings),
            temperature=effective_temperature(model, self._settings.model_temperature),
            extra=dict(self._settings.extra_params),
        )
