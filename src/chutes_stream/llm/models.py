"""Model registry and model resolution policy."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterator, Mapping
from dataclasses import replace
from typing import Any

import httpx

from chutes_stream.types import ModelInfo, ResolvedModel

from .reasoning import is_deepseek_r1

_logger = logging.getLogger(__name__)

CHUTES_DEFAULT_MODEL_ID = "deepseek-ai/DeepSeek-R1-0528"
CHUTES_DEFAULT_MODEL_INFO = ModelInfo(
    max_tokens=32768,
    context_window=163840,
    supports_images=False,
    supports_prompt_cache=False,
    input_price=0.0,
    output_price=0.0,
    description="DeepSeek R1 0528 model.",
)

KIMI_K2_5_TEE_MODEL_ID = "moonshotai/kimi-k2.5-tee"

DEEP_SEEK_DEFAULT_TEMPERATURE = 0.6
KIMI_REASONING_TEMPERATURE = 1.0
KIMI_INSTANT_TEMPERATURE = 0.6
GENERIC_DEFAULT_TEMPERATURE = 0.5

DEFAULT_REGISTRY_TTL = 300.0  # seconds

# Models that reject a temperature parameter
_NO_TEMPERATURE_PREFIXES = ("openai/o3-mini",)


def is_kimi_k2_5_tee(model_id: str) -> bool:
    return model_id.lower() == KIMI_K2_5_TEE_MODEL_ID


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

def _as_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def parse_model_entry(raw: dict[str, Any]) -> tuple[str, ModelInfo] | None:
    """Parse one entry of a ``GET /models`` listing.

    Returns ``None`` for entries without an id.
    """
    model_id = raw.get("id")
    if not model_id:
        return None

    context = _as_int(raw.get("context_length")) or _as_int(raw.get("max_model_len")) or 0
    max_output = _as_int(raw.get("max_output_length")) or _as_int(raw.get("max_tokens"))
    pricing = raw.get("pricing")
    if not isinstance(pricing, dict):
        pricing = {}
    modalities = raw.get("input_modalities") or []

    try:
        input_price = float(pricing.get("prompt", 0) or 0)
        output_price = float(pricing.get("completion", 0) or 0)
    except (TypeError, ValueError):
        input_price = output_price = 0.0

    return model_id, ModelInfo(
        max_tokens=max_output,
        context_window=context,
        supports_images="image" in modalities,
        supports_prompt_cache=False,
        input_price=input_price,
        output_price=output_price,
        description=raw.get("description", ""),
    )


class ModelRegistry(Mapping[str, ModelInfo]):
    """Read-mostly snapshot of the provider's model list.

    Shared between concurrent calls; ``refresh()`` swaps in a new snapshot
    atomically rather than mutating the current one.  A successful refresh
    is reused for ``ttl`` seconds.
    """

    def __init__(
        self,
        models: dict[str, ModelInfo] | None = None,
        ttl: float = DEFAULT_REGISTRY_TTL,
    ) -> None:
        self._models: dict[str, ModelInfo] = dict(models or {})
        self.ttl = ttl
        self._loaded_at: float | None = None

    def __getitem__(self, model_id: str) -> ModelInfo:
        return self._models[model_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)

    @property
    def is_fresh(self) -> bool:
        if self._loaded_at is None:
            return False
        return time.monotonic() - self._loaded_at < self.ttl

    async def refresh(self, transport: Any, force: bool = False) -> bool:
        """Reload the snapshot from ``transport.list_models()``.

        Skipped while the last successful load is younger than ``ttl``
        unless *force* is set.  Returns ``True`` when the snapshot is
        usable.  On failure (network, HTTP status or an undecodable body)
        the previous snapshot is kept and a warning is logged.
        """
        if not force and self.is_fresh:
            return True

        try:
            entries = await transport.list_models()
        except (httpx.HTTPError, ValueError) as e:
            _logger.warning("Could not refresh Chutes model list: %s", e)
            return False

        models: dict[str, ModelInfo] = {}
        for raw in entries:
            if not isinstance(raw, dict):
                continue
            parsed = parse_model_entry(raw)
            if parsed is not None:
                models[parsed[0]] = parsed[1]
        self._models = models
        self._loaded_at = time.monotonic()
        _logger.debug("Loaded %d Chutes models", len(models))
        return True


# ---------------------------------------------------------------------------
# Resolution policy
# ---------------------------------------------------------------------------

def default_temperature(
    model_id: str,
    enable_reasoning_effort: bool | None = None,
) -> float:
    """Per-model default sampling temperature."""
    if is_deepseek_r1(model_id):
        return DEEP_SEEK_DEFAULT_TEMPERATURE
    if is_kimi_k2_5_tee(model_id):
        # Reasoning counts as enabled unless explicitly switched off
        if enable_reasoning_effort is not False:
            return KIMI_REASONING_TEMPERATURE
        return KIMI_INSTANT_TEMPERATURE
    return GENERIC_DEFAULT_TEMPERATURE


def resolve_model(
    configured_id: str | None,
    registry: Mapping[str, ModelInfo],
    default_id: str = CHUTES_DEFAULT_MODEL_ID,
    default_info: ModelInfo = CHUTES_DEFAULT_MODEL_INFO,
    enable_reasoning_effort: bool | None = None,
) -> ResolvedModel:
    """Decide the effective model id and metadata for one call.

    An explicitly configured id that the registry does not know is kept
    and paired with the default model's metadata, so a stale model list
    never silently swaps in the default model.
    """
    requested = configured_id or default_id
    info = registry.get(requested)
    if info is not None:
        model_id, base_info = requested, info
    else:
        model_id, base_info = default_id, registry.get(default_id) or default_info

    preserve = (
        bool(configured_id)
        and configured_id != default_id
        and model_id == default_id
        and configured_id not in registry
    )
    if preserve:
        _logger.debug(
            "Model %s is not in the Chutes model list, keeping it with default metadata",
            configured_id,
        )
        model_id, base_info = configured_id, default_info

    return ResolvedModel(
        id=model_id,
        info=replace(
            base_info,
            temperature=default_temperature(model_id, enable_reasoning_effort),
        ),
    )


def supports_temperature(model: ResolvedModel) -> bool:
    if not model.info.supports_temperature:
        return False
    return not model.id.startswith(_NO_TEMPERATURE_PREFIXES)


def effective_temperature(
    model: ResolvedModel,
    override: float | None = None,
) -> float | None:
    """Temperature to send, or ``None`` when the model takes none."""
    if not supports_temperature(model):
        return None
    if override is not None:
        return override
    return model.info.temperature
