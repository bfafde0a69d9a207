"""Output-token cap derived from a model's context window."""

from __future__ import annotations

import math

from chutes_stream.config import ProviderSpec
from chutes_stream.types import ModelInfo

# Share of the context window an answer may use
MAX_OUTPUT_SHARE = 0.2


def compute_max_output_tokens(
    model_id: str,
    info: ModelInfo,
    settings: ProviderSpec | None = None,
) -> int | None:
    """Return the ``max_tokens`` to request, or ``None`` to let the API decide.

    An explicit ``model_max_tokens`` setting wins.  Otherwise the model's
    declared output limit is clamped to 20% of its context window.
    """
    if settings is not None and settings.model_max_tokens:
        return settings.model_max_tokens

    if not info.max_tokens:
        return None

    if info.context_window <= 0:
        return info.max_tokens

    ceiling = math.ceil(info.context_window * MAX_OUTPUT_SHARE)
    return min(info.max_tokens, ceiling)
