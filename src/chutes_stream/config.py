"""Configuration for chutes-stream.

Config discovery (first match wins):
  1. ``--config`` flag
  2. ``./chutes_stream.yaml``
  3. ``~/.config/chutes-stream/config.yaml``
  4. Built-in defaults
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_logger = logging.getLogger(__name__)

CHUTES_BASE_URL = "https://llm.chutes.ai/v1"
DEFAULT_REQUEST_TIMEOUT = 600.0  # seconds


# ---------------------------------------------------------------------------
# Config data structures
# ---------------------------------------------------------------------------

@dataclass
class ProviderSpec:
    """Settings for one Chutes provider handler.

    ``model_temperature`` and ``model_max_tokens`` are caller overrides;
    ``None`` means "use the model default".
    """

    base_url: str = CHUTES_BASE_URL
    api_key: str = ""
    model_id: str | None = None
    model_temperature: float | None = None
    model_max_tokens: int | None = None
    enable_reasoning_effort: bool | None = None
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    extra_params: dict[str, Any] = field(default_factory=dict)  # merged into every request

    @property
    def timeout(self) -> float | None:
        """Request timeout for the transport; ``0`` disables it."""
        if self.request_timeout <= 0:
            return None
        return self.request_timeout


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------

_SEARCH_PATHS = [
    Path("./chutes_stream.yaml"),
    Path.home() / ".config" / "chutes-stream" / "config.yaml",
]


def _parse_provider(raw: dict[str, Any]) -> ProviderSpec:
    timeout = raw.get("request_timeout", DEFAULT_REQUEST_TIMEOUT)
    return ProviderSpec(
        base_url=raw.get("base_url", CHUTES_BASE_URL),
        api_key=raw.get("api_key", ""),
        model_id=raw.get("model_id"),
        model_temperature=raw.get("model_temperature"),
        model_max_tokens=raw.get("model_max_tokens"),
        enable_reasoning_effort=raw.get("enable_reasoning_effort"),
        request_timeout=float(timeout) if timeout is not None else 0.0,
        extra_params=raw.get("extra_params") or {},
    )


def find_config(path: str | Path | None = None) -> Path | None:
    """Return the config file that would be loaded, if any."""
    if path is not None:
        candidate = Path(path)
        return candidate if candidate.exists() else None
    for candidate in _SEARCH_PATHS:
        if candidate.exists():
            return candidate
    return None


def load_config(path: str | Path | None = None) -> ProviderSpec:
    """Load the provider configuration from YAML.

    Parameters
    ----------
    path:
        Explicit config path.  If *None*, search default locations.

    Returns
    -------
    ProviderSpec
    """
    config_path = find_config(path)

    if config_path is None:
        if path is not None:
            _logger.warning("Config file not found: %s, using defaults", path)
        else:
            _logger.info("No config file found, using defaults")
        return ProviderSpec()

    _logger.info("Loading config from %s", config_path)
    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    # Allow either a flat file or one nested under "chutes:"
    if isinstance(raw.get("chutes"), dict):
        raw = raw["chutes"]

    return _parse_provider(raw)
