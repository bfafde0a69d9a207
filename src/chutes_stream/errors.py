"""Error types raised by chutes-stream."""

from __future__ import annotations


class CompletionError(Exception):
    """A non-streaming completion failed upstream.

    Carries the provider name and the upstream error's message.
    """

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        self.message = message
        super().__init__(f"{provider.capitalize()} completion error: {message}")
