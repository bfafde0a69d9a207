"""Incremental splitter for ``<tag>...</tag>`` spans in streamed text.

Markers may arrive split across any number of ``update()`` calls; a trailing
fragment that could still grow into a marker is held back until the next
call (or released by ``final()``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class MatcherChunk:
    """A run of text that was either inside (``matched``) or outside the tag."""

    matched: bool
    data: str


def _held_back(buffer: str, marker: str) -> int:
    """Length of the longest suffix of *buffer* that is a proper prefix of *marker*."""
    for size in range(min(len(buffer), len(marker) - 1), 0, -1):
        if marker.startswith(buffer[-size:]):
            return size
    return 0


class XmlMatcher:
    """Stateful matcher for one tag name.

    ``transform`` maps each ``MatcherChunk`` to the value returned by
    ``update()`` / ``final()``; without it the chunks are returned as-is.
    """

    def __init__(
        self,
        tag_name: str,
        transform: Callable[[MatcherChunk], Any] | None = None,
    ) -> None:
        self.tag_name = tag_name
        self._open = f"<{tag_name}>"
        self._close = f"</{tag_name}>"
        self._transform = transform
        self._buffer = ""
        self._inside = False

    @property
    def inside(self) -> bool:
        """True while an opened tag has not been closed yet."""
        return self._inside

    def update(self, text: str) -> list[Any]:
        """Feed *text* and return the chunks that are now unambiguous."""
        self._buffer += text
        return self._emit(self._drain(final=False))

    def final(self, text: str = "") -> list[Any]:
        """Flush everything buffered, including an unterminated span."""
        self._buffer += text
        return self._emit(self._drain(final=True))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _drain(self, final: bool) -> list[MatcherChunk]:
        chunks: list[MatcherChunk] = []
        while self._buffer:
            marker = self._close if self._inside else self._open
            idx = self._buffer.find(marker)
            if idx >= 0:
                self._push(chunks, self._buffer[:idx])
                self._buffer = self._buffer[idx + len(marker):]
                self._inside = not self._inside
                continue

            if final:
                self._push(chunks, self._buffer)
                self._buffer = ""
                break

            keep = _held_back(self._buffer, marker)
            cut = len(self._buffer) - keep
            self._push(chunks, self._buffer[:cut])
            self._buffer = self._buffer[cut:]
            break
        return chunks

    def _push(self, chunks: list[MatcherChunk], data: str) -> None:
        if not data:
            return
        if chunks and chunks[-1].matched == self._inside:
            chunks[-1].data += data
        else:
            chunks.append(MatcherChunk(matched=self._inside, data=data))

    def _emit(self, chunks: list[MatcherChunk]) -> list[Any]:
        if self._transform is None:
            return list(chunks)
        return [self._transform(chunk) for chunk in chunks]
