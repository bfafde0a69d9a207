"""Stable ids for tool calls that stream in as index-addressed fragments."""

from __future__ import annotations

from typing import Any

SYNTHETIC_ID_PREFIX = "chutes_tool_call_"


def resolve_tool_call_id(
    fragment: dict[str, Any],
    ids_by_index: dict[int, str],
) -> str:
    """Return the id for a tool-call *fragment* and remember it by index.

    An explicit ``id`` on the fragment always wins and replaces whatever was
    recorded for its index.  Fragments without an id reuse the id already
    seen at their index, or get a placeholder derived from the index.
    ``index`` defaults to 0.
    """
    index = fragment.get("index")
    if index is None:
        index = 0

    explicit = fragment.get("id")
    if explicit:
        ids_by_index[index] = explicit
        return explicit

    existing = ids_by_index.get(index)
    if existing:
        return existing

    synthetic = f"{SYNTHETIC_ID_PREFIX}{index}"
    ids_by_index[index] = synthetic
    return synthetic
