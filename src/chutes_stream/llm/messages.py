"""Convert the caller's message list into OpenAI chat messages.

Callers hand in Anthropic-style turns: ``{"role": ..., "content": ...}``
where content is a string or a list of blocks (``text``, ``image``,
``tool_use``, ``tool_result``).
"""

from __future__ import annotations

import json
from typing import Any


def _image_part(block: dict[str, Any]) -> dict[str, Any]:
    source = block.get("source", {})
    if source.get("type") == "url":
        url = source.get("url", "")
    else:
        url = f"data:{source.get('media_type', 'image/png')};base64,{source.get('data', '')}"
    return {"type": "image_url", "image_url": {"url": url}}


def _tool_result_text(block: dict[str, Any]) -> str:
    content = block.get("content", "")
    if isinstance(content, str):
        return content
    parts = []
    for item in content or []:
        if item.get("type") == "text":
            parts.append(item.get("text", ""))
        elif item.get("type") == "image":
            parts.append("(see following user message for image)")
    return "\n".join(parts)


def _user_messages(content: list[dict[str, Any]]) -> list[dict[str, Any]]:
    result: list[dict[str, Any]] = []
    parts: list[dict[str, Any]] = []
    for block in content:
        kind = block.get("type")
        if kind == "tool_result":
            # Tool results must directly follow the assistant's tool_calls
            result.append({
                "role": "tool",
                "tool_call_id": block.get("tool_use_id", ""),
                "content": _tool_result_text(block),
            })
        elif kind == "image":
            parts.append(_image_part(block))
        elif kind == "text":
            parts.append({"type": "text", "text": block.get("text", "")})
    if parts:
        result.append({"role": "user", "content": parts})
    return result


def _assistant_message(content: list[dict[str, Any]]) -> dict[str, Any]:
    texts: list[str] = []
    tool_calls: list[dict[str, Any]] = []
    for block in content:
        kind = block.get("type")
        if kind == "text":
            texts.append(block.get("text", ""))
        elif kind == "tool_use":
            tool_calls.append({
                "id": block.get("id", ""),
                "type": "function",
                "function": {
                    "name": block.get("name", ""),
                    "arguments": json.dumps(block.get("input", {})),
                },
            })
    message: dict[str, Any] = {
        "role": "assistant",
        "content": "\n".join(texts) if texts else None,
    }
    if tool_calls:
        message["tool_calls"] = tool_calls
    return message


def convert_to_openai_messages(
    messages: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Convert caller turns to OpenAI ``messages`` entries."""
    result: list[dict[str, Any]] = []
    for msg in messages:
        role = msg.get("role", "user")
        content = msg.get("content", "")
        if isinstance(content, str):
            result.append({"role": role, "content": content})
        elif role == "assistant":
            result.append(_assistant_message(content))
        else:
            result.extend(_user_messages(content))
    return result


# ---------------------------------------------------------------------------
# DeepSeek-R1 encoding
# ---------------------------------------------------------------------------

def _flatten_parts(content: Any) -> list[dict[str, Any]]:
    if isinstance(content, str):
        return [{"type": "text", "text": content}]
    parts: list[dict[str, Any]] = []
    for block in content or []:
        kind = block.get("type")
        if kind == "text":
            parts.append({"type": "text", "text": block.get("text", "")})
        elif kind == "image":
            parts.append(_image_part(block))
        elif kind == "tool_result":
            parts.append({"type": "text", "text": _tool_result_text(block)})
        elif kind == "tool_use":
            parts.append({
                "type": "text",
                "text": json.dumps({"tool": block.get("name", ""), "args": block.get("input", {})}),
            })
    return parts


def _collapse(parts: list[dict[str, Any]]) -> str | list[dict[str, Any]]:
    if all(p["type"] == "text" for p in parts):
        return "\n".join(p["text"] for p in parts)
    return parts


def convert_to_r1_format(
    messages: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Encode turns for DeepSeek-R1, which rejects consecutive same-role turns.

    Adjacent turns from the same role are merged into one; tool blocks are
    rendered as text.
    """
    merged: list[dict[str, Any]] = []
    for msg in messages:
        role = msg.get("role", "user")
        parts = _flatten_parts(msg.get("content", ""))
        if merged and merged[-1]["role"] == role:
            merged[-1]["parts"].extend(parts)
        else:
            merged.append({"role": role, "parts": parts})

    return [
        {"role": m["role"], "content": _collapse(m["parts"])}
        for m in merged
    ]
