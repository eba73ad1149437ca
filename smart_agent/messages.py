"""Chat message helpers.

Messages are plain dicts in the OpenAI chat shape. These helpers build them,
flatten their content, and normalize tool calls from either the OpenAI
``{"function": {"name", "arguments"}}`` shape or the flat
``{"name", "args"}`` shape.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCall:
    """A normalized tool call requested by the model."""

    id: str
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    # Set when the arguments could not be decoded
    parse_error: str | None = None


def human(content: str, **extra: Any) -> dict[str, Any]:
    return {"role": "user", "content": content, **extra}


def system(content: str, **extra: Any) -> dict[str, Any]:
    return {"role": "system", "content": content, **extra}


def assistant(
    content: str = "", tool_calls: list[dict[str, Any]] | None = None, **extra: Any
) -> dict[str, Any]:
    msg: dict[str, Any] = {"role": "assistant", "content": content, **extra}
    if tool_calls:
        msg["tool_calls"] = tool_calls
    return msg


def tool_message(content: str, tool_call_id: str, name: str, **extra: Any) -> dict[str, Any]:
    return {"role": "tool", "content": content, "tool_call_id": tool_call_id, "name": name, **extra}


def tool_call(name: str, args: dict[str, Any] | None = None, call_id: str | None = None) -> dict[str, Any]:
    """Build an OpenAI-style tool call entry."""
    return {
        "id": call_id or f"call_{uuid.uuid4().hex[:12]}",
        "type": "function",
        "function": {"name": name, "arguments": json.dumps(args or {})},
    }


def content_to_text(content: Any) -> str:
    """Flatten message content to text.

    Strings pass through; lists of parts are joined using each part's
    ``text`` or ``content`` field.
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        text_parts = []
        for part in content:
            if isinstance(part, str):
                text_parts.append(part)
            elif isinstance(part, dict):
                text_parts.append(str(part.get("text") or part.get("content") or ""))
        return "".join(text_parts)
    return str(content)


def _parse_arguments(raw: Any) -> tuple[dict[str, Any], str | None]:
    if raw is None or raw == "":
        return {}, None
    if isinstance(raw, dict):
        return raw, None
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            return {}, f"Invalid JSON arguments: {e}"
        if not isinstance(parsed, dict):
            return {}, "Tool arguments must be a JSON object"
        return parsed, None
    return {}, f"Unsupported argument type: {type(raw).__name__}"


def get_tool_calls(message: dict[str, Any] | None) -> list[ToolCall]:
    """Return the normalized tool calls of a message (empty when none)."""
    if not message:
        return []
    raw_calls = message.get("tool_calls")
    if not isinstance(raw_calls, list):
        return []

    calls = []
    for index, raw in enumerate(raw_calls):
        if not isinstance(raw, dict):
            logger.warning(f"Ignoring malformed tool call at index {index}: {raw!r}")
            continue
        function = raw.get("function") or {}
        name = raw.get("name") or function.get("name") or ""
        raw_args = raw["args"] if "args" in raw else function.get("arguments")
        args, error = _parse_arguments(raw_args)
        call_id = raw.get("id") or f"call_{index}"
        calls.append(ToolCall(id=call_id, name=name, args=args, parse_error=error))
    return calls


def last_message(messages: list[dict[str, Any]]) -> dict[str, Any] | None:
    return messages[-1] if messages else None
