"""Per-turn debug artifacts.

Each model turn can be written as a markdown document (``NN.md`` under
``<path>/<session id>/``) and/or handed to a callback.
"""

import inspect
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from smart_agent.config import DebugOptions
from smart_agent.messages import content_to_text

logger = logging.getLogger(__name__)


def _json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


def format_markdown(entry: dict[str, Any]) -> str:
    """Render a debug entry as markdown."""
    lines = [
        f"# Turn {entry.get('step', '?')}",
        "",
        f"- **Model**: {entry.get('model_name', 'unknown')}",
        f"- **Agent**: {entry.get('agent_name', 'unknown')}",
        f"- **Date**: {entry.get('date', '')}",
        "",
        "## Limits",
        "",
        "```json",
        _json(entry.get("limits") or {}),
        "```",
        "",
        "## Usage",
        "",
        "```json",
        _json(entry.get("usage")),
        "```",
        "",
        "## Tools",
        "",
    ]
    tools = entry.get("tools") or []
    if not tools:
        lines.append("(none)")
    for tool in tools:
        lines.append(f"- `{tool.get('name')}`: {tool.get('description', '')}")
    lines.extend(["", "## Messages", ""])

    for i, msg in enumerate(entry.get("messages") or []):
        role = msg.get("role", "?")
        header = f"### {i}. {role}"
        if msg.get("name"):
            header += f" ({msg['name']})"
        if msg.get("execution_id"):
            header += f" [{msg['execution_id']}]"
        lines.extend([header, "", content_to_text(msg.get("content")) or "(empty)", ""])
        if msg.get("tool_calls"):
            lines.extend(["Tool calls:", "", "```json", _json(msg["tool_calls"]), "```", ""])

    return "\n".join(lines)


class DebugSession:
    """Writes one debug artifact per model turn of an invocation."""

    def __init__(self, options: DebugOptions, session_id: str) -> None:
        self.options = options
        self.session_id = session_id
        self.step = 0
        self.directory: Path | None = None
        if options.path:
            self.directory = Path(options.path) / session_id

    @classmethod
    def create(cls, options: DebugOptions | None, session_id: str) -> "DebugSession | None":
        if options is None or not options.enabled:
            return None
        return cls(options, session_id)

    def bump_step(self) -> int:
        self.step += 1
        return self.step

    async def record_turn(
        self,
        *,
        model_name: str,
        agent_name: str,
        limits: dict[str, Any],
        usage: Any,
        tools: list[dict[str, Any]],
        messages: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """Build, write and forward the artifact of one turn."""
        step = self.bump_step()
        entry = {
            "step": step,
            "session_id": self.session_id,
            "model_name": model_name,
            "agent_name": agent_name,
            "date": datetime.now(timezone.utc).isoformat(),
            "limits": limits,
            "usage": usage,
            "tools": tools,
            "messages": messages,
        }
        entry["markdown"] = format_markdown(entry)

        if self.directory is not None:
            path = self.directory / f"{step:02d}.md"
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                path.write_text(entry["markdown"], encoding="utf-8")
            except OSError as e:
                logger.error(f"Cannot write debug artifact {path}: {e}", exc_info=True)
            else:
                entry["path"] = str(path)
                logger.debug(f"Wrote debug artifact {path}")

        if self.options.callback is not None:
            try:
                result = self.options.callback(entry)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.error(f"Debug callback failed on step {step}", exc_info=True)

        return entry
