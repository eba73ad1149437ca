"""Deterministic summary policy.

Renders one clipped line per archived record. Needs no model call, so it
is also the fallback of the model policy.
"""

import json

from smart_agent.compaction.policy.base import SummaryPolicy
from smart_agent.compaction.types import SummaryRequest
from smart_agent.state import ToolExecutionRecord


def _clip(text: str, max_chars: int) -> str:
    text = " ".join(text.split())
    if len(text) <= max_chars:
        return text
    return text[: max_chars - 3] + "..."


def render_record(record: ToolExecutionRecord, max_chars: int) -> str:
    """One line describing a record: id, tool, arguments and clipped output."""
    args = json.dumps(record.args, ensure_ascii=False, sort_keys=True, default=str)
    if isinstance(record.output, str):
        output = record.output
    else:
        output = json.dumps(record.output, ensure_ascii=False, default=str)
    status = "error" if record.error else "ok"
    return f"- [{record.execution_id}] {record.tool_name}({_clip(args, 80)}) {status}: {_clip(output, max_chars)}"


class DeterministicSummaryPolicy(SummaryPolicy):
    """Summarizes records as a list of clipped one-line entries."""

    def __init__(self, line_chars: int = 200) -> None:
        self._line_chars = line_chars

    @property
    def name(self) -> str:
        return "deterministic"

    async def summarize(self, request: SummaryRequest) -> str:
        lines = [
            f"[Summary of {len(request.records)} archived tool result(s); "
            f"call get_tool_response with an execution id for the full output]"
        ]
        lines.extend(render_record(r, self._line_chars) for r in request.records)
        return "\n".join(lines)
