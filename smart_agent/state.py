"""Session state threaded through the execution loop.

The state is a plain dataclass. Loop steps never mutate the state they
receive in place; they return a copy with replaced fields (see ``evolve``).
"""

import copy
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from smart_agent.usage import UsageLog

if TYPE_CHECKING:
    from smart_agent.agent import AgentRuntime

# Transient ctx flags set by the loop
FINALIZED_DUE_TO_TOOL_LIMIT = "__finalized_due_to_tool_limit"
FINALIZED_DUE_TO_STRUCTURED_OUTPUT = "__finalized_due_to_structured_output"
STRUCTURED_OUTPUT_PARSED = "__structured_output_parsed"
ITERATION_LIMIT_REACHED = "__iteration_limit_reached"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ToolExecutionRecord:
    """Persisted result of one dispatched tool call, addressable by execution id."""

    execution_id: str
    tool_name: str
    args: dict[str, Any]
    output: Any
    tool_call_id: str
    raw_output: Any = None
    timestamp: str = field(default_factory=utc_now)
    summarized: bool = False
    original_token_count: int | None = None
    from_cache: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolExecutionRecord":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass
class PlanStep:
    index: int
    title: str
    status: str = "pending"
    description: str = ""
    evidence: str | None = None


@dataclass
class Plan:
    version: int
    steps: list[PlanStep] = field(default_factory=list)
    last_updated: str = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Plan | None":
        if not data:
            return None
        steps = [PlanStep(**s) for s in data.get("steps", [])]
        return cls(
            version=data.get("version", 0),
            steps=steps,
            last_updated=data.get("last_updated") or utc_now(),
        )


@dataclass
class SessionState:
    """The full value threaded through one ``invoke`` call."""

    messages: list[dict[str, Any]] = field(default_factory=list)
    tool_call_count: int = 0
    tool_history: list[ToolExecutionRecord] = field(default_factory=list)
    tool_history_archived: list[ToolExecutionRecord] = field(default_factory=list)
    tool_cache: dict[str, Any] = field(default_factory=dict)
    summaries: list[str] = field(default_factory=list)
    plan: Plan | None = None
    plan_version: int = 0
    usage: UsageLog = field(default_factory=UsageLog)
    metadata: dict[str, Any] = field(default_factory=dict)
    # Transient flags and session collaborators, never serialized
    ctx: dict[str, Any] = field(default_factory=dict)
    agent: "AgentRuntime | None" = None

    def evolve(self, **changes: Any) -> "SessionState":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    def find_record(self, execution_id: str) -> ToolExecutionRecord | None:
        """Look up an execution id across live and archived history."""
        for record in self.tool_history:
            if record.execution_id == execution_id:
                return record
        for record in self.tool_history_archived:
            if record.execution_id == execution_id:
                return record
        return None

    def all_records(self) -> list[ToolExecutionRecord]:
        return [*self.tool_history_archived, *self.tool_history]

    def to_dict(self) -> dict[str, Any]:
        """Serialize the durable parts of the state (``ctx`` and ``agent`` excluded)."""
        return {
            "messages": copy.deepcopy(self.messages),
            "tool_call_count": self.tool_call_count,
            "tool_history": [r.to_dict() for r in self.tool_history],
            "tool_history_archived": [r.to_dict() for r in self.tool_history_archived],
            "tool_cache": copy.deepcopy(self.tool_cache),
            "summaries": list(self.summaries),
            "plan": self.plan.to_dict() if self.plan else None,
            "plan_version": self.plan_version,
            "usage": self.usage.to_dict(),
            "metadata": copy.deepcopy(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SessionState":
        data = data or {}
        return cls(
            messages=list(data.get("messages") or []),
            tool_call_count=data.get("tool_call_count") or 0,
            tool_history=[
                ToolExecutionRecord.from_dict(r) for r in data.get("tool_history") or []
            ],
            tool_history_archived=[
                ToolExecutionRecord.from_dict(r)
                for r in data.get("tool_history_archived") or []
            ],
            tool_cache=dict(data.get("tool_cache") or {}),
            summaries=list(data.get("summaries") or []),
            plan=Plan.from_dict(data.get("plan")),
            plan_version=data.get("plan_version") or 0,
            usage=UsageLog.from_dict(data.get("usage")),
            metadata=dict(data.get("metadata") or {}),
        )
