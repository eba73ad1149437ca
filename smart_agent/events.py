"""Agent events and the emitter that delivers them to the caller."""

import inspect
import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCallEvent:
    """Lifecycle of one tool call.

    Attributes:
        phase: "start", "success", "error" or "skipped"
        duration_ms: Set on success/error
    """

    tool_name: str
    tool_call_id: str
    phase: str
    args: dict[str, Any] = field(default_factory=dict)
    execution_id: str | None = None
    duration_ms: float | None = None
    from_cache: bool = False
    error: str | None = None
    reason: str | None = None
    type: str = "tool_call"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class PlanEvent:
    plan: dict[str, Any] | None
    plan_version: int
    type: str = "plan"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SummarizationEvent:
    archived_count: int
    tokens_before: int
    tokens_after: int
    summary_tokens: int
    policy: str
    type: str = "summarization"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HandoffEvent:
    from_agent: str
    to_agent: str
    tool_name: str
    args: dict[str, Any] = field(default_factory=dict)
    type: str = "handoff"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FinalAnswerEvent:
    content: str
    output: Any = None
    type: str = "final_answer"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MetadataEvent:
    usage: dict[str, Any]
    tool_call_count: int
    iteration_limit_reached: bool = False
    type: str = "metadata"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


AgentEvent = (
    ToolCallEvent | PlanEvent | SummarizationEvent | HandoffEvent | FinalAnswerEvent | MetadataEvent
)


class EventEmitter:
    """Delivers events to an optional caller callback.

    The callback may be sync or async. Callback failures are logged and never
    reach the loop.
    """

    def __init__(self, callback: Callable[[AgentEvent], Any] | None = None) -> None:
        self._callback = callback
        self.history: list[AgentEvent] = []

    async def emit(self, event: AgentEvent) -> None:
        self.history.append(event)
        logger.debug(f"Event {event.type}: {event}")
        if self._callback is None:
            return
        try:
            result = self._callback(event)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.error(f"Event callback {self._callback!r} failed on event {event.type}", exc_info=True)

    def of_type(self, event_type: str) -> list[AgentEvent]:
        return [e for e in self.history if e.type == event_type]
