"""Summarization step."""

from typing import TYPE_CHECKING

from smart_agent.compaction.manager import ContextSummarizer
from smart_agent.events import EventEmitter
from smart_agent.state import SessionState

if TYPE_CHECKING:
    from smart_agent.agent import AgentRuntime


async def summarize_context(
    state: SessionState,
    runtime: "AgentRuntime",
    summarizer: ContextSummarizer,
    emitter: EventEmitter | None = None,
) -> SessionState:
    result = await summarizer.summarize(state, runtime, emitter)
    return result.state
