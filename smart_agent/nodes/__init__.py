"""Loop step functions."""

from smart_agent.nodes.agent import AgentNode
from smart_agent.nodes.context_summarize import summarize_context
from smart_agent.nodes.resolver import resolve_runtime
from smart_agent.nodes.tool_limit import finalize_for_tool_limit

__all__ = ["AgentNode", "finalize_for_tool_limit", "resolve_runtime", "summarize_context"]
