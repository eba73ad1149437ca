"""Tool contract, registry, executor and context tools."""

from smart_agent.tools.base import HandoffSignal, Tool, create_smart_tool
from smart_agent.tools.context import (
    CONTEXT_TOOL_NAMES,
    SessionContext,
    create_context_tools,
)
from smart_agent.tools.executor import SKIPPED_MESSAGE, ToolExecutor, cache_key
from smart_agent.tools.registry import ToolRegistry

__all__ = [
    "CONTEXT_TOOL_NAMES",
    "HandoffSignal",
    "SKIPPED_MESSAGE",
    "SessionContext",
    "Tool",
    "ToolExecutor",
    "ToolRegistry",
    "cache_key",
    "create_context_tools",
    "create_smart_tool",
]
