"""smart-agent: a tool-calling agent loop with budgets, summarization and delegation."""

from smart_agent.agent import (
    AgentResult,
    AgentRuntime,
    HandoffDescriptor,
    SmartAgent,
    create_smart_agent,
)
from smart_agent.compaction import ContextSummarizer, SummarizationConfig
from smart_agent.config import AgentLimits, DebugOptions, load_agent_config, load_limits
from smart_agent.events import (
    FinalAnswerEvent,
    HandoffEvent,
    MetadataEvent,
    PlanEvent,
    SummarizationEvent,
    ToolCallEvent,
)
from smart_agent.exceptions import (
    SmartAgentConfigError,
    SmartAgentError,
    SmartAgentModelError,
    SmartAgentToolError,
)
from smart_agent.model import ChatModel, FunctionChatModel
from smart_agent.state import SessionState, ToolExecutionRecord
from smart_agent.tools import HandoffSignal, Tool, create_smart_tool

__version__ = "0.1.0"

__all__ = [
    "AgentLimits",
    "AgentResult",
    "AgentRuntime",
    "ChatModel",
    "ContextSummarizer",
    "DebugOptions",
    "FinalAnswerEvent",
    "FunctionChatModel",
    "HandoffDescriptor",
    "HandoffEvent",
    "HandoffSignal",
    "MetadataEvent",
    "PlanEvent",
    "SessionState",
    "SmartAgent",
    "SmartAgentConfigError",
    "SmartAgentError",
    "SmartAgentModelError",
    "SmartAgentToolError",
    "SummarizationConfig",
    "SummarizationEvent",
    "Tool",
    "ToolCallEvent",
    "ToolExecutionRecord",
    "create_smart_agent",
    "create_smart_tool",
    "load_agent_config",
    "load_limits",
]
