"""Public agent API: create_smart_agent, SmartAgent, delegation helpers."""

import json
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field, create_model

from smart_agent.compaction.config import SummarizationConfig
from smart_agent.compaction.manager import ContextSummarizer
from smart_agent.config import AgentLimits, DebugOptions, load_limits
from smart_agent.debug import DebugSession
from smart_agent.events import AgentEvent, EventEmitter, FinalAnswerEvent, MetadataEvent
from smart_agent.exceptions import SmartAgentConfigError
from smart_agent.loop import CTX_DEBUG_SESSION, CTX_EMITTER, AgentLoop
from smart_agent.messages import content_to_text, human
from smart_agent.model import ChatModel, FunctionChatModel
from smart_agent.nodes.agent import AgentNode, UsageConverter
from smart_agent.state import (
    FINALIZED_DUE_TO_STRUCTURED_OUTPUT,
    FINALIZED_DUE_TO_TOOL_LIMIT,
    ITERATION_LIMIT_REACHED,
    STRUCTURED_OUTPUT_PARSED,
    SessionState,
)
from smart_agent.structured import parse_structured_output
from smart_agent.tools.base import HandoffSignal, Tool, create_smart_tool
from smart_agent.tools.context import SessionContext
from smart_agent.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

TRANSIENT_FLAGS = (
    FINALIZED_DUE_TO_TOOL_LIMIT,
    FINALIZED_DUE_TO_STRUCTURED_OUTPUT,
    STRUCTURED_OUTPUT_PARSED,
    ITERATION_LIMIT_REACHED,
)


@dataclass(frozen=True)
class AgentRuntime:
    """Immutable per-agent descriptor, swapped wholesale on handoff.

    Attributes:
        name: Agent name used in prompts, logs and handoff tool names
        model: Chat model
        tools: User tools plus handoff tools
        system_prompt: Agent-specific instructions
        limits: Tool-call and token limits
        use_todo_list: Expose the planning tool
        output_schema: Optional structured output schema
        summarizer: Summarizer, or None when summarization is off
    """

    name: str
    model: ChatModel
    tools: ToolRegistry
    system_prompt: str | None = None
    limits: AgentLimits = field(default_factory=AgentLimits)
    use_todo_list: bool = False
    output_schema: Any = None
    summarizer: ContextSummarizer | None = None


@dataclass(frozen=True)
class HandoffDescriptor:
    """Declares that control may be handed to ``target``."""

    tool_name: str
    description: str
    schema: type[BaseModel] | dict[str, Any]
    target: "SmartAgent"


@dataclass
class AgentResult:
    content: str
    output: Any
    metadata: dict[str, Any]
    messages: list[dict[str, Any]]
    state: SessionState


class HandoffArgs(BaseModel):
    reason: str = Field(description="Reason for handing off")


class DelegateArgs(BaseModel):
    input: str = Field(description="Input message for the delegated agent")


def _coerce_state(state: SessionState | dict[str, Any] | str | None) -> SessionState:
    if state is None:
        return SessionState()
    if isinstance(state, SessionState):
        return state
    if isinstance(state, str):
        return SessionState(messages=[human(state)])
    if isinstance(state, dict):
        agent = state.get("agent")
        ctx = state.get("ctx") or {}
        coerced = SessionState.from_dict(state)
        return coerced.evolve(agent=agent, ctx=dict(ctx))
    raise TypeError(f"Cannot build a session state from {type(state).__name__}")


def _final_content(messages: list[dict[str, Any]]) -> str:
    for msg in reversed(messages):
        if msg.get("role") == "assistant":
            return content_to_text(msg.get("content"))
    return ""


class SmartAgent:
    """An agent ready to be invoked, delegated to, or handed off to.

    Usage:
        agent = create_smart_agent(model, tools=[search])
        result = await agent.invoke("What is the capital of France?")
        print(result.content)
    """

    def __init__(
        self,
        runtime: AgentRuntime,
        usage_converter: UsageConverter | None = None,
        debug: DebugOptions | None = None,
    ) -> None:
        self.runtime = runtime
        self.debug = debug
        self._agent_node = AgentNode(usage_converter)

    @property
    def name(self) -> str:
        return self.runtime.name

    async def invoke(
        self,
        state: SessionState | dict[str, Any] | str | None = None,
        on_event: Callable[[AgentEvent], Any] | None = None,
    ) -> AgentResult:
        """Run the loop until a final answer, a hard limit, or the end of a handoff chain.

        Args:
            state: Session state, its dict form, or a user prompt
            on_event: Sync or async event callback

        Returns:
            AgentResult with the final text, parsed structured output (or
            None), usage metadata, messages and the final state

        Raises:
            Whatever the model raises; tool failures never escape
        """
        initial = _coerce_state(state)
        emitter = EventEmitter(on_event)
        session = SessionContext(initial, emitter)
        debug = DebugSession.create(self.debug, session.session_id)

        ctx = {k: v for k, v in initial.ctx.items() if k not in TRANSIENT_FLAGS}
        ctx[CTX_EMITTER] = emitter
        ctx[CTX_DEBUG_SESSION] = debug
        initial = initial.evolve(ctx=ctx)

        loop = AgentLoop(self.runtime, self._agent_node, session)
        final = await loop.run(initial)

        active = final.agent or self.runtime
        content = _final_content(final.messages)
        output = None
        if STRUCTURED_OUTPUT_PARSED in final.ctx:
            output = final.ctx[STRUCTURED_OUTPUT_PARSED]
            content = json.dumps(output, ensure_ascii=False, default=str)
        elif active.output_schema is not None and content:
            output = parse_structured_output(active.output_schema, content)

        usage = final.usage.to_dict()
        await emitter.emit(
            MetadataEvent(
                usage=usage,
                tool_call_count=final.tool_call_count,
                iteration_limit_reached=bool(final.ctx.get(ITERATION_LIMIT_REACHED)),
            )
        )
        await emitter.emit(FinalAnswerEvent(content=content, output=output))

        # Collaborators do not outlive the invocation
        final = final.evolve(
            ctx={k: v for k, v in final.ctx.items() if k not in (CTX_EMITTER, CTX_DEBUG_SESSION)}
        )
        return AgentResult(
            content=content,
            output=output,
            metadata={"usage": usage},
            messages=final.messages,
            state=final,
        )

    def as_tool(
        self,
        tool_name: str,
        description: str | None = None,
        input_description: str | None = None,
    ) -> Tool:
        """Expose this agent as a tool taking a single ``input`` string.

        Each call runs a fresh nested invocation; its state is not merged
        into the caller's.
        """
        schema: type[BaseModel] = DelegateArgs
        if input_description:
            schema = create_model(
                "DelegateArgs", input=(str, Field(description=input_description))
            )

        async def delegate(args: dict[str, Any]) -> dict[str, Any]:
            logger.debug(f"Delegating to agent {self.name}")
            result = await self.invoke(SessionState(messages=[human(args["input"])]))
            return {"content": result.content}

        return create_smart_tool(
            tool_name,
            delegate,
            description=description or f"Delegate a task to agent {self.name}",
            schema=schema,
        )

    def as_handoff(
        self,
        tool_name: str | None = None,
        description: str | None = None,
        schema: type[BaseModel] | dict[str, Any] | None = None,
    ) -> HandoffDescriptor:
        return HandoffDescriptor(
            tool_name=tool_name or f"handoff_to_{self.name}",
            description=description or f"Hand off control to agent {self.name}",
            schema=schema or HandoffArgs,
            target=self,
        )


def _handoff_tool(descriptor: HandoffDescriptor) -> Tool:
    target = descriptor.target

    def handoff(args: dict[str, Any]) -> HandoffSignal:
        return HandoffSignal(target=target.runtime, tool_name=descriptor.tool_name, args=args)

    return create_smart_tool(
        descriptor.tool_name,
        handoff,
        description=descriptor.description,
        schema=descriptor.schema,
        cacheable=False,
    )


def create_smart_agent(
    model: ChatModel | Callable[..., Any],
    tools: Iterable[Tool] | None = None,
    handoffs: Iterable[HandoffDescriptor] | None = None,
    limits: AgentLimits | dict[str, Any] | None = None,
    name: str | None = None,
    summarization: bool | SummarizationConfig = True,
    system_prompt: str | None = None,
    use_todo_list: bool = False,
    usage_converter: UsageConverter | None = None,
    debug: DebugOptions | None = None,
    output_schema: Any = None,
    summary_policy: str | None = None,
) -> SmartAgent:
    """Create an agent.

    Args:
        model: ChatModel, or a plain (a)sync callable ``fn(messages, tools)``
        tools: User tools
        handoffs: Agents control may be handed to (see SmartAgent.as_handoff)
        limits: AgentLimits or a dict of limit options
        name: Agent name (default "agent")
        summarization: Enable summarization, or a full SummarizationConfig
        system_prompt: Agent-specific instructions
        use_todo_list: Expose the planning tool
        usage_converter: ``fn(message, state, model)`` returning raw usage
        debug: Per-turn debug artifact options
        output_schema: pydantic model (or type) the final answer must match
        summary_policy: "model" or "deterministic" (overrides the config)

    Raises:
        SmartAgentConfigError: On invalid options
    """
    if model is None:
        raise SmartAgentConfigError("A model is required")
    if not isinstance(model, ChatModel):
        if not callable(model):
            raise SmartAgentConfigError(f"Unsupported model type: {type(model).__name__}")
        model = FunctionChatModel(model)

    if isinstance(limits, dict):
        limits = load_limits(limits)
    limits = limits or AgentLimits()

    if isinstance(summarization, SummarizationConfig):
        summary_config = summarization
    else:
        summary_config = SummarizationConfig(enabled=bool(summarization))
    if summary_policy is not None:
        summary_config = SummarizationConfig(
            enabled=summary_config.enabled,
            policy=summary_policy,
            prompt_template=summary_config.prompt_template,
            line_chars=summary_config.line_chars,
        )
    summarizer = ContextSummarizer(summary_config) if summary_config.enabled else None

    registry = ToolRegistry(tools or [])
    for descriptor in handoffs or []:
        registry.register(_handoff_tool(descriptor))

    runtime = AgentRuntime(
        name=name or "agent",
        model=model,
        tools=registry,
        system_prompt=system_prompt,
        limits=limits,
        use_todo_list=use_todo_list,
        output_schema=output_schema,
        summarizer=summarizer,
    )
    logger.debug(
        f"Created agent {runtime.name} with tools {registry.names()} "
        f"(summarization={'on' if summarizer else 'off'})"
    )
    return SmartAgent(runtime, usage_converter=usage_converter, debug=debug)
