"""Execution loop.

A single transition function, ``decide``, picks the next step from the
current state after every step. Steps are plain functions over the session
state; only the loop sequences them.
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING

from smart_agent.compaction.manager import ContextSummarizer
from smart_agent.debug import DebugSession
from smart_agent.events import EventEmitter, ToolCallEvent
from smart_agent.messages import get_tool_calls, last_message
from smart_agent.nodes import AgentNode, finalize_for_tool_limit, resolve_runtime, summarize_context
from smart_agent.nodes.tool_limit import skip_unanswered_calls
from smart_agent.state import (
    FINALIZED_DUE_TO_STRUCTURED_OUTPUT,
    FINALIZED_DUE_TO_TOOL_LIMIT,
    ITERATION_LIMIT_REACHED,
    SessionState,
)
from smart_agent.tools.context import SessionContext, create_context_tools
from smart_agent.tools.executor import ToolExecutor
from smart_agent.tools.registry import ToolRegistry

if TYPE_CHECKING:
    from smart_agent.agent import AgentRuntime

logger = logging.getLogger(__name__)

# Session collaborators stashed in ctx for the duration of an invocation
CTX_EMITTER = "__emitter"
CTX_DEBUG_SESSION = "__debug_session"


class Step(str, Enum):
    RESOLVE = "resolve"
    SUMMARIZE = "summarize"
    AGENT = "agent"
    TOOLS = "tools"
    FINALIZE = "finalize"
    END = "end"


def _summarize_or_agent(
    state: SessionState,
    last_step: Step,
    runtime: "AgentRuntime",
    summarizer: ContextSummarizer | None,
    just_summarized: bool,
) -> Step:
    if (
        summarizer is not None
        and summarizer.enabled
        and not just_summarized
        and last_step is not Step.SUMMARIZE
        and summarizer.should_summarize(state, runtime).should_summarize
    ):
        return Step.SUMMARIZE
    return Step.AGENT


def decide(
    state: SessionState,
    last_step: Step,
    runtime: "AgentRuntime",
    summarizer: ContextSummarizer | None = None,
    just_summarized: bool = False,
) -> Step:
    """Pick the step that follows ``last_step``.

    Args:
        state: Session state produced by ``last_step``
        last_step: The step that just ran
        runtime: Active agent runtime
        summarizer: Summarizer, or None when summarization is off
        just_summarized: Summarization ran immediately before; never
            summarize twice in a row

    Returns:
        The next step (END stops the loop)
    """
    limit = runtime.limits.max_tool_calls

    if last_step is Step.END:
        return Step.END

    if last_step is Step.AGENT:
        if state.ctx.get(FINALIZED_DUE_TO_TOOL_LIMIT):
            return Step.END
        if not get_tool_calls(last_message(state.messages)):
            return Step.END
        if state.tool_call_count >= limit:
            return Step.FINALIZE
        return Step.TOOLS

    if last_step is Step.TOOLS:
        if state.ctx.get(FINALIZED_DUE_TO_STRUCTURED_OUTPUT):
            return Step.END
        if state.tool_call_count >= limit:
            return Step.FINALIZE

    return _summarize_or_agent(state, last_step, runtime, summarizer, just_summarized)


class AgentLoop:
    """Drives one invocation from RESOLVE to END.

    Usage:
        loop = AgentLoop(default_runtime, AgentNode(), session)
        state = await loop.run(state)
    """

    def __init__(
        self,
        default_runtime: "AgentRuntime",
        agent_node: AgentNode,
        session: SessionContext,
    ) -> None:
        self.default_runtime = default_runtime
        self.agent_node = agent_node
        self.session = session
        self._registries: dict[int, ToolRegistry] = {}

    def tools_for(self, runtime: "AgentRuntime") -> ToolRegistry:
        """Runtime tools plus context tools bound to this invocation's session."""
        key = id(runtime)
        if key not in self._registries:
            context_tools = create_context_tools(
                self.session,
                planning_enabled=runtime.use_todo_list,
                output_schema=runtime.output_schema,
            )
            self._registries[key] = runtime.tools.merged(context_tools)
        return self._registries[key]

    async def _skip_unexecuted(
        self, state: SessionState, emitter: EventEmitter, reason: str
    ) -> SessionState:
        """Answer the last turn's tool calls as skipped and report each one."""
        for call in get_tool_calls(last_message(state.messages)):
            await emitter.emit(
                ToolCallEvent(
                    tool_name=call.name,
                    tool_call_id=call.id,
                    phase="skipped",
                    args=call.args,
                    reason=reason,
                )
            )
        skipped = skip_unanswered_calls(state.messages)
        if not skipped:
            return state
        return state.evolve(messages=[*state.messages, *skipped])

    async def run(self, state: SessionState) -> SessionState:
        emitter: EventEmitter = state.ctx.get(CTX_EMITTER) or self.session.emitter
        debug: DebugSession | None = state.ctx.get(CTX_DEBUG_SESSION)

        state = resolve_runtime(state, self.default_runtime)
        self.session.state = state
        ceiling = state.agent.limits.iteration_ceiling
        last_step = Step.RESOLVE
        iterations = 1

        logger.info(
            f"Starting agent loop for session {self.session.session_id} "
            f"(agent={state.agent.name}, max_tool_calls={state.agent.limits.max_tool_calls})"
        )

        while True:
            runtime = state.agent
            next_step = decide(
                state,
                last_step,
                runtime,
                runtime.summarizer,
                just_summarized=last_step is Step.SUMMARIZE,
            )
            logger.debug(f"Loop step {iterations}: {last_step.value} -> {next_step.value}")

            if next_step is Step.END:
                if last_step is Step.AGENT and state.ctx.get(FINALIZED_DUE_TO_TOOL_LIMIT):
                    state = await self._skip_unexecuted(state, emitter, "finalized")
                    self.session.state = state
                break

            if iterations >= ceiling:
                logger.warning(
                    f"Iteration ceiling ({ceiling}) reached for session "
                    f"{self.session.session_id}, stopping"
                )
                state = state.evolve(
                    messages=[*state.messages, *skip_unanswered_calls(state.messages)],
                    ctx={**state.ctx, ITERATION_LIMIT_REACHED: True},
                )
                break
            iterations += 1

            if next_step is Step.SUMMARIZE:
                state = await summarize_context(state, runtime, runtime.summarizer, emitter)
            elif next_step is Step.AGENT:
                state = await self.agent_node(state, runtime, self.tools_for(runtime), debug)
            elif next_step is Step.TOOLS:
                executor = ToolExecutor(self.tools_for(runtime), runtime.limits, emitter, self.session)
                state = await executor.execute(state)
                if state.agent is not runtime:
                    # Never lower the ceiling on handoff
                    ceiling = max(ceiling, state.agent.limits.iteration_ceiling)
            elif next_step is Step.FINALIZE:
                if last_step is Step.AGENT:
                    # Budget was spent before this turn's calls could run
                    state = await self._skip_unexecuted(state, emitter, "tool_limit")
                state = finalize_for_tool_limit(state)

            self.session.state = state
            last_step = next_step

        logger.info(
            f"Agent loop completed after {iterations} steps "
            f"({state.tool_call_count} tool call(s))"
        )
        return state
