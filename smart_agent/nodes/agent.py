"""Agent turn: one model call over the current conversation."""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from smart_agent.debug import DebugSession
from smart_agent.messages import get_tool_calls, system
from smart_agent.model import get_model_name
from smart_agent.prompts import build_system_prompt
from smart_agent.state import SessionState
from smart_agent.tools.registry import ToolRegistry
from smart_agent.usage import extract_raw_usage

if TYPE_CHECKING:
    from smart_agent.agent import AgentRuntime

logger = logging.getLogger(__name__)

UsageConverter = Callable[[dict[str, Any], SessionState, Any], Any]


class AgentNode:
    """Runs one model turn.

    The system prompt is built fresh for the turn and passed to the model
    only; the session keeps the response and its usage. Model exceptions
    propagate to the caller.
    """

    def __init__(self, usage_converter: UsageConverter | None = None) -> None:
        self._usage_converter = usage_converter

    async def __call__(
        self,
        state: SessionState,
        runtime: "AgentRuntime",
        tools: ToolRegistry,
        debug: DebugSession | None = None,
    ) -> SessionState:
        prompt = build_system_prompt(
            runtime.system_prompt,
            planning_enabled=runtime.use_todo_list,
            structured_output=runtime.output_schema is not None,
        )
        request = [system(prompt), *state.messages]

        model = runtime.model.bind_tools(tools.get_llm_schemas())
        logger.debug(
            f"Agent {runtime.name} calling model with {len(request)} messages "
            f"and {len(tools)} tools"
        )
        response = await model.invoke(request)
        response = dict(response)
        response["role"] = "assistant"
        response.setdefault("content", "")

        if self._usage_converter is not None:
            raw_usage = self._usage_converter(response, state, runtime.model)
        else:
            raw_usage = extract_raw_usage(response, model)

        model_name = get_model_name(runtime.model)
        usage = state.usage.copy()
        turn = sum(1 for m in state.messages if m.get("role") == "assistant") + 1
        if raw_usage is not None and usage.record(model_name, raw_usage, turn) is None:
            logger.debug(f"Unrecognized usage shape from {model_name}: {raw_usage!r}")

        calls = get_tool_calls(response)
        logger.debug(f"Agent {runtime.name} turn {turn}: {len(calls)} tool call(s) requested")

        if debug is not None:
            await debug.record_turn(
                model_name=model_name,
                agent_name=runtime.name,
                limits=runtime.limits.to_dict(),
                usage=raw_usage,
                tools=[
                    {"name": t.name, "description": t.description, "parameters": t.parameters}
                    for t in tools
                ],
                messages=[*request, response],
            )

        return state.evolve(messages=[*state.messages, response], usage=usage)
