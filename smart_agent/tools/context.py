"""Context tools: planning, archived output recovery, structured output.

These tools read and write the live session state through a shared
``SessionContext`` handed to their constructors.
"""

import asyncio
import logging
import uuid
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from smart_agent.events import EventEmitter, PlanEvent
from smart_agent.state import (
    FINALIZED_DUE_TO_STRUCTURED_OUTPUT,
    STRUCTURED_OUTPUT_PARSED,
    Plan,
    PlanStep,
    SessionState,
)
from smart_agent.structured import output_json_schema, validate_output
from smart_agent.tools.base import Tool, create_smart_tool

logger = logging.getLogger(__name__)

TODO_TOOL_NAME = "manage_todo_list"
GET_TOOL_RESPONSE_NAME = "get_tool_response"
RESPONSE_TOOL_NAME = "response"
CONTEXT_TOOL_NAMES = frozenset({TODO_TOOL_NAME, GET_TOOL_RESPONSE_NAME, RESPONSE_TOOL_NAME})


class SessionContext:
    """Live session shared by the loop and the context tools.

    Attributes:
        state: Latest session state; steps publish their result here
        lock: Serializes state writes made from concurrently running tools
        emitter: Event sink for the invocation
        session_id: Identifier used for debug artifacts and error context
    """

    def __init__(
        self,
        state: SessionState,
        emitter: EventEmitter | None = None,
        session_id: str | None = None,
    ) -> None:
        self.state = state
        self.lock = asyncio.Lock()
        self.emitter = emitter or EventEmitter()
        self.session_id = session_id or uuid.uuid4().hex[:12]

    def set_flag(self, key: str, value: Any) -> None:
        self.state = self.state.evolve(ctx={**self.state.ctx, key: value})


class TodoStep(BaseModel):
    title: str
    status: Literal["pending", "in_progress", "completed", "blocked"] = "pending"
    description: str = ""
    evidence: str | None = None


class ManageTodoListArgs(BaseModel):
    """Read or replace the task plan."""

    operation: Literal["write", "read"]
    steps: list[TodoStep] | None = Field(
        default=None, description="Full list of steps (required for write)"
    )


class GetToolResponseArgs(BaseModel):
    """Fetch the full original output of a previous tool call."""

    execution_id: str = Field(description="Execution id shown in the tool result or summary")


def _render_plan(plan: Plan | None) -> dict[str, Any]:
    if plan is None:
        return {"plan": None, "message": "No plan has been written yet."}
    return {"plan": plan.to_dict()}


def _todo_tool(session: SessionContext) -> Tool:
    async def manage_todo_list(args: dict[str, Any]) -> dict[str, Any]:
        if args["operation"] == "read":
            return _render_plan(session.state.plan)

        if args.get("steps") is None:
            return {"error": "invalid_arguments", "message": "steps is required for write"}

        async with session.lock:
            version = session.state.plan_version + 1
            plan = Plan(
                version=version,
                steps=[PlanStep(index=i, **step) for i, step in enumerate(args["steps"])],
            )
            session.state = session.state.evolve(plan=plan, plan_version=version)

        logger.debug(f"Plan updated to version {version} with {len(plan.steps)} steps")
        await session.emitter.emit(PlanEvent(plan=plan.to_dict(), plan_version=version))
        return {"ok": True, "plan_version": version, "plan": plan.to_dict()}

    return create_smart_tool(
        TODO_TOOL_NAME,
        manage_todo_list,
        description=(
            "Maintain a short task plan. operation='write' replaces the whole plan "
            "with the given steps; operation='read' returns the current plan."
        ),
        schema=ManageTodoListArgs,
        cacheable=False,
    )


def _get_tool_response_tool(session: SessionContext) -> Tool:
    async def get_tool_response(args: dict[str, Any]) -> Any:
        execution_id = args["execution_id"]
        record = session.state.find_record(execution_id)
        if record is None:
            return {
                "error": "not_found",
                "execution_id": execution_id,
                "message": f"No tool execution with id {execution_id}",
            }
        return record.output

    return create_smart_tool(
        GET_TOOL_RESPONSE_NAME,
        get_tool_response,
        description=(
            "Return the full original output of an earlier tool call, including "
            "calls whose output was summarized or truncated."
        ),
        schema=GetToolResponseArgs,
        cacheable=False,
    )


def _response_tool(session: SessionContext, output_schema: Any) -> Tool:
    json_schema = output_json_schema(output_schema)
    wrapped = json_schema.get("type") != "object"
    parameters = (
        {"type": "object", "properties": {"value": json_schema}, "required": ["value"]}
        if wrapped
        else json_schema
    )

    async def response(args: dict[str, Any]) -> dict[str, Any]:
        value = args.get("value") if wrapped else args
        try:
            parsed = validate_output(output_schema, value)
        except ValidationError as e:
            return {"error": "validation_failed", "message": str(e)}

        async with session.lock:
            session.set_flag(STRUCTURED_OUTPUT_PARSED, parsed)
            session.set_flag(FINALIZED_DUE_TO_STRUCTURED_OUTPUT, True)
        return {"ok": True, "message": "Structured output accepted."}

    return create_smart_tool(
        RESPONSE_TOOL_NAME,
        response,
        description="Submit the final answer as structured data matching the output schema.",
        schema=parameters,
        cacheable=False,
    )


def create_context_tools(
    session: SessionContext,
    planning_enabled: bool = False,
    output_schema: Any = None,
) -> list[Tool]:
    """Build the context tools for one invocation of a runtime."""
    tools = [_get_tool_response_tool(session)]
    if planning_enabled:
        tools.insert(0, _todo_tool(session))
    if output_schema is not None:
        tools.append(_response_tool(session, output_schema))
    return tools
