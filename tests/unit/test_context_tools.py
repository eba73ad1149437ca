"""Tests for the planning, recovery and structured output tools."""

import pytest
from pydantic import BaseModel

from smart_agent.state import (
    FINALIZED_DUE_TO_STRUCTURED_OUTPUT,
    STRUCTURED_OUTPUT_PARSED,
    SessionState,
    ToolExecutionRecord,
)
from smart_agent.tools.context import (
    GET_TOOL_RESPONSE_NAME,
    RESPONSE_TOOL_NAME,
    TODO_TOOL_NAME,
    SessionContext,
    create_context_tools,
)


class Report(BaseModel):
    title: str
    score: int


def tools_by_name(session, **kwargs):
    return {t.name: t for t in create_context_tools(session, **kwargs)}


class TestCreateContextTools:
    def test_default_only_recovery_tool(self):
        names = [t.name for t in create_context_tools(SessionContext(SessionState()))]
        assert names == [GET_TOOL_RESPONSE_NAME]

    def test_all_tools(self):
        tools = create_context_tools(
            SessionContext(SessionState()), planning_enabled=True, output_schema=Report
        )
        assert [t.name for t in tools] == [TODO_TOOL_NAME, GET_TOOL_RESPONSE_NAME, RESPONSE_TOOL_NAME]
        assert all(t.cacheable is False for t in tools)


class TestManageTodoList:
    @pytest.mark.asyncio
    async def test_write_replaces_plan_and_bumps_version(self):
        session = SessionContext(SessionState())
        tool = tools_by_name(session, planning_enabled=True)[TODO_TOOL_NAME]

        result = await tool.run(
            {"operation": "write", "steps": [{"title": "Search"}, {"title": "Answer"}]}
        )
        assert result["ok"] is True
        assert result["plan_version"] == 1

        await tool.run({"operation": "write", "steps": [{"title": "Only step", "status": "in_progress"}]})

        plan = session.state.plan
        assert session.state.plan_version == 2
        assert plan.version == 2
        assert [s.title for s in plan.steps] == ["Only step"]
        assert plan.steps[0].status == "in_progress"
        assert plan.steps[0].index == 0

    @pytest.mark.asyncio
    async def test_write_emits_plan_event(self):
        session = SessionContext(SessionState())
        tool = tools_by_name(session, planning_enabled=True)[TODO_TOOL_NAME]

        await tool.run({"operation": "write", "steps": [{"title": "A"}]})

        events = session.emitter.of_type("plan")
        assert len(events) == 1
        assert events[0].plan_version == 1
        assert events[0].plan["steps"][0]["title"] == "A"

    @pytest.mark.asyncio
    async def test_read(self):
        session = SessionContext(SessionState())
        tool = tools_by_name(session, planning_enabled=True)[TODO_TOOL_NAME]

        assert (await tool.run({"operation": "read"}))["plan"] is None
        await tool.run({"operation": "write", "steps": [{"title": "A"}]})
        assert (await tool.run({"operation": "read"}))["plan"]["version"] == 1

    @pytest.mark.asyncio
    async def test_write_without_steps(self):
        session = SessionContext(SessionState())
        tool = tools_by_name(session, planning_enabled=True)[TODO_TOOL_NAME]

        result = await tool.run({"operation": "write"})

        assert result["error"] == "invalid_arguments"
        assert session.state.plan_version == 0


class TestGetToolResponse:
    @pytest.mark.asyncio
    async def test_returns_full_output_from_archive(self):
        record = ToolExecutionRecord(
            execution_id="exec_old",
            tool_name="search",
            args={},
            output={"rows": list(range(100))},
            tool_call_id="c1",
            summarized=True,
        )
        session = SessionContext(SessionState(tool_history_archived=[record]))
        tool = tools_by_name(session)[GET_TOOL_RESPONSE_NAME]

        assert await tool.run({"execution_id": "exec_old"}) == {"rows": list(range(100))}

    @pytest.mark.asyncio
    async def test_unknown_id(self):
        session = SessionContext(SessionState())
        tool = tools_by_name(session)[GET_TOOL_RESPONSE_NAME]

        result = await tool.run({"execution_id": "exec_nope"})

        assert result["error"] == "not_found"
        assert result["execution_id"] == "exec_nope"


class TestResponseTool:
    @pytest.mark.asyncio
    async def test_valid_output_sets_flags(self):
        session = SessionContext(SessionState())
        tool = tools_by_name(session, output_schema=Report)[RESPONSE_TOOL_NAME]

        result = await tool.run({"title": "Q3", "score": "7"})

        assert result["ok"] is True
        assert session.state.ctx[STRUCTURED_OUTPUT_PARSED] == {"title": "Q3", "score": 7}
        assert session.state.ctx[FINALIZED_DUE_TO_STRUCTURED_OUTPUT] is True

    @pytest.mark.asyncio
    async def test_invalid_output_leaves_state(self):
        session = SessionContext(SessionState())
        tool = tools_by_name(session, output_schema=Report)[RESPONSE_TOOL_NAME]

        result = await tool.run({"title": "Q3", "score": "high"})

        assert result["error"] == "validation_failed"
        assert STRUCTURED_OUTPUT_PARSED not in session.state.ctx

    @pytest.mark.asyncio
    async def test_non_object_schema_is_wrapped(self):
        session = SessionContext(SessionState())
        tool = tools_by_name(session, output_schema=list[int])[RESPONSE_TOOL_NAME]

        assert tool.parameters["required"] == ["value"]
        await tool.run({"value": [1, "2"]})

        assert session.state.ctx[STRUCTURED_OUTPUT_PARSED] == [1, 2]
