"""Tests for the loop transition function."""

import pytest

from smart_agent.agent import AgentRuntime
from smart_agent.compaction.config import SummarizationConfig
from smart_agent.compaction.manager import ContextSummarizer
from smart_agent.config import AgentLimits
from smart_agent.loop import Step, decide
from smart_agent.messages import assistant, human, tool_message
from smart_agent.state import (
    FINALIZED_DUE_TO_STRUCTURED_OUTPUT,
    FINALIZED_DUE_TO_TOOL_LIMIT,
    SessionState,
    ToolExecutionRecord,
)
from smart_agent.tools.registry import ToolRegistry


@pytest.fixture
def runtime(make_model):
    return AgentRuntime(
        name="agent",
        model=make_model(),
        tools=ToolRegistry(),
        limits=AgentLimits(max_tool_calls=3, context_token_limit=100, summary_token_limit=50),
    )


@pytest.fixture
def summarizer():
    return ContextSummarizer(SummarizationConfig(policy="deterministic"))


def with_call(**kwargs):
    return SessionState(
        messages=[human("go"), assistant("", tool_calls=[{"id": "c1", "name": "search", "args": {}}])],
        **kwargs,
    )


def oversized_state():
    record = ToolExecutionRecord(
        execution_id="exec_1", tool_name="search", args={}, output="x" * 2000, tool_call_id="c1"
    )
    return SessionState(
        messages=[
            human("go"),
            assistant("", tool_calls=[{"id": "c1", "name": "search", "args": {}}]),
            tool_message("x" * 2000, "c1", "search", execution_id="exec_1"),
        ],
        tool_history=[record],
        tool_call_count=1,
    )


class TestDecideAfterAgent:
    def test_no_tool_calls_ends(self, runtime):
        state = SessionState(messages=[human("go"), assistant("answer")])
        assert decide(state, Step.AGENT, runtime) is Step.END

    def test_tool_calls_go_to_tools(self, runtime):
        assert decide(with_call(), Step.AGENT, runtime) is Step.TOOLS

    def test_budget_spent_finalizes(self, runtime):
        assert decide(with_call(tool_call_count=3), Step.AGENT, runtime) is Step.FINALIZE

    def test_after_finalize_flag_ends_even_with_calls(self, runtime):
        state = with_call(ctx={FINALIZED_DUE_TO_TOOL_LIMIT: True})
        assert decide(state, Step.AGENT, runtime) is Step.END


class TestDecideAfterTools:
    def test_structured_output_ends(self, runtime):
        state = with_call(ctx={FINALIZED_DUE_TO_STRUCTURED_OUTPUT: True})
        assert decide(state, Step.TOOLS, runtime) is Step.END

    def test_budget_spent_finalizes(self, runtime):
        assert decide(with_call(tool_call_count=3), Step.TOOLS, runtime) is Step.FINALIZE

    def test_back_to_agent(self, runtime):
        assert decide(with_call(tool_call_count=1), Step.TOOLS, runtime) is Step.AGENT

    def test_summarize_when_over_limit(self, runtime, summarizer):
        assert decide(oversized_state(), Step.TOOLS, runtime, summarizer) is Step.SUMMARIZE


class TestDecideSummarize:
    def test_after_resolve_without_summarizer(self, runtime):
        assert decide(oversized_state(), Step.RESOLVE, runtime) is Step.AGENT

    def test_after_resolve_over_limit(self, runtime, summarizer):
        assert decide(oversized_state(), Step.RESOLVE, runtime, summarizer) is Step.SUMMARIZE

    def test_never_twice_in_a_row(self, runtime, summarizer):
        state = oversized_state()
        assert decide(state, Step.SUMMARIZE, runtime, summarizer, just_summarized=True) is Step.AGENT

    def test_after_finalize_goes_to_agent(self, runtime):
        state = with_call(tool_call_count=3, ctx={FINALIZED_DUE_TO_TOOL_LIMIT: True})
        assert decide(state, Step.FINALIZE, runtime) is Step.AGENT

    def test_end_is_terminal(self, runtime):
        assert decide(with_call(), Step.END, runtime) is Step.END

    def test_zero_budget_finalizes_first_call(self, make_model):
        runtime = AgentRuntime(
            name="agent",
            model=make_model(),
            tools=ToolRegistry(),
            limits=AgentLimits(max_tool_calls=0),
        )
        assert decide(with_call(), Step.AGENT, runtime) is Step.FINALIZE
