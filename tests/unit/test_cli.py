"""Tests for the smart-agent CLI."""

import io
import sys
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import yaml
from rich.console import Console

from smart_agent.cli.exit_codes import ExitCode
from smart_agent.cli.main import build_parser, main, run_agent
from smart_agent.cli.output import EventPrinter
from smart_agent.config import AgentFileConfig
from smart_agent.events import (
    FinalAnswerEvent,
    HandoffEvent,
    MetadataEvent,
    PlanEvent,
    SummarizationEvent,
    ToolCallEvent,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SMART_AGENT_API_KEY", "SMART_AGENT_BASE_URL", "SMART_AGENT_MODEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    monkeypatch.setattr(
        sys.modules["smart_agent.cli.main"], "setup_logging", lambda *args, **kwargs: None
    )


def printer():
    buffer = io.StringIO()
    return EventPrinter(Console(file=buffer, width=120), show_usage=True), buffer


class TestParser:
    def test_run_arguments(self):
        args = build_parser().parse_args(["run", "hello", "--max-tool-calls", "3", "--usage"])
        assert args.command == "run"
        assert args.prompt == "hello"
        assert args.max_tool_calls == 3
        assert args.usage is True

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    def test_config_command_prints_yaml(self, tmp_path, capsys):
        path = tmp_path / "agent.yaml"
        path.write_text("name: helper\nmodel:\n  api_key: secret\n", encoding="utf-8")

        code = main(["config", "--config", str(path)])

        assert code == ExitCode.SUCCESS
        data = yaml.safe_load(capsys.readouterr().out)
        assert data["name"] == "helper"
        assert data["model"]["api_key"] == "***"

    def test_missing_config_file(self, tmp_path):
        assert main(["config", "--config", str(tmp_path / "nope.yaml")]) == ExitCode.CONFIG_ERROR

    def test_empty_prompt(self, monkeypatch):
        monkeypatch.setattr("sys.stdin", io.StringIO(""))
        assert main(["run"]) == ExitCode.ERROR

    def test_run_overrides_max_tool_calls(self):
        with patch("smart_agent.cli.main.run_agent", AsyncMock(return_value=ExitCode.SUCCESS)) as run:
            code = main(["run", "hello", "--max-tool-calls", "2"])

        assert code == ExitCode.SUCCESS
        config = run.call_args.args[0]
        assert config.limits.max_tool_calls == 2
        assert run.call_args.args[1] == "hello"


class TestRunAgent:
    @pytest.mark.asyncio
    async def test_prints_final_answer(self, make_model):
        model_cls = MagicMock(return_value=make_model(["**Paris**"]))
        model_cls.close_all_sessions = AsyncMock()
        buffer = io.StringIO()

        with patch("smart_agent.cli.main.OpenAICompatibleModel", model_cls):
            code = await run_agent(AgentFileConfig(), "Capital?", Console(file=buffer), False)

        assert code == ExitCode.SUCCESS
        assert "Paris" in buffer.getvalue()
        model_cls.close_all_sessions.assert_awaited_once()


class TestEventPrinter:
    def test_tool_events(self):
        p, buffer = printer()
        p(ToolCallEvent(tool_name="search", tool_call_id="c1", phase="start"))
        p(ToolCallEvent(tool_name="search", tool_call_id="c1", phase="success", args={"q": "x"}, duration_ms=1500))
        p(ToolCallEvent(tool_name="fetch", tool_call_id="c2", phase="error", error="boom"))
        p(ToolCallEvent(tool_name="fetch", tool_call_id="c3", phase="skipped", reason="tool_limit"))

        out = buffer.getvalue()
        assert "search" in out
        assert "1.5s" in out
        assert "boom" in out
        assert "skipped (tool_limit)" in out

    def test_other_events(self):
        p, buffer = printer()
        p(PlanEvent(plan={"steps": [{"title": "Look up", "status": "completed"}]}, plan_version=1))
        p(SummarizationEvent(archived_count=2, tokens_before=900, tokens_after=100, summary_tokens=40, policy="model"))
        p(HandoffEvent(from_agent="triage", to_agent="billing", tool_name="handoff_to_billing"))
        p(MetadataEvent(usage={"totals": {"m": {"input": 12, "output": 3}}}, tool_call_count=1))
        p(FinalAnswerEvent(content="", output={"answer": 42}))

        out = buffer.getvalue()
        assert "Plan v1" in out
        assert "Look up" in out
        assert "Summarized" in out
        assert "billing" in out
        assert "12 in / 3 out" in out
        assert "42" in out
