"""Tests for configuration loading."""

import pytest

from smart_agent.compaction.config import SummarizationConfig
from smart_agent.config import (
    AgentFileConfig,
    AgentLimits,
    load_agent_config,
    load_limits,
)
from smart_agent.exceptions import SmartAgentConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("SMART_AGENT_API_KEY", "SMART_AGENT_BASE_URL", "SMART_AGENT_MODEL"):
        monkeypatch.delenv(name, raising=False)


class TestAgentLimits:
    def test_defaults(self):
        limits = AgentLimits()
        assert limits.max_tool_calls == 10
        assert limits.tool_output_token_limit == 5000
        assert limits.context_token_limit == 60000
        assert limits.summary_token_limit == 50000
        assert limits.max_token is None
        assert limits.max_parallel_tools == 1

    def test_iteration_ceiling(self):
        assert AgentLimits(max_tool_calls=2).iteration_ceiling == 60
        assert AgentLimits(max_tool_calls=20).iteration_ceiling == 90

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_tool_calls": -1},
            {"context_token_limit": "big"},
            {"max_token": 0},
            {"max_parallel_tools": 0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(SmartAgentConfigError):
            AgentLimits(**kwargs)

    def test_load_limits_from_dict(self):
        limits = load_limits({"max_tool_calls": 3, "max_token": 1000})
        assert limits.max_tool_calls == 3
        assert limits.max_token == 1000
        assert limits.context_token_limit == 60000

    def test_load_limits_rejects_unknown_keys(self):
        with pytest.raises(SmartAgentConfigError, match="max_calls"):
            load_limits({"max_calls": 3})


class TestSummarizationConfig:
    def test_unknown_policy(self):
        with pytest.raises(SmartAgentConfigError):
            SummarizationConfig(policy="magic")

    def test_line_chars_minimum(self):
        with pytest.raises(SmartAgentConfigError):
            SummarizationConfig(line_chars=5)


class TestLoadAgentConfig:
    def test_defaults_without_file(self):
        config = load_agent_config()
        assert isinstance(config, AgentFileConfig)
        assert config.model.model == "gpt-4o-mini"
        assert config.summarization.enabled is True
        assert config.debug.enabled is False

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "agent.yaml"
        path.write_text(
            "name: researcher\n"
            "model:\n"
            "  model: local-model\n"
            "  base_url: http://localhost:8000/v1\n"
            "  api_key: secret\n"
            "limits:\n"
            "  max_tool_calls: 4\n"
            "summarization: false\n"
            "use_todo_list: true\n"
            "debug:\n"
            "  enabled: true\n"
            "  path: ./debug\n",
            encoding="utf-8",
        )

        config = load_agent_config(path)

        assert config.name == "researcher"
        assert config.model.model == "local-model"
        assert config.model.base_url == "http://localhost:8000/v1"
        assert config.limits.max_tool_calls == 4
        assert config.summarization.enabled is False
        assert config.use_todo_list is True
        assert config.debug.path == "./debug"

    def test_model_as_string_and_summary_policy(self, tmp_path):
        path = tmp_path / "agent.yaml"
        path.write_text("model: tiny\nsummary_policy: deterministic\n", encoding="utf-8")

        config = load_agent_config(path)

        assert config.model.model == "tiny"
        assert config.summarization.policy == "deterministic"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "agent.yaml"
        path.write_text("model:\n  model: file-model\n  api_key: file-key\n", encoding="utf-8")
        monkeypatch.setenv("SMART_AGENT_API_KEY", "env-key")
        monkeypatch.setenv("SMART_AGENT_MODEL", "env-model")

        config = load_agent_config(path)

        assert config.model.api_key == "env-key"
        assert config.model.model == "env-model"

    def test_to_dict_redacts_api_key(self, monkeypatch):
        monkeypatch.setenv("SMART_AGENT_API_KEY", "secret")
        data = load_agent_config().to_dict()
        assert data["model"]["api_key"] == "***"

    def test_missing_file(self, tmp_path):
        with pytest.raises(SmartAgentConfigError, match="Cannot read"):
            load_agent_config(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("limits: [unclosed\n", encoding="utf-8")
        with pytest.raises(SmartAgentConfigError, match="Invalid YAML"):
            load_agent_config(path)

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(SmartAgentConfigError, match="mapping"):
            load_agent_config(path)
