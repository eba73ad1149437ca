"""Configuration for smart-agent."""

import logging
import os
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import yaml

from smart_agent.compaction.config import SummarizationConfig, load_summarization_config
from smart_agent.exceptions import SmartAgentConfigError

logger = logging.getLogger(__name__)

ENV_API_KEY = "SMART_AGENT_API_KEY"
ENV_BASE_URL = "SMART_AGENT_BASE_URL"
ENV_MODEL = "SMART_AGENT_MODEL"

DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_MODEL = "gpt-4o-mini"


@dataclass
class AgentLimits:
    """Hard limits for one agent.

    Attributes:
        max_tool_calls: Tool calls allowed per invocation (cache hits included)
        tool_output_token_limit: Tokens of one tool output shown to the model
            before it is truncated
        context_token_limit: Estimated message tokens that trigger summarization
        summary_token_limit: Target size of the context after summarization
        max_token: Optional absolute cap; also triggers summarization and
            lowers the target
        max_parallel_tools: Tool calls executed concurrently within one turn
    """

    max_tool_calls: int = 10
    tool_output_token_limit: int = 5000
    context_token_limit: int = 60000
    summary_token_limit: int = 50000
    max_token: int | None = None
    max_parallel_tools: int = 1

    def __post_init__(self) -> None:
        for name in (
            "max_tool_calls",
            "tool_output_token_limit",
            "context_token_limit",
            "summary_token_limit",
        ):
            value = getattr(self, name)
            if not isinstance(value, int) or value < 0:
                raise SmartAgentConfigError(
                    f"{name} must be a non-negative integer", field=name, value=value
                )
        if self.max_token is not None and (
            not isinstance(self.max_token, int) or self.max_token <= 0
        ):
            raise SmartAgentConfigError(
                "max_token must be a positive integer", field="max_token", value=self.max_token
            )
        if not isinstance(self.max_parallel_tools, int) or self.max_parallel_tools < 1:
            raise SmartAgentConfigError(
                "max_parallel_tools must be at least 1",
                field="max_parallel_tools",
                value=self.max_parallel_tools,
            )

    @property
    def iteration_ceiling(self) -> int:
        """Hard cap on loop iterations for this limit set."""
        return max(4 * self.max_tool_calls + 10, 60)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DebugOptions:
    """Per-turn debug artifact options.

    Attributes:
        enabled: Write artifacts at all
        path: Directory under which ``<session id>/NN.md`` files are written
            (None = don't write files)
        callback: Called with each debug entry (sync or async)
    """

    enabled: bool = False
    path: str | None = None
    callback: Callable[[dict[str, Any]], Any] | None = None


@dataclass
class ModelEndpointConfig:
    """An OpenAI-compatible endpoint."""

    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    temperature: float = 0.2
    max_tokens: int | None = None
    timeout: float = 120.0
    max_retries: int = 3


@dataclass
class AgentFileConfig:
    """Everything an agent can be configured with from a YAML file."""

    name: str = "agent"
    model: ModelEndpointConfig = field(default_factory=ModelEndpointConfig)
    limits: AgentLimits = field(default_factory=AgentLimits)
    summarization: SummarizationConfig = field(default_factory=SummarizationConfig)
    use_todo_list: bool = False
    system_prompt: str | None = None
    debug: DebugOptions = field(default_factory=DebugOptions)

    def to_dict(self, redact: bool = True) -> dict[str, Any]:
        model = asdict(self.model)
        if redact and model.get("api_key"):
            model["api_key"] = "***"
        return {
            "name": self.name,
            "model": model,
            "limits": self.limits.to_dict(),
            "summarization": asdict(self.summarization),
            "use_todo_list": self.use_todo_list,
            "system_prompt": self.system_prompt,
            "debug": {"enabled": self.debug.enabled, "path": self.debug.path},
        }


def load_limits(data: dict[str, Any] | None) -> AgentLimits:
    """Build AgentLimits from a dict, falling back to defaults for missing keys.

    Raises:
        SmartAgentConfigError: On unknown keys or invalid values
    """
    if not data:
        return AgentLimits()
    known = set(AgentLimits.__dataclass_fields__)
    unknown = set(data) - known
    if unknown:
        raise SmartAgentConfigError(
            f"Unknown limit option(s): {', '.join(sorted(unknown))}"
        )
    return AgentLimits(**data)


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise SmartAgentConfigError(f"Cannot read config file: {e}", path=str(path)) from e
    except yaml.YAMLError as e:
        raise SmartAgentConfigError(f"Invalid YAML in config file: {e}", path=str(path)) from e
    if not isinstance(data, dict):
        raise SmartAgentConfigError("Config file must contain a mapping", path=str(path))
    return data


def load_agent_config(path: str | Path | None = None) -> AgentFileConfig:
    """Load agent configuration from a YAML file and the environment.

    Environment variables override the file:
        SMART_AGENT_API_KEY, SMART_AGENT_BASE_URL, SMART_AGENT_MODEL

    Args:
        path: YAML file (None = defaults plus environment only)

    Returns:
        AgentFileConfig instance
    """
    data: dict[str, Any] = _load_yaml(Path(path)) if path else {}

    model_data = data.get("model") or {}
    if isinstance(model_data, str):
        model_data = {"model": model_data}
    model = ModelEndpointConfig(
        model=model_data.get("model", DEFAULT_MODEL),
        base_url=model_data.get("base_url", DEFAULT_BASE_URL),
        api_key=model_data.get("api_key", ""),
        temperature=model_data.get("temperature", 0.2),
        max_tokens=model_data.get("max_tokens"),
        timeout=model_data.get("timeout", 120.0),
        max_retries=model_data.get("max_retries", 3),
    )
    model.api_key = os.getenv(ENV_API_KEY, model.api_key)
    model.base_url = os.getenv(ENV_BASE_URL, model.base_url)
    model.model = os.getenv(ENV_MODEL, model.model)

    summarization_data = data.get("summarization", True)
    if isinstance(summarization_data, bool):
        summarization_data = {"enabled": summarization_data}
    summarization_data = dict(summarization_data)
    if "summary_policy" in data:
        summarization_data.setdefault("policy", data["summary_policy"])

    debug_data = data.get("debug") or {}
    if isinstance(debug_data, bool):
        debug_data = {"enabled": debug_data}

    config = AgentFileConfig(
        name=data.get("name", "agent"),
        model=model,
        limits=load_limits(data.get("limits")),
        summarization=load_summarization_config(summarization_data),
        use_todo_list=bool(data.get("use_todo_list", False)),
        system_prompt=data.get("system_prompt"),
        debug=DebugOptions(
            enabled=bool(debug_data.get("enabled", False)),
            path=debug_data.get("path"),
        ),
    )
    logger.debug(f"Loaded agent config from {path or 'environment'}: model={model.model}")
    return config
