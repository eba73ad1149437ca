"""Configuration for the summarization policies.

This module defines the summarization options and provides a function to
load them from dictionaries.
"""

from dataclasses import dataclass
from typing import Any

from smart_agent.exceptions import SmartAgentConfigError

SUMMARY_POLICIES = ("model", "deterministic")


@dataclass
class SummarizationConfig:
    """Configuration for context summarization.

    Attributes:
        enabled: Master switch for summarization
        policy: "model" (ask the active model) or "deterministic"
        prompt_template: Custom prompt template (empty = use default);
            must contain ``{records}``
        line_chars: Characters of output kept per record by the
            deterministic policy
    """

    enabled: bool = True
    policy: str = "model"
    prompt_template: str = ""
    line_chars: int = 200

    def __post_init__(self) -> None:
        if self.policy not in SUMMARY_POLICIES:
            raise SmartAgentConfigError(
                f"Unknown summary policy: {self.policy!r}",
                valid=", ".join(SUMMARY_POLICIES),
            )
        if self.line_chars < 20:
            raise SmartAgentConfigError("line_chars must be at least 20", value=self.line_chars)


# Default summary prompt template (structured for consistent output)
DEFAULT_SUMMARY_PROMPT_TEMPLATE = """Summarize the following tool results so the conversation can continue without them.

## Findings
[Facts, values and conclusions established by the tool results - be specific]

## Sources
[Which tool produced each finding, with its execution id]

## Open Questions
[Anything the results left unresolved]

---

## Tool Results

{records}

---

Write the summary now, following the structure above. Keep it shorter than the results.
"""


def load_summarization_config(config_data: dict[str, Any] | None) -> SummarizationConfig:
    """Load summarization configuration from a dictionary.

    Args:
        config_data: Configuration dictionary (the ``summarization`` section)

    Returns:
        SummarizationConfig with values from config_data, falling back to
        defaults for missing values
    """
    if not config_data:
        return SummarizationConfig()

    return SummarizationConfig(
        enabled=config_data.get("enabled", True),
        policy=config_data.get("policy", "model"),
        prompt_template=config_data.get("prompt_template", ""),
        line_chars=config_data.get("line_chars", 200),
    )
