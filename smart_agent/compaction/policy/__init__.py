"""Summary policies."""

from smart_agent.compaction.config import SummarizationConfig
from smart_agent.compaction.policy.base import SummaryPolicy
from smart_agent.compaction.policy.deterministic import DeterministicSummaryPolicy
from smart_agent.compaction.policy.model import ModelSummaryPolicy


def create_policy(config: SummarizationConfig) -> SummaryPolicy:
    """Build the policy named by the configuration."""
    if config.policy == "deterministic":
        return DeterministicSummaryPolicy(line_chars=config.line_chars)
    return ModelSummaryPolicy(prompt_template=config.prompt_template, line_chars=config.line_chars)


__all__ = [
    "DeterministicSummaryPolicy",
    "ModelSummaryPolicy",
    "SummaryPolicy",
    "create_policy",
]
