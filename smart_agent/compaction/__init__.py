"""Context summarization for smart-agent.

Keeps the conversation inside its token budget by archiving old tool
results behind a summary. Archived results stay recoverable by execution
id.

Usage:
    ```python
    from smart_agent.compaction import ContextSummarizer, SummarizationConfig

    summarizer = ContextSummarizer(SummarizationConfig(policy="deterministic"))
    decision = summarizer.should_summarize(state, runtime)
    if decision.should_summarize:
        state = (await summarizer.summarize(state, runtime)).state
    ```
"""

from smart_agent.compaction.config import (
    DEFAULT_SUMMARY_PROMPT_TEMPLATE,
    SummarizationConfig,
    load_summarization_config,
)
from smart_agent.compaction.manager import ContextSummarizer
from smart_agent.compaction.token import TokenEstimator
from smart_agent.compaction.types import (
    SummaryDecision,
    SummaryRequest,
    SummaryResult,
    SummaryStatus,
)

__all__ = [
    "ContextSummarizer",
    "DEFAULT_SUMMARY_PROMPT_TEMPLATE",
    "SummarizationConfig",
    "SummaryDecision",
    "SummaryRequest",
    "SummaryResult",
    "SummaryStatus",
    "TokenEstimator",
    "load_summarization_config",
]
