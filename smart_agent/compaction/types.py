"""Type definitions for the compaction module.

Decision and result types are immutable (frozen) so that a decision made
before a turn cannot drift while the turn runs.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from smart_agent.state import SessionState, ToolExecutionRecord


class SummaryStatus(Enum):
    """Status of a summarization run.

    Attributes:
        NOT_NEEDED: No unsummarized records to archive
        APPLIED: Records were archived and a summary was written
        SKIPPED: Summarization is disabled
    """

    NOT_NEEDED = auto()
    APPLIED = auto()
    SKIPPED = auto()


@dataclass(frozen=True)
class SummaryDecision:
    """Decision from the should_summarize check.

    Attributes:
        should_summarize: Whether the context must be summarized now
        reason: Human-readable explanation of the decision
        current_tokens: Estimated tokens of the session messages
        limit_tokens: Threshold that was compared against
        target_tokens: Size the context should be brought down to
    """

    should_summarize: bool
    reason: str
    current_tokens: int
    limit_tokens: int
    target_tokens: int


@dataclass(frozen=True)
class SummaryRequest:
    """Input handed to a summary policy.

    Attributes:
        records: Records being archived, oldest first
        max_tokens: The summary must stay under this many tokens
        model: The active chat model (used by the model policy)
    """

    records: tuple["ToolExecutionRecord", ...]
    max_tokens: int
    model: Any = None


@dataclass(frozen=True)
class SummaryResult:
    """Final result of a summarization run.

    Attributes:
        status: Final status
        state: Session state after the run (unchanged unless APPLIED)
        archived_count: Records moved to the archive
        tokens_before: Estimated message tokens before the run
        tokens_after: Estimated message tokens after the run
        summary_text: The summary that was written
        policy: Name of the policy that produced the summary
    """

    status: SummaryStatus
    state: "SessionState"
    archived_count: int = 0
    tokens_before: int = 0
    tokens_after: int = 0
    summary_text: str = ""
    policy: str = ""
