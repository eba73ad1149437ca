"""Abstract base class for summary policies.

Defines the interface that all summary policies must implement.
Uses the Strategy pattern so the summarizer does not care how a summary
is produced.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from smart_agent.compaction.types import SummaryRequest


class SummaryPolicy(ABC):
    """Turns a batch of tool execution records into one summary text.

    Design Contract:
        - name must be unique across all policies
        - summarize must not modify the records
        - summarize should not raise; policies that can fail fall back to
          something deterministic

    Example:
        ```python
        class CountPolicy(SummaryPolicy):
            @property
            def name(self) -> str:
                return "count"

            async def summarize(self, request: SummaryRequest) -> str:
                return f"{len(request.records)} tool results archived."
        ```
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this policy."""
        ...

    @abstractmethod
    async def summarize(self, request: "SummaryRequest") -> str:
        """Produce the summary text.

        Args:
            request: Records to summarize and the size the summary must stay under

        Returns:
            Summary text; the summarizer truncates it if it is too large
        """
        ...
