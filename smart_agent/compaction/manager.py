"""Context summarizer.

Archives the oldest tool results once the conversation outgrows its token
budget, replacing their message content with one summary.
"""

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from smart_agent.compaction.config import SummarizationConfig
from smart_agent.compaction.policy import SummaryPolicy, create_policy
from smart_agent.compaction.token import TokenEstimator
from smart_agent.compaction.types import (
    SummaryDecision,
    SummaryRequest,
    SummaryResult,
    SummaryStatus,
)
from smart_agent.events import EventEmitter, SummarizationEvent
from smart_agent.messages import content_to_text

if TYPE_CHECKING:
    from smart_agent.agent import AgentRuntime
    from smart_agent.config import AgentLimits
    from smart_agent.state import SessionState, ToolExecutionRecord

logger = logging.getLogger(__name__)

# Room kept for the summary when deciding how much to archive
SUMMARY_RESERVE_TOKENS = 256


def archived_notice(execution_id: str) -> str:
    return (
        f"[Tool result {execution_id} archived and summarized earlier in the conversation. "
        f"Call get_tool_response to read it.]"
    )


def clip_to_tokens(text: str, max_tokens: int) -> str:
    """Cut text until its estimate is at most max_tokens."""
    if TokenEstimator.estimate_text(text) <= max_tokens:
        return text
    if max_tokens <= 0:
        return ""
    clipped = text[: max_tokens * 4]
    while clipped and TokenEstimator.estimate_text(clipped + "...") > max_tokens:
        clipped = clipped[: int(len(clipped) * 0.9)]
    return clipped + "..." if clipped else ""


def summary_target(limits: "AgentLimits") -> int:
    if limits.max_token is not None:
        return min(limits.summary_token_limit, limits.max_token)
    return limits.summary_token_limit


class ContextSummarizer:
    """Decides when to summarize and applies summarization to a session state.

    Usage:
        ```python
        summarizer = ContextSummarizer(SummarizationConfig())

        decision = summarizer.should_summarize(state, runtime)
        if decision.should_summarize:
            result = await summarizer.summarize(state, runtime, emitter)
            state = result.state
        ```

    Guarantees:
        - Records are selected oldest first and never twice
        - The summary is always smaller than the content it replaces
        - Messages are never removed or reordered; only tool message
          content is rewritten
    """

    def __init__(
        self,
        config: SummarizationConfig | None = None,
        policy: SummaryPolicy | None = None,
    ) -> None:
        self._config = config or SummarizationConfig()
        self._policy = policy or create_policy(self._config)

    @property
    def enabled(self) -> bool:
        return self._config.enabled

    @property
    def policy(self) -> SummaryPolicy:
        return self._policy

    def should_summarize(self, state: "SessionState", runtime: "AgentRuntime") -> SummaryDecision:
        """Compare the estimated context size with the runtime's limits."""
        limits = runtime.limits
        target = summary_target(limits)

        if not self.enabled:
            return SummaryDecision(False, "Summarization is disabled", 0, 0, target)

        current = TokenEstimator.estimate_messages(state.messages)
        limit = limits.context_token_limit
        if limits.max_token is not None:
            limit = min(limit, limits.max_token)

        if current <= limit:
            return SummaryDecision(
                False, f"Context within limit ({current}/{limit} tokens)", current, limit, target
            )

        if not any(not r.summarized for r in state.tool_history):
            return SummaryDecision(
                False, "Context over limit but no tool results to archive", current, limit, target
            )

        return SummaryDecision(
            True, f"Context over limit ({current}/{limit} tokens)", current, limit, target
        )

    def _select(
        self,
        state: "SessionState",
        candidates: list["ToolExecutionRecord"],
        message_index: dict[str, int],
        tokens_before: int,
        target: int,
    ) -> tuple[list["ToolExecutionRecord"], int, int]:
        """FIFO selection until the projected context fits the target.

        The first selected message receives the summary, so its slot is
        projected at the summary budget instead of an archived notice.

        Returns:
            (selected records, content tokens of the selected messages,
            token budget for the summary)
        """
        selected: list[ToolExecutionRecord] = []
        batch_tokens = 0
        # Projected context size with the summary slot still empty
        rest = tokens_before
        has_summary_slot = False

        for record in candidates:
            index = message_index.get(record.execution_id)
            if index is not None:
                content_tokens = TokenEstimator.estimate_text(
                    content_to_text(state.messages[index].get("content"))
                )
                rest -= content_tokens
                if has_summary_slot:
                    rest += TokenEstimator.estimate_text(archived_notice(record.execution_id))
                has_summary_slot = True
            else:
                content_tokens = record.original_token_count or 0

            selected.append(record)
            batch_tokens += content_tokens
            if rest + min(batch_tokens - 1, SUMMARY_RESERVE_TOKENS) <= target:
                break

        budget = min(batch_tokens - 1, max(SUMMARY_RESERVE_TOKENS, target - rest))
        return selected, batch_tokens, max(0, budget)

    async def summarize(
        self,
        state: "SessionState",
        runtime: "AgentRuntime",
        emitter: EventEmitter | None = None,
    ) -> SummaryResult:
        """Archive the oldest tool results and write one summary.

        A run with nothing to archive returns the state unchanged and emits
        nothing.
        """
        if not self.enabled:
            return SummaryResult(status=SummaryStatus.SKIPPED, state=state)

        candidates = [r for r in state.tool_history if not r.summarized]
        if not candidates:
            logger.debug("Summarization requested but there are no unsummarized records")
            return SummaryResult(status=SummaryStatus.NOT_NEEDED, state=state)

        tokens_before = TokenEstimator.estimate_messages(state.messages)
        target = summary_target(runtime.limits)

        message_index: dict[str, int] = {}
        for i, msg in enumerate(state.messages):
            if msg.get("role") == "tool" and msg.get("execution_id"):
                message_index[msg["execution_id"]] = i

        selected, batch_tokens, budget = self._select(
            state, candidates, message_index, tokens_before, target
        )

        request = SummaryRequest(
            records=tuple(selected),
            max_tokens=max(1, budget),
            model=runtime.model,
        )
        summary = await self._policy.summarize(request)
        if TokenEstimator.estimate_text(summary) > budget:
            logger.debug(
                f"Summary over its budget ({budget} tokens, batch {batch_tokens}), truncating"
            )
            summary = clip_to_tokens(summary, budget)

        messages = list(state.messages)
        indexes = sorted(
            message_index[r.execution_id] for r in selected if r.execution_id in message_index
        )
        for position, index in enumerate(indexes):
            msg = messages[index]
            content = summary if position == 0 else archived_notice(msg["execution_id"])
            messages[index] = {**msg, "content": content, "summarized": True}

        selected_ids = {r.execution_id for r in selected}
        archived = [replace(r, summarized=True) for r in selected]
        new_state = state.evolve(
            messages=messages,
            tool_history=[r for r in state.tool_history if r.execution_id not in selected_ids],
            tool_history_archived=[*state.tool_history_archived, *archived],
            summaries=[*state.summaries, summary],
        )
        tokens_after = TokenEstimator.estimate_messages(messages)

        logger.info(
            f"Summarization applied: archived {len(archived)} tool result(s), "
            f"{tokens_before} -> {tokens_after} tokens (policy={self._policy.name})"
        )

        if emitter is not None:
            await emitter.emit(
                SummarizationEvent(
                    archived_count=len(archived),
                    tokens_before=tokens_before,
                    tokens_after=tokens_after,
                    summary_tokens=TokenEstimator.estimate_text(summary),
                    policy=self._policy.name,
                )
            )

        return SummaryResult(
            status=SummaryStatus.APPLIED,
            state=new_state,
            archived_count=len(archived),
            tokens_before=tokens_before,
            tokens_after=tokens_after,
            summary_text=summary,
            policy=self._policy.name,
        )
