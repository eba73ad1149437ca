"""Reached when the tool-call budget is spent."""

import logging
from typing import Any

from smart_agent.messages import get_tool_calls, system, tool_message
from smart_agent.prompts import TOOL_LIMIT_NOTICE
from smart_agent.state import FINALIZED_DUE_TO_TOOL_LIMIT, SessionState
from smart_agent.tools.executor import SKIPPED_MESSAGE

logger = logging.getLogger(__name__)


def skip_unanswered_calls(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Skipped tool messages for calls of the last assistant message that got no answer.

    Chat endpoints reject a ``tool_calls`` entry without a matching tool
    message, so every call must be answered before anything else follows.
    """
    for position in range(len(messages) - 1, -1, -1):
        if messages[position].get("role") == "assistant":
            break
    else:
        return []

    answered = {
        m.get("tool_call_id") for m in messages[position + 1:] if m.get("role") == "tool"
    }
    return [
        tool_message(SKIPPED_MESSAGE, call.id, call.name, skipped=True)
        for call in get_tool_calls(messages[position])
        if call.id not in answered
    ]


def finalize_for_tool_limit(state: SessionState) -> SessionState:
    """Tell the model to answer without further tools and mark the session."""
    logger.warning(f"Tool-call limit reached after {state.tool_call_count} call(s), finalizing")
    skipped = skip_unanswered_calls(state.messages)
    if skipped:
        logger.info(f"Skipping {len(skipped)} tool call(s) proposed past the limit")
    return state.evolve(
        messages=[*state.messages, *skipped, system(TOOL_LIMIT_NOTICE)],
        ctx={**state.ctx, FINALIZED_DUE_TO_TOOL_LIMIT: True},
    )
