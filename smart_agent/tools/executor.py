"""Tool execution dispatcher.

Runs the tool calls of the last assistant message under the tool-call budget
and the parallelism cap, then appends one tool message per call in request
order.
"""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

from smart_agent.compaction.token import TokenEstimator
from smart_agent.config import AgentLimits
from smart_agent.events import EventEmitter, HandoffEvent, ToolCallEvent
from smart_agent.exceptions import SmartAgentToolError
from smart_agent.messages import ToolCall, get_tool_calls, last_message, tool_message
from smart_agent.state import SessionState, ToolExecutionRecord
from smart_agent.tools.base import HandoffSignal
from smart_agent.tools.context import CONTEXT_TOOL_NAMES, GET_TOOL_RESPONSE_NAME, SessionContext
from smart_agent.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

SKIPPED_MESSAGE = "Tool call skipped: tool-call limit reached."


def cache_key(tool_name: str, args: dict[str, Any]) -> str:
    """Tool name plus canonical JSON of the arguments."""
    return f"{tool_name}:{json.dumps(args, sort_keys=True, ensure_ascii=False, default=str)}"


def new_execution_id() -> str:
    return f"exec_{uuid.uuid4().hex[:16]}"


def render_output(output: Any) -> str:
    """Render a tool output as message text (strings as-is, others as JSON)."""
    if isinstance(output, str):
        return output
    try:
        return json.dumps(output, ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(output)


def truncate_for_model(text: str, token_limit: int, execution_id: str) -> tuple[str, bool]:
    """
    Cut text that exceeds the token limit and append a recovery notice.

    Returns:
        (content, truncated)
    """
    if TokenEstimator.estimate_text(text) <= token_limit:
        return text, False

    # Estimates are ~4 chars/token for Latin text; shrink until under the limit
    max_chars = max(0, token_limit * 4)
    preview = text[:max_chars]
    while preview and TokenEstimator.estimate_text(preview) > token_limit:
        preview = preview[: int(len(preview) * 0.9)]

    removed = len(text) - len(preview)
    notice = (
        f"\n\n...{removed} characters truncated...\n\n"
        f"Output truncated. Call get_tool_response with execution_id "
        f'"{execution_id}" to read the full output.'
    )
    return preview + notice, True


@dataclass
class _CallOutcome:
    record: ToolExecutionRecord
    message: dict[str, Any]
    handoff: HandoffSignal | None = None


class ToolExecutor:
    """Executes one batch of tool calls.

    Usage:
        executor = ToolExecutor(registry, limits, emitter, session)
        state = await executor.execute(state)
    """

    def __init__(
        self,
        tools: ToolRegistry,
        limits: AgentLimits,
        emitter: EventEmitter,
        session: SessionContext | None = None,
    ) -> None:
        self.tools = tools
        self.limits = limits
        self.emitter = emitter
        self.session = session

    async def execute(self, state: SessionState) -> SessionState:
        calls = get_tool_calls(last_message(state.messages))
        if not calls:
            return state

        remaining = max(0, self.limits.max_tool_calls - state.tool_call_count)
        dispatched, skipped = calls[:remaining], calls[remaining:]

        if self.session is not None:
            self.session.state = state

        semaphore = asyncio.Semaphore(self.limits.max_parallel_tools)
        cache = state.tool_cache

        async def run(call: ToolCall) -> _CallOutcome:
            async with semaphore:
                return await self._execute_one(call, cache)

        outcomes = await asyncio.gather(*(run(call) for call in dispatched))

        for call in skipped:
            logger.warning(f"Skipping tool call {call.name} ({call.id}): tool-call limit reached")
            await self.emitter.emit(
                ToolCallEvent(
                    tool_name=call.name,
                    tool_call_id=call.id,
                    phase="skipped",
                    args=call.args,
                    reason="tool_limit",
                )
            )

        # Context tools may have written plan/ctx through the session
        base = self.session.state if self.session is not None else state

        new_cache = dict(base.tool_cache)
        for outcome in outcomes:
            record = outcome.record
            tool = self.tools.get(record.tool_name)
            if (
                not record.from_cache
                and record.error is None
                and outcome.handoff is None
                and tool is not None
                and tool.cacheable
                and record.tool_name not in CONTEXT_TOOL_NAMES
            ):
                new_cache[cache_key(record.tool_name, record.args)] = {
                    "execution_id": record.execution_id,
                    "output": record.output,
                    "raw_output": record.raw_output,
                }

        messages = list(base.messages)
        messages.extend(outcome.message for outcome in outcomes)
        messages.extend(
            tool_message(SKIPPED_MESSAGE, call.id, call.name, skipped=True) for call in skipped
        )

        new_state = base.evolve(
            messages=messages,
            tool_call_count=base.tool_call_count + len(outcomes),
            tool_history=[*base.tool_history, *(o.record for o in outcomes)],
            tool_cache=new_cache,
        )

        handoff = next((o.handoff for o in outcomes if o.handoff is not None), None)
        if handoff is not None:
            new_state = await self._apply_handoff(new_state, handoff)

        if self.session is not None:
            self.session.state = new_state
        return new_state

    async def _apply_handoff(self, state: SessionState, signal: HandoffSignal) -> SessionState:
        from_agent = state.agent.name if state.agent else "unknown"
        logger.info(f"Handoff from {from_agent} to {signal.target.name} via {signal.tool_name}")
        await self.emitter.emit(
            HandoffEvent(
                from_agent=from_agent,
                to_agent=signal.target.name,
                tool_name=signal.tool_name,
                args=signal.args,
            )
        )
        return state.evolve(agent=signal.target)

    async def _execute_one(self, call: ToolCall, cache: dict[str, Any]) -> _CallOutcome:
        execution_id = new_execution_id()
        await self.emitter.emit(
            ToolCallEvent(
                tool_name=call.name,
                tool_call_id=call.id,
                phase="start",
                args=call.args,
                execution_id=execution_id,
            )
        )
        start = time.monotonic()
        handoff = None
        from_cache = False
        error = None

        try:
            if call.parse_error:
                raise SmartAgentToolError(call.parse_error, tool_name=call.name)
            tool = self.tools.get(call.name)
            if tool is None:
                available = ", ".join(self.tools.names()) or "none"
                raise SmartAgentToolError(
                    f"Unknown tool: {call.name}. Available tools: {available}",
                    tool_name=call.name,
                )

            key = cache_key(call.name, call.args)
            cached = cache.get(key) if tool.cacheable and call.name not in CONTEXT_TOOL_NAMES else None
            if cached is not None:
                from_cache = True
                raw_output = cached.get("raw_output", cached.get("output"))
                output = cached.get("output")
                logger.debug(f"Cache hit for {call.name} ({cached.get('execution_id')})")
            else:
                raw_output = await tool.run(call.args)
                if isinstance(raw_output, HandoffSignal):
                    handoff = raw_output
                    output = handoff.message
                else:
                    output = raw_output
        except Exception as e:
            # Any tool failure becomes an error result for the model
            if isinstance(e, SmartAgentToolError):
                logger.warning(f"Tool {call.name} failed: {e}")
            else:
                logger.error(f"Tool {call.name} raised {type(e).__name__}: {e}", exc_info=True)
            error = str(e) or type(e).__name__
            raw_output = None
            output = f"Error: {error}"

        duration_ms = (time.monotonic() - start) * 1000
        text = render_output(output)
        original_tokens = TokenEstimator.estimate_text(text)

        content = text
        if error is None and call.name != GET_TOOL_RESPONSE_NAME:
            content, truncated = truncate_for_model(
                text, self.limits.tool_output_token_limit, execution_id
            )
            if truncated:
                logger.info(
                    f"Truncated {call.name} output ({original_tokens} tokens) "
                    f"for execution {execution_id}"
                )

        record = ToolExecutionRecord(
            execution_id=execution_id,
            tool_name=call.name,
            args=call.args,
            output=output,
            raw_output=raw_output,
            tool_call_id=call.id,
            original_token_count=original_tokens,
            from_cache=from_cache,
            error=error,
        )
        message = tool_message(content, call.id, call.name, execution_id=execution_id)

        await self.emitter.emit(
            ToolCallEvent(
                tool_name=call.name,
                tool_call_id=call.id,
                phase="error" if error else "success",
                args=call.args,
                execution_id=execution_id,
                duration_ms=duration_ms,
                from_cache=from_cache,
                error=error,
            )
        )
        return _CallOutcome(record=record, message=message, handoff=handoff)
