"""Model summary policy.

Asks the active chat model to summarize archived tool results with a
structured prompt, falling back to the deterministic policy on failure.
"""

import logging

from smart_agent.compaction.config import DEFAULT_SUMMARY_PROMPT_TEMPLATE
from smart_agent.compaction.policy.base import SummaryPolicy
from smart_agent.compaction.policy.deterministic import (
    DeterministicSummaryPolicy,
    render_record,
)
from smart_agent.compaction.types import SummaryRequest
from smart_agent.messages import content_to_text

logger = logging.getLogger(__name__)

# Characters of each record output placed into the prompt
PROMPT_OUTPUT_CHARS = 4000


class ModelSummaryPolicy(SummaryPolicy):
    """Summary policy backed by the active chat model.

    Behavior:
        1. Renders each record (id, tool, arguments, clipped output)
        2. Fills the prompt template and calls the model without tools
        3. Prefixes the result with the execution ids so they stay recoverable
        4. On any model failure or empty answer, uses the deterministic policy
    """

    def __init__(self, prompt_template: str = "", line_chars: int = 200) -> None:
        self._template = prompt_template or DEFAULT_SUMMARY_PROMPT_TEMPLATE
        self._fallback = DeterministicSummaryPolicy(line_chars=line_chars)
        self._line_chars = line_chars

    @property
    def name(self) -> str:
        return "model"

    async def summarize(self, request: SummaryRequest) -> str:
        if request.model is None:
            return await self._fallback.summarize(request)

        records_text = "\n".join(render_record(r, PROMPT_OUTPUT_CHARS) for r in request.records)
        prompt = self._template.format(records=records_text)
        prompt += f"\nThe summary must stay under {request.max_tokens} tokens."

        try:
            response = await request.model.invoke([{"role": "user", "content": prompt}])
            summary = content_to_text(response.get("content")).strip()
        except Exception as e:
            logger.warning(f"Model summary generation failed: {e}, using fallback")
            return await self._fallback.summarize(request)

        if not summary:
            logger.warning("Model returned an empty summary, using fallback")
            return await self._fallback.summarize(request)

        ids = ", ".join(r.execution_id for r in request.records)
        return f"[Summary of archived tool results {ids}]\n{summary}"
