"""System prompt assembly.

The system prompt is rebuilt for every model turn and never stored in the
session messages.
"""

BASE_INSTRUCTIONS = """You are a capable assistant that solves the user's task, calling tools when they help.

## Working with tools
- Call tools only when they are needed; answer directly when you already know enough.
- Tool calls are limited. Prefer a few well-chosen calls over many speculative ones.
- Every tool result carries an execution id. Long results may be truncated, and old results may be
  replaced by a summary. Call get_tool_response with the execution id when you need the full output.
- When you have enough information, reply with the final answer and no tool calls."""

PLANNING_INSTRUCTIONS = """## Planning
- For tasks with more than one step, write a short plan with manage_todo_list (operation "write")
  before starting, and keep it current as steps are completed.
- Read the plan (operation "read") when you lose track of what is left."""

STRUCTURED_OUTPUT_INSTRUCTIONS = (
    "When you provide the FINAL assistant message, output ONLY a valid JSON value matching "
    "the required output schema.\n"
    "Do not wrap it in code fences. Do not add any prose before or after. Return pure JSON only.\n"
    "You may instead submit the final answer by calling the response tool with the structured value."
)

TOOL_LIMIT_NOTICE = (
    "Tool-call limit reached. Produce the best possible final answer using the available "
    "context and prior tool outputs. Do not call any more tools."
)


def build_system_prompt(
    system_prompt: str | None = None,
    planning_enabled: bool = False,
    structured_output: bool = False,
) -> str:
    """Assemble the per-turn system prompt.

    Args:
        system_prompt: Agent-specific instructions
        planning_enabled: Add planning instructions
        structured_output: Add structured output instructions

    Returns:
        The prompt text
    """
    sections = [BASE_INSTRUCTIONS]
    if system_prompt:
        sections.append(system_prompt.strip())
    if structured_output:
        sections.append(STRUCTURED_OUTPUT_INSTRUCTIONS)
    if planning_enabled:
        sections.append(PLANNING_INSTRUCTIONS)
    return "\n\n".join(sections)
