"""Tool contract.

A tool is a named callable with a description and an argument schema. The
schema is either a pydantic model (arguments are validated before the call)
or a plain JSON schema (only required keys are checked).
"""

import asyncio
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ValidationError

from smart_agent.exceptions import SmartAgentToolError

if TYPE_CHECKING:
    from smart_agent.agent import AgentRuntime

logger = logging.getLogger(__name__)

EMPTY_PARAMETERS: dict[str, Any] = {"type": "object", "properties": {}}


@dataclass(frozen=True)
class HandoffSignal:
    """Returned by a handoff tool to transfer control to another agent."""

    target: "AgentRuntime"
    tool_name: str
    args: dict[str, Any] = field(default_factory=dict)

    @property
    def message(self) -> str:
        return f"Handing off to {self.target.name}."


@dataclass
class Tool:
    """A callable exposed to the model.

    Attributes:
        name: Name the model calls the tool by
        description: Shown to the model
        func: Sync or async callable receiving the validated arguments as a dict
        parameters: JSON schema of the arguments object
        schema: Optional pydantic model used for validation
        cacheable: Whether identical calls may reuse a previous output
    """

    name: str
    description: str
    func: Callable[[dict[str, Any]], Any]
    parameters: dict[str, Any] = field(default_factory=lambda: dict(EMPTY_PARAMETERS))
    schema: type[BaseModel] | None = None
    cacheable: bool = True

    def to_llm_schema(self) -> dict[str, Any]:
        """Convert to the function schema format used by chat completion APIs."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def validate_args(self, args: dict[str, Any]) -> dict[str, Any]:
        """Validate arguments against the schema.

        Raises:
            SmartAgentToolError: When validation fails
        """
        if self.schema is not None:
            try:
                return self.schema.model_validate(args).model_dump()
            except ValidationError as e:
                raise SmartAgentToolError(
                    f"Invalid arguments for {self.name}: {e}", tool_name=self.name
                ) from e

        missing = [key for key in self.parameters.get("required", []) if key not in args]
        if missing:
            raise SmartAgentToolError(
                f"Missing required argument(s) for {self.name}: {', '.join(missing)}",
                tool_name=self.name,
            )
        return args

    async def run(self, args: dict[str, Any]) -> Any:
        """Validate and call the tool; sync functions run in a worker thread."""
        validated = self.validate_args(args)
        if inspect.iscoroutinefunction(self.func):
            return await self.func(validated)
        result = await asyncio.to_thread(self.func, validated)
        if inspect.isawaitable(result):
            result = await result
        return result


def create_smart_tool(
    name: str,
    func: Callable[[dict[str, Any]], Any],
    description: str = "",
    schema: type[BaseModel] | dict[str, Any] | None = None,
    cacheable: bool = True,
) -> Tool:
    """Build a Tool.

    Args:
        name: Tool name
        func: Sync or async callable taking the arguments dict
        description: Description shown to the model
        schema: pydantic model class or JSON schema dict for the arguments
        cacheable: Allow reusing outputs of identical calls

    Returns:
        Tool instance
    """
    if not name:
        raise SmartAgentToolError("Tool name must not be empty")

    if isinstance(schema, type) and issubclass(schema, BaseModel):
        return Tool(
            name=name,
            description=description or (schema.__doc__ or "").strip(),
            func=func,
            parameters=schema.model_json_schema(),
            schema=schema,
            cacheable=cacheable,
        )

    parameters = dict(schema) if schema else dict(EMPTY_PARAMETERS)
    parameters.setdefault("type", "object")
    parameters.setdefault("properties", {})
    return Tool(
        name=name,
        description=description,
        func=func,
        parameters=parameters,
        cacheable=cacheable,
    )
