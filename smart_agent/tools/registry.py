"""Tool registry for one agent turn."""

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from smart_agent.exceptions import SmartAgentConfigError
from smart_agent.tools.base import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """
    Name-indexed set of tools.

    Usage:
        registry = ToolRegistry(tools)
        tool = registry.get("search")
        schemas = registry.get_llm_schemas()
    """

    def __init__(self, tools: Iterable[Tool] = ()) -> None:
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool, replace: bool = False) -> None:
        """Register a tool.

        Raises:
            SmartAgentConfigError: When the name is taken and replace is False
        """
        if tool.name in self._tools and not replace:
            raise SmartAgentConfigError(f"Duplicate tool name: {tool.name}", tool_name=tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def get_llm_schemas(self) -> list[dict[str, Any]]:
        return [tool.to_llm_schema() for tool in self._tools.values()]

    def merged(self, extra: Iterable[Tool]) -> "ToolRegistry":
        """Return a new registry with extra tools added (extra wins on name clash)."""
        registry = ToolRegistry(self._tools.values())
        for tool in extra:
            if tool.name in registry:
                logger.warning(f"Tool {tool.name} shadows a user tool with the same name")
            registry.register(tool, replace=True)
        return registry

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[Tool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)
