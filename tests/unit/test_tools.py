"""Tests for the tool contract and registry."""

import pytest
from pydantic import BaseModel, Field

from smart_agent.exceptions import SmartAgentConfigError, SmartAgentToolError
from smart_agent.tools.base import create_smart_tool
from smart_agent.tools.registry import ToolRegistry


class SearchArgs(BaseModel):
    """Search the web."""

    query: str = Field(description="Search query")
    limit: int = 5


class TestCreateSmartTool:
    def test_pydantic_schema(self):
        tool = create_smart_tool("search", lambda args: args, schema=SearchArgs)

        assert tool.description == "Search the web."
        assert tool.parameters["properties"]["query"]["description"] == "Search query"
        assert tool.schema is SearchArgs
        assert tool.cacheable is True

    def test_json_schema(self):
        schema = {"properties": {"url": {"type": "string"}}, "required": ["url"]}
        tool = create_smart_tool("fetch", lambda args: args, description="Fetch", schema=schema)

        assert tool.parameters["type"] == "object"
        assert tool.schema is None

    def test_no_schema(self):
        tool = create_smart_tool("now", lambda args: "12:00")
        assert tool.parameters == {"type": "object", "properties": {}}

    def test_empty_name_rejected(self):
        with pytest.raises(SmartAgentToolError):
            create_smart_tool("", lambda args: None)

    def test_llm_schema(self):
        tool = create_smart_tool("now", lambda args: "12:00", description="Current time")
        schema = tool.to_llm_schema()

        assert schema["type"] == "function"
        assert schema["function"]["name"] == "now"
        assert schema["function"]["description"] == "Current time"


class TestToolRun:
    @pytest.mark.asyncio
    async def test_sync_function(self):
        tool = create_smart_tool("echo", lambda args: args["query"].upper(), schema=SearchArgs)
        assert await tool.run({"query": "abc"}) == "ABC"

    @pytest.mark.asyncio
    async def test_async_function_receives_validated_args(self):
        async def search(args):
            return args

        tool = create_smart_tool("search", search, schema=SearchArgs)
        assert await tool.run({"query": "abc"}) == {"query": "abc", "limit": 5}

    @pytest.mark.asyncio
    async def test_invalid_args_raise_tool_error(self):
        tool = create_smart_tool("search", lambda args: args, schema=SearchArgs)
        with pytest.raises(SmartAgentToolError, match="Invalid arguments"):
            await tool.run({"limit": 3})

    @pytest.mark.asyncio
    async def test_missing_required_json_schema_key(self):
        tool = create_smart_tool(
            "fetch", lambda args: args, schema={"properties": {}, "required": ["url"]}
        )
        with pytest.raises(SmartAgentToolError, match="url"):
            await tool.run({})


class TestToolRegistry:
    def test_register_and_get(self):
        tool = create_smart_tool("a", lambda args: 1)
        registry = ToolRegistry([tool])

        assert registry.get("a") is tool
        assert registry.get("b") is None
        assert "a" in registry
        assert len(registry) == 1
        assert registry.names() == ["a"]

    def test_duplicate_rejected(self):
        registry = ToolRegistry([create_smart_tool("a", lambda args: 1)])
        with pytest.raises(SmartAgentConfigError, match="Duplicate"):
            registry.register(create_smart_tool("a", lambda args: 2))

    def test_merged_returns_new_registry(self):
        user = create_smart_tool("a", lambda args: 1)
        shadow = create_smart_tool("a", lambda args: 2)
        extra = create_smart_tool("b", lambda args: 3)
        registry = ToolRegistry([user])

        merged = registry.merged([shadow, extra])

        assert merged.get("a") is shadow
        assert merged.names() == ["a", "b"]
        assert registry.get("a") is user
        assert len(registry) == 1

    def test_llm_schemas(self):
        registry = ToolRegistry(
            [create_smart_tool("a", lambda args: 1), create_smart_tool("b", lambda args: 2)]
        )
        assert [s["function"]["name"] for s in registry.get_llm_schemas()] == ["a", "b"]
