"""
Unit tests for the Tool interface, the function adapter and name deduplication.
"""

import asyncio

import pytest

from llmagency.tools.base import FunctionTool, Tool, deduplicate_schemas, make_tool, resolve_tools

ADD_SCHEMA = {
    "name": "add",
    "description": "Add two numbers",
    "parameters": {
        "type": "object",
        "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
        "required": ["a", "b"],
    },
}


class TestMakeTool:
    """Tests for make_tool() and FunctionTool."""

    def test_returns_tool_with_schema_name(self):
        tool = make_tool(ADD_SCHEMA, lambda args: args["a"] + args["b"])
        assert isinstance(tool, Tool)
        assert tool.name == "add"

    def test_describe_returns_schema_unchanged(self):
        tool = make_tool(ADD_SCHEMA, lambda args: None)
        assert tool.describe() is ADD_SCHEMA

    def test_schema_without_name_is_rejected(self):
        with pytest.raises(ValueError):
            make_tool({"description": "nameless"}, lambda args: None)

    @pytest.mark.asyncio
    async def test_invokes_sync_handler(self):
        tool = make_tool(ADD_SCHEMA, lambda args: args["a"] + args["b"])
        assert await tool.invoke({"a": 2, "b": 3}) == 5

    @pytest.mark.asyncio
    async def test_invokes_async_handler(self):
        async def add(args):
            await asyncio.sleep(0)
            return args["a"] + args["b"]

        tool = make_tool(ADD_SCHEMA, add)
        assert await tool.invoke({"a": 2, "b": 3}) == 5

    @pytest.mark.asyncio
    async def test_handler_exception_propagates(self):
        def boom(args):
            raise RuntimeError("boom")

        tool = make_tool(ADD_SCHEMA, boom)
        with pytest.raises(RuntimeError, match="boom"):
            await tool.invoke({})

    @pytest.mark.asyncio
    async def test_arguments_are_not_validated(self):
        tool = make_tool(ADD_SCHEMA, lambda args: args)
        assert await tool.invoke({"unexpected": True}) == {"unexpected": True}

    @pytest.mark.asyncio
    async def test_decorator_form(self):
        @make_tool(ADD_SCHEMA)
        async def add(args):
            return args["a"] + args["b"]

        assert isinstance(add, FunctionTool)
        assert await add.invoke({"a": 1, "b": 1}) == 2


class TestDeduplicateSchemas:
    """Tests for deduplicate_schemas()."""

    def test_repeated_names_get_suffixes_in_order(self):
        schemas = [{"name": n} for n in ["a", "b", "a", "a"]]
        assert [s["name"] for s in deduplicate_schemas(schemas)] == ["a", "b", "a_2", "a_3"]

    def test_unique_names_are_unchanged(self):
        schemas = [{"name": "a"}, {"name": "b"}]
        assert deduplicate_schemas(schemas) == schemas

    def test_input_schemas_are_not_mutated(self):
        first, second = {"name": "a", "description": "x"}, {"name": "a", "description": "y"}
        result = deduplicate_schemas([first, second])

        assert second["name"] == "a"
        assert result[1] == {"name": "a_2", "description": "y"}
        assert result[0] is first

    def test_empty(self):
        assert deduplicate_schemas([]) == []


class TestResolveTools:
    """Tests for resolve_tools()."""

    @pytest.mark.asyncio
    async def test_none_gives_empty_list(self):
        assert await resolve_tools(None) == []

    @pytest.mark.asyncio
    async def test_awaitables_are_resolved_in_order(self):
        plain = make_tool({"name": "first"}, lambda a: None)

        async def build(name):
            await asyncio.sleep(0)
            return make_tool({"name": name}, lambda a: None)

        tools = await resolve_tools([plain, build("second"), build("third")])
        assert [t.name for t in tools] == ["first", "second", "third"]
