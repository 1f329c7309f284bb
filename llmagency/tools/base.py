"""
Base classes for client-side tools.

A tool pairs a schema (what the model sees) with a handler (what runs when
the model calls it). The schema is sent to the completion service unchanged;
no validation of call arguments against it happens here. That is the
handler's job, if it wants to.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections import Counter
from collections.abc import Awaitable, Callable, Iterable
from typing import Any


class Tool(ABC):
    """
    Abstract base class for tools the model can call.

    Subclasses provide a stable name, the schema describing the calling
    convention, and the coroutine that executes a call.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name as declared in its schema."""

    @abstractmethod
    def describe(self) -> dict[str, Any]:
        """
        Return the schema sent to the model.

        Example:
            {
                "name": "add",
                "description": "Add two numbers",
                "parameters": {
                    "type": "object",
                    "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
                    "required": ["a", "b"]
                }
            }
        """

    @abstractmethod
    async def invoke(self, arguments: Any) -> Any:
        """
        Execute the tool.

        Whatever the handler returns or raises is propagated unchanged.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} name={self.name!r}>"


class FunctionTool(Tool):
    """Adapter turning a schema dict and a plain (sync or async) function into a Tool."""

    def __init__(self, schema: dict[str, Any], handler: Callable[[Any], Any]):
        if not schema.get("name"):
            raise ValueError(f"Tool schema must declare a name: {schema!r}")
        self._schema = schema
        self._handler = handler

    @property
    def name(self) -> str:
        return self._schema["name"]

    def describe(self) -> dict[str, Any]:
        return self._schema

    async def invoke(self, arguments: Any) -> Any:
        result = self._handler(arguments)
        if inspect.isawaitable(result):
            result = await result
        return result


def make_tool(schema: dict[str, Any], handler: Callable[[Any], Any] | None = None):
    """
    Wrap a schema and a handler into a Tool.

    Can also be used as a decorator:

        @make_tool({"name": "add", "parameters": {...}})
        async def add(args):
            return args["a"] + args["b"]
    """
    if handler is None:
        return lambda fn: FunctionTool(schema, fn)
    return FunctionTool(schema, handler)


async def resolve_tools(tools: Iterable[Tool | Awaitable[Tool]] | None) -> list[Tool]:
    """Await any tools still being constructed. Order is preserved."""
    items = list(tools or [])
    pending = [t for t in items if inspect.isawaitable(t)]
    if not pending:
        return items

    done = iter(await asyncio.gather(*pending))
    return [next(done) if inspect.isawaitable(t) else t for t in items]


def deduplicate_schemas(schemas: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """
    Make tool names unique by suffixing repeats.

    The first occurrence of a name keeps it; the 2nd, 3rd, ... become
    `name_2`, `name_3`, ... Positions are unchanged, so index i of the
    result still corresponds to tool i of the input.

    Example:
        >>> [s["name"] for s in deduplicate_schemas([{"name": n} for n in "abaa"])]
        ['a', 'b', 'a_2', 'a_3']
    """
    seen: Counter = Counter()

    result = []
    for schema in schemas:
        name = schema["name"]
        seen[name] += 1
        if seen[name] > 1:
            schema = {**schema, "name": f"{name}_{seen[name]}"}
        result.append(schema)
    return result
