"""
MCP tool source.

Spawns an MCP server as a subprocess and exposes each tool it lists as a
Tool the orchestrator can offer to the model.
"""

from __future__ import annotations

from typing import Any

from mcp import ClientSession
from mcp.client.stdio import StdioServerParameters, stdio_client

from llmagency.tools.base import Tool


class McpTool(Tool):
    """One tool of an MCP server. Calls are forwarded to the server session."""

    def __init__(self, toolset: McpToolset, schema: dict[str, Any]):
        self._toolset = toolset
        self._schema = schema

    @property
    def name(self) -> str:
        return self._schema["name"]

    def describe(self) -> dict[str, Any]:
        return self._schema

    async def invoke(self, arguments: Any) -> str:
        return await self._toolset.call(self.name, arguments or {})


class McpToolset:
    """
    Tools served by an MCP server over stdio.

    Usage:
        async with McpToolset("node", ["server.js"]) as toolset:
            tools = await toolset.tools()
            result = await orchestrator.get(messages=..., tools=tools)

    Args:
        command: Executable starting the server, e.g. "node"
        args: Arguments for the command
    """

    def __init__(self, command: str, args: list[str] | None = None):
        self._command = command
        self._args = list(args or [])
        self._initialized = False
        self._session = None
        self._stdio_context = None
        self._session_context = None

    async def initialize(self) -> None:
        """Start the server subprocess and perform the MCP handshake."""
        server_params = StdioServerParameters(command=self._command, args=self._args)

        self._stdio_context = stdio_client(server_params)
        read_stream, write_stream = await self._stdio_context.__aenter__()

        self._session_context = ClientSession(read_stream, write_stream)
        self._session = await self._session_context.__aenter__()

        await self._session.initialize()
        self._initialized = True

    async def shutdown(self) -> None:
        """Close the session and terminate the subprocess."""
        if not self._initialized:
            return

        if self._session_context is not None:
            await self._session_context.__aexit__(None, None, None)
            self._session_context = None
            self._session = None

        if self._stdio_context is not None:
            await self._stdio_context.__aexit__(None, None, None)
            self._stdio_context = None

        self._initialized = False

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, *_args):
        await self.shutdown()
        return None

    async def call(self, tool_name: str, arguments: dict[str, Any]) -> str:
        """Call a tool on the server and return its text content blocks joined by spaces."""
        if not self._initialized:
            raise RuntimeError("MCP toolset not initialized")

        result = await self._session.call_tool(tool_name, arguments)

        text_parts = [content.text for content in result.content if hasattr(content, "text")]
        text = " ".join(text_parts)
        if getattr(result, "isError", False):
            raise RuntimeError(text or f"Tool '{tool_name}' failed")
        return text

    async def tools(self) -> list[Tool]:
        """List the server's tools as `{name, description, parameters}` schemas."""
        if not self._initialized:
            raise RuntimeError("MCP toolset not initialized")

        result = await self._session.list_tools()
        return [
            McpTool(
                self,
                {
                    "name": tool.name,
                    "description": tool.description or "",
                    "parameters": tool.inputSchema,
                },
            )
            for tool in result.tools
        ]
