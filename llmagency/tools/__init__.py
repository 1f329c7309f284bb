"""
Tool Integration Layer.

Provides the Tool interface the orchestrator dispatches calls to, a
function adapter for plain handlers, and an adapter exposing the tools of
an MCP server (tools/mcp.py).
"""

from llmagency.tools.base import FunctionTool, Tool, deduplicate_schemas, make_tool, resolve_tools

__all__ = [
    "Tool",
    "FunctionTool",
    "make_tool",
    "deduplicate_schemas",
    "resolve_tools",
]
