"""
Tool-call resolution.

Turns the tool calls of an AiToolsMessage into ToolMessages. Nothing the tool
side does can abort the conversation:

- arguments that are not valid JSON become an "ERROR: ..." observation
- a handler exception becomes an "ERROR: <message>" observation
- an unknown tool name becomes a "SYSTEM ERROR" observation plus a
  SystemMessage telling the model not to call that name again

The model sees these on its next turn and can correct itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from llmagency.errors import ArgumentParseError
from llmagency.llm.messages import Message, SystemMessage, ToolCall, ToolMessage
from llmagency.tools.base import Tool

logger = logging.getLogger(__name__)


@dataclass
class ToolResolution:
    """Outcome of one tool call: always one ToolMessage, plus a notice if the tool was unknown."""

    result: ToolMessage
    notice: SystemMessage | None = None


def _find_tool(call: ToolCall, schemas: list[dict[str, Any]]) -> int | None:
    for index, schema in enumerate(schemas):
        if schema["name"] == call.name:
            return index
    return None


async def resolve_tool_call(
    call: ToolCall,
    schemas: list[dict[str, Any]],
    tools: list[Tool],
) -> ToolResolution:
    """
    Execute a single tool call.

    Args:
        call: The call requested by the model
        schemas: Deduplicated schemas, as sent to the model
        tools: Original tools, positionally aligned with `schemas`

    Returns:
        ToolResolution with the ToolMessage to append to the conversation
    """
    index = _find_tool(call, schemas)
    call.mark_not_found(index is None)

    if index is None:
        logger.warning(f"Model called unknown tool '{call.name}'")
        return ToolResolution(
            result=ToolMessage(
                content=f"SYSTEM ERROR: Function `{call.name}` does not exist",
                tool_call_id=call.id,
                name=call.name,
            ),
            notice=SystemMessage(content=f"Do not call '{call.name}' again."),
        )

    name = schemas[index]["name"]
    try:
        arguments = call.parsed_arguments()
        content = await tools[index].invoke(arguments)
    except ArgumentParseError as e:
        logger.warning(f"Tool '{name}' received malformed arguments: {e}")
        content = f"ERROR: {e}"
    except Exception as e:
        logger.warning(f"Tool '{name}' failed: {e}")
        content = f"ERROR: {e}"

    if content is None:
        content = ""

    logger.debug(f"Tool '{name}' returned {content!r}")
    return ToolResolution(result=ToolMessage(content=content, tool_call_id=call.id, name=name))


async def resolve_tool_calls(
    calls: list[ToolCall],
    schemas: list[dict[str, Any]],
    tools: list[Tool],
) -> list[Message]:
    """
    Execute calls one at a time, in the order the model emitted them.

    Returns the ToolMessages in call order, followed by one SystemMessage per
    unknown tool. Keeping the tool results contiguous keeps them directly
    after the assistant turn that requested them.
    """
    results: list[Message] = []
    notices: list[Message] = []
    for call in calls:
        resolution = await resolve_tool_call(call, schemas, tools)
        results.append(resolution.result)
        if resolution.notice is not None:
            notices.append(resolution.notice)
    return results + notices
