"""
Chat layer.

Message model, tool-call resolution and the orchestration loop that
submits a conversation, runs the tools the model asks for and resubmits
until the model gives a final answer:

    ChatOrchestrator.get(messages, tools)
            ↓
    Transport.submit()  →  AiToolsMessage?  →  resolve_tool_calls()  →  (repeat)
            ↓
       ChatResult
"""

from llmagency.errors import (
    ArgumentParseError,
    InvalidMessage,
    LLMError,
    MalformedMessage,
    TransportError,
    UnknownRole,
)
from llmagency.llm.messages import (
    AiMessage,
    AiToolsMessage,
    Message,
    SystemMessage,
    ToolCall,
    ToolMessage,
    UserMessage,
    ai_message,
    ai_tools_message,
    message_from_wire,
    messages_from_wire,
    system_message,
    tool_calls,
    tool_message,
    user_message,
)
from llmagency.llm.models import ChatResult, TokenUsage
from llmagency.llm.orchestrator import ChatOrchestrator, normalize_type_hint

__all__ = [
    "ChatOrchestrator",
    "ChatResult",
    "TokenUsage",
    "normalize_type_hint",
    # Messages
    "Message",
    "SystemMessage",
    "UserMessage",
    "AiMessage",
    "AiToolsMessage",
    "ToolMessage",
    "ToolCall",
    "message_from_wire",
    "messages_from_wire",
    "system_message",
    "user_message",
    "ai_message",
    "ai_tools_message",
    "tool_message",
    "tool_calls",
    # Errors
    "LLMError",
    "InvalidMessage",
    "MalformedMessage",
    "UnknownRole",
    "ArgumentParseError",
    "TransportError",
]
