"""
Exception hierarchy for llmagency.

Only structural input errors and transport failures are ever raised to the
caller of ChatOrchestrator.get(). Tool failures (bad arguments, handler
exceptions, unknown tool names) are turned into conversation messages by the
resolver instead.
"""

from typing import Any


class LLMError(Exception):
    """Base error for the chat layer. Optionally wraps the underlying cause."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class InvalidMessage(LLMError):
    """A message other than an assistant tool-calls message has no content."""


class MalformedMessage(LLMError):
    """A wire record cannot be turned into a message."""


class UnknownRole(MalformedMessage):
    """A wire record carries a role outside system/user/assistant/tool."""

    def __init__(self, role: Any):
        super().__init__(f"Unknown message role: {role}")
        self.role = role


class ArgumentParseError(LLMError):
    """Tool call arguments arrived as a string that is not valid JSON."""


class TransportError(LLMError):
    """The completion service answered with a non-success status or failed outright."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.status_code = status_code
        self.body = body
