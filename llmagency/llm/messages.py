"""
Role-tagged chat messages and their wire representation.

The message model is a closed set of five variants:

    SystemMessage   role "system"     instructions for the model
    UserMessage     role "user"       end-user input
    AiMessage       role "assistant"  final model reply, no pending tool calls
    AiToolsMessage  role "assistant"  model reply requesting tool calls
    ToolMessage     role "tool"       result of one tool call

Every variant serializes to a plain dict with to_wire(); message_from_wire()
is the inverse and dispatches on the record's role. Both assistant variants
share the "assistant" role: a record with a non-empty tool_calls field
becomes an AiToolsMessage, anything else an AiMessage.

Only AiToolsMessage may have content=None. Constructing any other variant
without content raises pydantic.ValidationError.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterable, Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, Field, PrivateAttr, ValidationError, field_validator, model_validator

from llmagency.errors import ArgumentParseError, MalformedMessage, UnknownRole


class RawArguments(str):
    """Tool call arguments that arrived as a string but are not valid JSON."""


class ToolCall(BaseModel):
    """
    A single function call requested by the model.

    A string `arguments` is always read as the JSON text the wire carries and
    is decoded once, at construction. `arguments` then holds the decoded
    value, whatever JSON type it is (`'"hello"'` becomes the str `hello`).
    Text that is not valid JSON is kept verbatim as RawArguments, so the
    failure surfaces at resolution time as a tool observation instead of
    aborting the conversion of the whole message.
    """

    id: str
    name: str
    arguments: Any = Field(default_factory=dict)

    _is_not_found: bool = PrivateAttr(default=False)

    @field_validator("arguments", mode="before")
    @classmethod
    def _decode_arguments(cls, value: Any) -> Any:
        if isinstance(value, RawArguments) or not isinstance(value, str):
            return value
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return RawArguments(value)

    @classmethod
    def from_wire(cls, record: Mapping[str, Any]) -> ToolCall:
        """Build a ToolCall from `{id, type, function: {name, arguments}}`."""
        function = record.get("function")
        if not record.get("id"):
            raise MalformedMessage(f"Tool call missing id: {record!r}")
        if not isinstance(function, Mapping) or not function.get("name"):
            raise MalformedMessage(f"Tool call missing function name: {record!r}")

        return cls(id=record["id"], name=function["name"], arguments=function.get("arguments", {}))

    @property
    def is_not_found(self) -> bool:
        """Set by the resolver when no registered tool matches `name`."""
        return self._is_not_found

    def mark_not_found(self, value: bool = True) -> None:
        self._is_not_found = value

    def parsed_arguments(self) -> Any:
        """
        Return the decoded arguments.

        Raises:
            ArgumentParseError: If the arguments arrived as text that is not valid JSON
        """
        if not isinstance(self.arguments, RawArguments):
            return self.arguments
        try:
            return json.loads(self.arguments)
        except json.JSONDecodeError as e:
            raise ArgumentParseError(
                f"Invalid JSON arguments for `{self.name}`: {e}", cause=e
            ) from e

    def to_wire(self) -> dict[str, Any]:
        arguments = self.arguments
        if not isinstance(arguments, RawArguments):
            arguments = json.dumps(arguments)
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": arguments},
        }


class Message(BaseModel):
    """Common shape of all message variants."""

    role: ClassVar[str]
    requires_content: ClassVar[bool] = True

    content: Any = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_default(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _check_content(self) -> Message:
        if self.requires_content and self.content is None:
            raise ValueError(f"{type(self).__name__} content can't be None")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the wire record sent to the completion service."""
        return {"role": self.role, "content": self.content, "tags": list(self.tags)}

    def clone(self, **overrides: Any) -> Message:
        """Return a validated copy with some fields replaced."""
        return type(self)(**{**dict(self), **overrides})

    def __str__(self) -> str:
        return f"<{type(self).__name__} (content={self.content}, tags={self.tags})>"


class SystemMessage(Message):
    role: ClassVar[str] = "system"


class UserMessage(Message):
    role: ClassVar[str] = "user"


class AiMessage(Message):
    role: ClassVar[str] = "assistant"


class AiToolsMessage(AiMessage):
    """Assistant turn that asks for one or more tool calls. Content is optional."""

    requires_content: ClassVar[bool] = False

    tool_calls: list[ToolCall] = Field(min_length=1)

    @field_validator("tool_calls", mode="before")
    @classmethod
    def _wire_tool_calls(cls, value: Any) -> Any:
        # Accept wire-shaped records ({id, function: {...}}) alongside ToolCall objects
        if isinstance(value, list):
            return [
                ToolCall.from_wire(tc) if isinstance(tc, Mapping) and "function" in tc else tc
                for tc in value
            ]
        return value

    def to_wire(self) -> dict[str, Any]:
        return {**super().to_wire(), "tool_calls": [tc.to_wire() for tc in self.tool_calls]}


class ToolMessage(Message):
    """Result of one tool call, correlated to it by `tool_call_id`."""

    role: ClassVar[str] = "tool"

    tool_call_id: str = Field(min_length=1)
    name: str = Field(min_length=1)

    def to_wire(self) -> dict[str, Any]:
        return {**super().to_wire(), "tool_call_id": self.tool_call_id, "name": self.name}


AnyMessage = SystemMessage | UserMessage | AiMessage | AiToolsMessage | ToolMessage

_PLAIN_ROLES: dict[str, type[Message]] = {
    "system": SystemMessage,
    "user": UserMessage,
}


def message_from_wire(record: Mapping[str, Any]) -> Message:
    """
    Convert a wire record into a typed message.

    Raises:
        MalformedMessage: If the record has no role, is missing required
            fields, or fails validation
        UnknownRole: If the role is not system/user/assistant/tool
    """
    if not isinstance(record, Mapping) or not record.get("role"):
        raise MalformedMessage(f"Invalid message format: {record!r}")

    role = record["role"]
    content = record.get("content")
    tags = record.get("tags")

    try:
        if role in _PLAIN_ROLES:
            return _PLAIN_ROLES[role](content=content, tags=tags)
        if role == "assistant":
            if record.get("tool_calls"):
                return AiToolsMessage(content=content, tags=tags, tool_calls=record["tool_calls"])
            return AiMessage(content=content, tags=tags)
        if role == "tool":
            if not record.get("tool_call_id") or not record.get("name"):
                raise MalformedMessage(f"Tool message missing required fields: {record!r}")
            return ToolMessage(
                content=content,
                tags=tags,
                tool_call_id=record["tool_call_id"],
                name=record["name"],
            )
    except ValidationError as e:
        raise MalformedMessage(f"Invalid {role} message: {record!r}", cause=e) from e

    raise UnknownRole(role)


def messages_from_wire(records: Iterable[Mapping[str, Any]] | None) -> list[Message]:
    if not records:
        return []
    return [message_from_wire(r) for r in records]


def system_message(content: Any, tags: list[str] | None = None) -> SystemMessage:
    return SystemMessage(content=content, tags=tags)


def user_message(content: Any, tags: list[str] | None = None) -> UserMessage:
    return UserMessage(content=content, tags=tags)


def ai_message(content: Any, tags: list[str] | None = None) -> AiMessage:
    return AiMessage(content=content, tags=tags)


def ai_tools_message(
    tool_calls: list[Any], content: Any = None, tags: list[str] | None = None
) -> AiToolsMessage:
    return AiToolsMessage(tool_calls=tool_calls, content=content, tags=tags)


def tool_message(
    content: Any, tool_call_id: str, name: str, tags: list[str] | None = None
) -> ToolMessage:
    return ToolMessage(content=content, tool_call_id=tool_call_id, name=name, tags=tags)


def tool_calls(content: Any = "", calls: Iterable[Mapping[str, Any]] = ()) -> list[Message]:
    """
    Build a completed tool exchange: one AiToolsMessage plus a ToolMessage per call.

    Useful for seeding a conversation with examples of tool use. Each call is
    a mapping with `name`, optional `arguments` and the `content` the tool
    "returned". A string `arguments` is read as JSON text, like on the wire.
    Call ids are fresh uuid4 strings.

    Example:
        >>> history = tool_calls(calls=[{"name": "add", "arguments": {"a": 1, "b": 2}, "content": 3}])
        >>> [m.role for m in history]
        ['assistant', 'tool']
    """
    calls = list(calls)
    ids = [str(uuid.uuid4()) for _ in calls]

    request = AiToolsMessage(
        content=content,
        tool_calls=[
            ToolCall(id=ids[i], name=call["name"], arguments=call.get("arguments") or {})
            for i, call in enumerate(calls)
        ],
    )
    results = [
        ToolMessage(tool_call_id=ids[i], name=call["name"], content=call.get("content"))
        for i, call in enumerate(calls)
    ]
    return [request, *results]
