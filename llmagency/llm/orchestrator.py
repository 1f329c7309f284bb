"""
Chat orchestrator - the request/response/tool-execution loop.

Data flow:
    caller messages + tools
              ↓
    ChatOrchestrator.get()  →  Transport.submit()  ←→  completion backend
              ↓
    message_from_wire(answer)
              ↓
    AiToolsMessage?  ── yes →  resolve_tool_calls()  →  append call + results, submit again
              │
              no
              ↓
          ChatResult(answer, thread, usage)

Design decisions:
- History is append-only. Every turn sends a freshly built list
  (previous messages + assistant tool-call turn + tool results); nothing
  already in the conversation is edited.
- Tool calls of one turn run sequentially, in the order the model emitted
  them, because later calls may depend on the side effects of earlier ones.
- Tool errors are passed back to the model as observations (see
  llm/resolver.py). Only invalid input and transport failures raise.
- Tool names are deduplicated per request (`a`, `a` → `a`, `a_2`). Calls are
  matched against the deduplicated names and dispatched by position to the
  original tools.
- max_tool_rounds bounds the loop. When it is reached, the next request is
  sent without tool definitions, forcing a text answer. None means no limit.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Iterable
from typing import Any

from llmagency.config.settings import Settings
from llmagency.errors import InvalidMessage
from llmagency.llm.messages import AiToolsMessage, Message, message_from_wire, messages_from_wire
from llmagency.llm.models import ChatResult
from llmagency.llm.resolver import resolve_tool_calls
from llmagency.tools.base import Tool, deduplicate_schemas, resolve_tools
from llmagency.transport.base import Transport

logger = logging.getLogger(__name__)


def _type_name(value: Any) -> Any:
    if callable(value) and hasattr(value, "__name__"):
        return value.__name__
    return value


def _normalize_hint_item(item: Any) -> Any:
    if isinstance(item, dict):
        return {_type_name(k): _type_name(v) for k, v in item.items()}
    return _type_name(item)


def normalize_type_hint(hint: Any) -> Any:
    """
    Describe an expected answer shape in JSON-friendly terms.

    Strings and None pass through. Classes and functions become their
    `__name__`; dicts have keys and values mapped the same way; lists and
    tuples are mapped element-wise.

    Example:
        >>> normalize_type_hint([int, {"name": str}])
        ['int', {'name': 'str'}]
    """
    if hint is None or isinstance(hint, str):
        return hint
    if isinstance(hint, (list, tuple)):
        return [_normalize_hint_item(h) for h in hint]
    return _normalize_hint_item(hint)


class ChatOrchestrator:
    """
    Drives a conversation until the model answers without tool calls.

    The orchestrator holds no per-conversation state, so one instance can
    serve many concurrent conversations.

    Args:
        transport: Backend the requests are submitted to
        model: Model name placed in every payload
        max_tool_rounds: Safety limit on tool-use rounds (default: unlimited)
    """

    def __init__(
        self,
        transport: Transport,
        model: str,
        max_tool_rounds: int | None = None,
    ):
        self._transport = transport
        self._model = model
        self._max_tool_rounds = max_tool_rounds

    @classmethod
    def from_settings(cls, settings: Settings, model: Any = None) -> ChatOrchestrator:
        """
        Build an orchestrator and its transport from settings.

        For the agency backend `model` may be a name, a (name, path) pair or
        a {"name", "path"} mapping; see transport.agency.parse_model.
        """
        model = model or settings.llm.model
        if settings.llm.backend == "litellm":
            from llmagency.transport.completion import CompletionTransport

            return cls(CompletionTransport(settings.llm), model, settings.llm.max_tool_rounds)

        from llmagency.transport.agency import AgencyTransport, parse_model

        name, route = parse_model(model)
        transport = AgencyTransport.from_settings(settings.agency, route=route)
        return cls(transport, name, settings.llm.max_tool_rounds)

    @property
    def model(self) -> str:
        return self._model

    @property
    def transport(self) -> Transport:
        return self._transport

    def _serialize_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        for message in messages:
            if not isinstance(message, AiToolsMessage) and message.content is None:
                raise InvalidMessage(
                    f"Message content can't be None if it is not a tool calls message: {message}"
                )
        return [m.to_wire() for m in messages]

    def _build_payload(
        self,
        messages: list[Message],
        schemas: list[dict[str, Any]],
        kind: Any,
        mode: Any,
        extra: dict[str, Any],
    ) -> dict[str, Any]:
        return {
            "messages": self._serialize_messages(messages),
            "tools": schemas,
            "model": self._model,
            "kind": kind,
            "mode": mode,
            **extra,
        }

    async def get(
        self,
        messages: Iterable[Message | None] | None = None,
        tools: Iterable[Tool | Awaitable[Tool]] | None = None,
        kind: Any = None,
        mode: Any = None,
        **extra: Any,
    ) -> ChatResult:
        """
        Run the conversation to a final answer.

        Args:
            messages: Conversation so far. None entries are skipped, so
                conditionally omitted messages can be written inline.
            tools: Tools the model may call, or awaitables resolving to tools
            kind: Expected answer shape, normalized with normalize_type_hint
            mode: Answer mode hint, normalized the same way as kind
            **extra: Passed through to the backend in every request

        Returns:
            ChatResult with the final answer, thread id and usage of the last turn

        Raises:
            InvalidMessage: If a non tool-calls message has no content
            MalformedMessage: If the backend returns an unusable message
            TransportError: If the backend reports a failure
        """
        conversation = [m for m in (messages or []) if m is not None]

        originals = await resolve_tools(tools)
        schemas = deduplicate_schemas([t.describe() for t in originals])

        kind = normalize_type_hint(kind)
        mode = normalize_type_hint(mode)

        turns = 0
        tool_rounds = 0

        while True:
            within_limit = self._max_tool_rounds is None or tool_rounds < self._max_tool_rounds
            active_schemas = schemas if within_limit else []

            payload = self._build_payload(conversation, active_schemas, kind, mode, extra)
            logger.debug(
                f"Turn {turns + 1}: sending {len(conversation)} messages, "
                f"{len(active_schemas)} tools to {self._model}"
            )

            response = await self._transport.submit(payload)
            turns += 1
            answer = message_from_wire(response.answer)

            if not isinstance(answer, AiToolsMessage) or not active_schemas:
                logger.info(f"Conversation finished after {turns} turn(s)")
                return ChatResult(
                    answer=answer,
                    thread=response.thread_uid,
                    usage=response.usage,
                    turns=turns,
                )

            logger.info(
                f"Model requested {len(answer.tool_calls)} tool call(s): "
                f"{', '.join(tc.name for tc in answer.tool_calls)}"
            )
            results = await resolve_tool_calls(answer.tool_calls, schemas, originals)

            conversation = [*conversation, answer, *results]
            tool_rounds += 1

    async def history(self, thread: str | None) -> list[Message]:
        """Load the messages of a stored thread."""
        records = await self._transport.history(thread)
        return messages_from_wire(records)

    async def save(self, messages: Iterable[Message | None], answer: Message) -> str | None:
        """Store a conversation and its answer as a thread. Returns the thread id."""
        conversation = [m for m in messages if m is not None]
        return await self._transport.save(self._serialize_messages(conversation), answer.to_wire())
