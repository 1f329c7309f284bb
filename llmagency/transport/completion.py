"""
LiteLLM-backed transport.

Lets the orchestrator talk to any provider LiteLLM supports (Anthropic,
OpenAI, local models via Ollama, ...) instead of the agency service. The
payload's messages and tool schemas are translated to the OpenAI format
LiteLLM expects, and the first choice of the response is translated back
into a wire record.

`kind` and `mode` are answer-shaping hints only the agency service
understands; they are dropped here. There are no server-side threads, so
thread_uid is always None.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from litellm import acompletion

from llmagency.config.settings import LLMSettings
from llmagency.errors import TransportError
from llmagency.llm.models import TokenUsage
from llmagency.transport.base import Transport, TransportResponse

logger = logging.getLogger(__name__)

_PAYLOAD_KEYS = {"messages", "tools", "model", "kind", "mode"}


def _to_openai_message(record: dict[str, Any]) -> dict[str, Any]:
    # Providers reject unknown message fields; tags are a client-side annotation
    message = {k: v for k, v in record.items() if k != "tags"}
    # Tool results may be any JSON value here; providers accept only text
    if message.get("role") == "tool" and not isinstance(message.get("content"), str):
        message["content"] = json.dumps(message.get("content"))
    return message


def _to_openai_tools(schemas: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [
        {
            "type": "function",
            "function": {
                "name": schema["name"],
                "description": schema.get("description", ""),
                "parameters": schema.get("parameters", {"type": "object", "properties": {}}),
            },
        }
        for schema in schemas
    ]


class CompletionTransport(Transport):
    """
    Transport that calls `litellm.acompletion`.

    Args:
        settings: LLM configuration (model, temperature, max_tokens, api_key)
    """

    def __init__(self, settings: LLMSettings):
        self._settings = settings

    async def submit(self, payload: dict[str, Any]) -> TransportResponse:
        call_kwargs: dict[str, Any] = {
            "model": payload.get("model") or self._settings.model,
            "messages": [_to_openai_message(m) for m in payload["messages"]],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }
        if self._settings.api_key:
            call_kwargs["api_key"] = self._settings.api_key

        # Include tools only if there are any; providers reject an empty list
        if payload.get("tools"):
            call_kwargs["tools"] = _to_openai_tools(payload["tools"])

        if payload.get("kind") is not None or payload.get("mode") is not None:
            logger.debug("kind/mode hints are not supported by LiteLLM and were dropped")

        # Anything else is passed through as a provider option
        call_kwargs.update({k: v for k, v in payload.items() if k not in _PAYLOAD_KEYS})

        try:
            response = await acompletion(**call_kwargs)
        except Exception as e:
            raise TransportError(f"LLM API call failed: {e}", cause=e)

        message = response.choices[0].message
        answer: dict[str, Any] = {"role": "assistant", "content": message.content}
        if not message.tool_calls:
            answer["content"] = message.content or ""
        else:
            answer["tool_calls"] = [
                {
                    "id": tc.id,
                    "type": "function",
                    "function": {"name": tc.function.name, "arguments": tc.function.arguments},
                }
                for tc in message.tool_calls
            ]

        usage = TokenUsage(
            prompt_tokens=response.usage.prompt_tokens,
            completion_tokens=response.usage.completion_tokens,
        )
        return TransportResponse(answer=answer, usage=usage.model_dump())
