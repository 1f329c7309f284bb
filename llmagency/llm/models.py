"""Result models returned by the chat layer."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from llmagency.llm.messages import Message


class TokenUsage(BaseModel):
    """Token counts reported by a completion backend."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class ChatResult(BaseModel):
    """
    Terminal result of a conversation.

    Attributes:
        answer: The last message returned by the model (normally an AiMessage).
        thread: Thread identifier assigned by the remote service, if any.
        usage: Usage metadata exactly as reported by the transport.
        turns: Number of request/response round trips it took.
    """

    answer: Message
    thread: str | None = None
    usage: Any = None
    turns: int = Field(default=1, ge=1)
