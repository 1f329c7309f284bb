"""
Base classes for transports.

Provides the abstract interface the orchestrator submits requests through,
whether the backend is the agency HTTP service or a provider reached via
LiteLLM.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict

from llmagency.errors import LLMError


class TransportResponse(BaseModel):
    """
    What a completion backend sends back for one request.

    Attributes:
        answer: The model's reply as a wire message record
        thread_uid: Conversation thread identifier, if the backend keeps one
        usage: Backend-specific usage metadata, passed through untouched
    """

    answer: dict[str, Any]
    thread_uid: str | None = None
    usage: Any = None

    model_config = ConfigDict(extra="ignore")


class Transport(ABC):
    """Abstract base class for completion transports."""

    @abstractmethod
    async def submit(self, payload: dict[str, Any]) -> TransportResponse:
        """
        Send one completion request.

        Args:
            payload: `{messages, tools, model, kind, mode, ...extra}` where
                messages are wire records and tools are tool schemas

        Returns:
            TransportResponse carrying the raw answer record

        Raises:
            TransportError: If the backend reports a failure
        """

    async def save(self, messages: list[dict[str, Any]], answer: dict[str, Any]) -> str | None:
        """Store a finished exchange as a thread. Returns the thread id."""
        raise LLMError(f"{type(self).__name__} does not store conversation threads")

    async def history(self, thread_uid: str | None) -> list[dict[str, Any]]:
        """Fetch the wire messages of a stored thread."""
        raise LLMError(f"{type(self).__name__} does not store conversation threads")

    async def aclose(self) -> None:
        """Release network resources. Nothing to do by default."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False
