"""
HTTP transport for the agency completion service.

The service exposes one endpoint per model family (`/api/gpt`,
`/api/claude`, ...) that accepts the orchestrator payload as JSON and
replies with `{answer, thread_uid, usage}`. It also stores conversation
threads under `/messages`.

Requests authenticate with the raw API key in the Authorization header.
The key is never logged.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from llmagency.config.settings import AgencySettings
from llmagency.errors import LLMError, TransportError
from llmagency.transport.base import Transport, TransportResponse

logger = logging.getLogger(__name__)

# Model name prefix -> service path. First match wins.
MODEL_ROUTES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"^(gpt|o1|o3)"), "/api/gpt"),
    (re.compile(r"^claude"), "/api/claude"),
    (re.compile(r"^llama3"), "/api/llama"),
    (re.compile(r"^deepseek"), "/api/deepseek"),
    (re.compile(r"^gemini"), "/api/gemini"),
]


def resolve_route(model: str, routes: list[tuple[re.Pattern[str], str]] = MODEL_ROUTES) -> str:
    """Map a model name to the service path that serves it."""
    for pattern, path in routes:
        if pattern.match(model):
            return path
    raise ValueError(f"Unknown model: {model}, can't determine URL path")


def parse_model(
    model: Any,
    routes: list[tuple[re.Pattern[str], str]] = MODEL_ROUTES,
) -> tuple[str, str]:
    """
    Split a model spec into (model name, service path).

    Accepts:
        "gpt-4o-mini"                          path derived from the name
        ("my-model", "/api/custom")            explicit path
        {"name": "my-model", "path": "/api/x"} explicit path
    """
    name = path = None
    if isinstance(model, (list, tuple)) and len(model) == 2:
        name, path = model
    elif isinstance(model, dict):
        name, path = model.get("name"), model.get("path")
    elif isinstance(model, str):
        name = model

    if not name:
        raise ValueError(f"Unknown model, can't determine model name from: {model!r}")
    if path is None:
        path = resolve_route(name, routes)
    return name, path


class AgencyTransport(Transport):
    """
    Transport speaking to the agency service over HTTP.

    Args:
        base_url: Service root, e.g. "http://localhost:5001"
        api_key: Value sent in the Authorization header
        route: Path of the completion endpoint, e.g. "/api/gpt"
        url_path: Optional prefix inserted between base_url and every request path
        client: Optional preconfigured httpx.AsyncClient (owned by the caller)
        timeout: Request timeout in seconds when this transport creates its own client
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        route: str = "",
        url_path: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 120.0,
    ):
        if not api_key:
            raise LLMError("API key not configured. Set LLM_AGENCY_KEY in your environment.")

        self._base_url = base_url.rstrip("/")
        self._url_path = ""
        if url_path:
            self._url_path = url_path if url_path.startswith("/") else f"/{url_path}"
        self._api_key = api_key
        self._route = route
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: AgencySettings, route: str = "", **kwargs: Any) -> AgencyTransport:
        api_key = settings.key.get_secret_value() if settings.key else ""
        return cls(
            base_url=settings.base_url(),
            api_key=api_key,
            route=route,
            url_path=settings.url_path,
            **kwargs,
        )

    @property
    def route(self) -> str:
        return self._route

    def url(self, path: str) -> str:
        """Absolute URL for a request path."""
        return f"{self._base_url}{self._url_path}/{path.lstrip('/')}"

    async def request(self, path: str, data: Any = None, method: str = "POST") -> Any:
        """
        Send one JSON request and return the decoded JSON body.

        Raises:
            TransportError: On any non-2xx status, carrying status and body
            httpx.HTTPError: On network failures
        """
        method = method.upper()
        url = self.url(path)
        logger.debug(f"{method} {url}")

        response = await self._client.request(
            method,
            url,
            json=data if method != "GET" else None,
            headers={
                "Content-Type": "application/json",
                "Authorization": self._api_key,
            },
        )

        if not response.is_success:
            raise TransportError(
                f"HTTP error! status: {response.status_code}, body: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        return response.json()

    async def submit(self, payload: dict[str, Any]) -> TransportResponse:
        data = await self.request(self._route, payload)
        return TransportResponse.model_validate(data)

    async def save(self, messages: list[dict[str, Any]], answer: dict[str, Any]) -> str | None:
        """Store a finished exchange as a thread. Returns the thread id."""
        data = await self.request("/messages", {"messages": messages, "response": answer}, "PUT")
        return data.get("thread_uid")

    async def history(self, thread_uid: str | None) -> list[dict[str, Any]]:
        """Fetch the wire messages of a stored thread. Empty for no thread."""
        if not thread_uid:
            return []
        data = await self.request(f"/messages/{thread_uid}", method="GET")
        return data.get("messages") or []

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
