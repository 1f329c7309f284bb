"""
Memory service client.

A bucket is a JSON document validated against a JSON schema. Values are
addressed by path expressions such as "users[2].name":

    memory = await MemoryClient.create(schema={"type": "object", ...})
    await memory.write("path.to.data[2]", data)
    data = await memory.read("path.to.data[0]")
    await memory.delete("path.to.data[1]")

An existing bucket is opened by uid with MemoryClient.open(uid).

The authorization token is sent with every request but never logged.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from llmagency.config.settings import MemorySettings

logger = logging.getLogger(__name__)


class MemoryServiceError(Exception):
    """A memory service request failed."""


def _headers(token: str | None) -> dict[str, str]:
    return {"Authorization": token} if token else {}


def _token(settings: MemorySettings) -> str | None:
    return settings.token.get_secret_value() if settings.token else None


class MemoryClient:
    """
    Operations on one memory bucket.

    Args:
        uid: Bucket identifier
        base_url: Service API root, e.g. "http://localhost:6011/api"
        token: Authorization token, optional
        client: Optional preconfigured httpx.AsyncClient (owned by the caller)
    """

    def __init__(
        self,
        uid: str,
        base_url: str,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self._uid = str(uid)
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    @property
    def uid(self) -> str:
        return self._uid

    @classmethod
    def open(
        cls,
        uid: str,
        settings: MemorySettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> MemoryClient:
        """Attach to an existing bucket."""
        settings = settings or MemorySettings()
        return cls(uid, settings.base_url(), _token(settings), client)

    @classmethod
    async def create(
        cls,
        schema: dict[str, Any],
        config: dict[str, Any] | None = None,
        settings: MemorySettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> MemoryClient:
        """
        Create a new bucket.

        Args:
            schema: JSON schema the bucket content must follow
            config: Optional bucket configuration, e.g. {"versioning": {"enabled": True}}

        Raises:
            MemoryServiceError: If the service rejects the bucket
        """
        settings = settings or MemorySettings()
        base_url = settings.base_url()
        token = _token(settings)

        http = client or httpx.AsyncClient()
        try:
            response = await http.post(
                f"{base_url}/bucket",
                json={"schema": schema, "configuration": config},
                headers=_headers(token),
            )
            response.raise_for_status()
            uid = response.json()["uid"]
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            if client is None:
                await http.aclose()
            if isinstance(e, httpx.HTTPError):
                raise MemoryServiceError(f"Failed to initialize bucket: {e}") from e
            raise MemoryServiceError(
                f"Failed to initialize bucket: no uid in response {response.text!r}"
            ) from e

        logger.info(f"Created memory bucket {uid}")
        instance = cls(uid, base_url, token, http)
        instance._owns_client = client is None
        return instance

    async def _request(self, method: str, path: str, data: Any = None, params: dict | None = None) -> Any:
        url = f"{self._base_url}/bucket/{self._uid}/{path}"
        logger.debug(f"{method.upper()} {url}")
        try:
            response = await self._client.request(
                method, url, json=data, params=params, headers=_headers(self._token)
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise MemoryServiceError(f"Failed to {method} data: {e}") from e

        if not response.content:
            return None
        return response.json()

    async def write(self, path: str, value: Any) -> Any:
        return await self._request("post", "", {"path": path, "value": value})

    async def update(self, path: str, value: Any) -> Any:
        return await self._request("put", "", {"path": path, "value": value})

    async def read(self, path: str) -> Any:
        return await self._request("get", f"blob/current/{path}")

    async def delete(self, path: str) -> Any:
        return await self._request("delete", "", params={"path": path})

    async def validate(self, path: str | None = None) -> Any:
        """Validate the bucket content, or only the value at `path`, against the schema."""
        return await self._request("get", "validate/", params={"path": path} if path else None)

    async def config(self, path: str) -> Any:
        return await self._request("get", "config", params={"path": path})

    async def schema(self) -> Any:
        return await self._request("get", "schema")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *_args):
        await self.aclose()
        return None


async def upload(
    content: bytes,
    name: str,
    content_type: str = "application/octet-stream",
    settings: MemorySettings | None = None,
    client: httpx.AsyncClient | None = None,
) -> Any:
    """
    Upload a file to the memory service.

    The file is sent as multipart form data under the `file` field.

    Returns:
        The service's JSON response

    Raises:
        MemoryServiceError: If the upload fails
    """
    settings = settings or MemorySettings()
    url = f"{settings.base_url()}/upload"
    logger.info(f"Uploading {name} ({len(content)} bytes, {content_type}) to {url}")

    http = client or httpx.AsyncClient()
    try:
        response = await http.post(
            url,
            files={"file": (name, content, content_type)},
            headers=_headers(_token(settings)),
        )
        response.raise_for_status()
        return response.json()
    except httpx.HTTPError as e:
        logger.error(f"Upload of {name} failed: {e}")
        raise MemoryServiceError(f"Failed to upload file: {e}") from e
    finally:
        if client is None:
            await http.aclose()
