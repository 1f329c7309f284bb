"""
Image generation client.

Uses the same agency service as chat, on the `/api/dalle` and `/api/flux`
endpoints. The service answers with the URL of the generated image.
"""

from __future__ import annotations

import re
from typing import Any, Literal

from pydantic import BaseModel

from llmagency.config.settings import AgencySettings
from llmagency.transport.agency import AgencyTransport, resolve_route

IMAGE_ROUTES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"^dalle"), "/api/dalle"),
    (re.compile(r"^flux"), "/api/flux"),
]


def resolve_image_route(model: str) -> str:
    return resolve_route(model, IMAGE_ROUTES)


class ImageResult(BaseModel):
    """A generated image."""

    type: Literal["image"] = "image"
    url: str
    thread: str | None = None
    usage: Any = None


class ImageClient:
    """
    Generates images with a dalle* or flux* model.

    Args:
        transport: Agency transport pointed at the model's image endpoint
        model: Model name sent with every request
    """

    def __init__(self, transport: AgencyTransport, model: str):
        self._transport = transport
        self._model = model

    @classmethod
    def from_settings(cls, settings: AgencySettings, model: str) -> ImageClient:
        transport = AgencyTransport.from_settings(settings, route=resolve_image_route(model))
        return cls(transport, model)

    async def generate(self, prompt: str, **options: Any) -> ImageResult:
        """
        Generate one image.

        Args:
            prompt: Text description of the image
            **options: Model-specific options (size, quality, ...) passed through
        """
        data = await self._transport.request(
            self._transport.route,
            {"model": self._model, "prompt": prompt, **options},
        )
        return ImageResult(url=data["answer"], thread=data.get("thread_uid"), usage=data.get("usage"))

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *_args):
        await self.aclose()
        return None
