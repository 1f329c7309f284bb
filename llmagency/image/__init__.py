"""Image generation through the agency service."""

from llmagency.image.client import ImageClient, ImageResult, resolve_image_route

__all__ = ["ImageClient", "ImageResult", "resolve_image_route"]
