"""
Client for the memory service.

The memory service stores JSON documents in schema-validated buckets and
accepts file uploads. It is independent of the chat layer.
"""

from llmagency.memory.client import MemoryClient, MemoryServiceError, upload

__all__ = ["MemoryClient", "MemoryServiceError", "upload"]
