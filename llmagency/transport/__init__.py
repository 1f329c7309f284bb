"""
Transport layer.

A transport takes the request payload built by the orchestrator, sends it to
a completion backend, and returns the raw answer record plus thread and
usage metadata. Failures propagate to the orchestrator's caller unchanged.
"""

from llmagency.transport.base import Transport, TransportResponse

__all__ = [
    "Transport",
    "TransportResponse",
]
