"""Transport contract and the httpx-backed implementation."""
from csrfguard_lite.transport.base import Transport, dispatch
from csrfguard_lite.transport.httpx_transport import HttpxTransport

__all__ = [
    "Transport",
    "dispatch",
    "HttpxTransport",
]
