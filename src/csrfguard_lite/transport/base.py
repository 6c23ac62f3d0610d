"""Transport contract: the one thing the pipeline does not do itself.

A transport turns a RequestSpec into either a ResponseEnvelope (2xx) or
a FailureEnvelope (anything else, or no response at all). Connection
handling, TLS and body encoding all live behind this boundary.
"""
from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    RequestSpec,
    ResponseEnvelope,
)
from csrfguard_lite.domain.errors import TransportFailure

log = logging.getLogger(__name__)


@runtime_checkable
class Transport(Protocol):
    async def execute(
        self, request: RequestSpec
    ) -> ResponseEnvelope | FailureEnvelope: ...


async def dispatch(
    transport: Transport, request: RequestSpec
) -> ResponseEnvelope | FailureEnvelope:
    """Call transport.execute(), turning an escaped exception into a failure.

    Well-behaved transports never raise, but the pipeline and the
    interceptors that make nested calls must not let one that does
    tear through the stage queues.
    """
    try:
        return await transport.execute(request)
    except Exception as exc:
        log.warning("Transport raised on %s %s: %r", request.method, request.path, exc)
        cause = TransportFailure(f"{type(exc).__name__}: {exc}")
        cause.__cause__ = exc
        return FailureEnvelope(request=request, cause=cause)
