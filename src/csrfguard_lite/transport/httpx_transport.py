"""httpx adapter for the Transport contract.

Maps RequestSpec onto httpx.AsyncClient.request() against
ClientOptions.base_url. Status codes outside 2xx become FailureEnvelopes
carrying the response (so the CSRF stage can see the 401); any
httpx.HTTPError becomes a FailureEnvelope with no response and a
TransportFailure cause.

The adapter owns the AsyncClient it creates. A client passed in by the
caller (tests hand in one built on httpx.MockTransport) is left open.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from csrfguard_lite.config import ClientOptions
from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    RequestSpec,
    ResponseEnvelope,
)
from csrfguard_lite.domain.errors import TransportFailure

log = logging.getLogger(__name__)


class HttpxTransport:
    """Transport backed by an httpx.AsyncClient.

    Args:
        options: base_url and timeout are read from here.
        client: Optional pre-built client; not closed by aclose().
    """

    def __init__(
        self,
        options: ClientOptions | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._options = options or ClientOptions()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._options.base_url,
            timeout=self._options.timeout,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def execute(
        self, request: RequestSpec
    ) -> ResponseEnvelope | FailureEnvelope:
        try:
            resp = await self._client.request(
                request.method,
                request.path,
                params=request.query or None,
                headers=request.headers,
                **self._body_kwargs(request.body),
            )
        except httpx.HTTPError as exc:
            log.warning("%s %s: %s", request.method, request.path, exc)
            cause = TransportFailure(f"{type(exc).__name__}: {exc}")
            cause.__cause__ = exc
            return FailureEnvelope(request=request, cause=cause)

        envelope = ResponseEnvelope(
            status_code=resp.status_code,
            headers=dict(resp.headers.items()),
            body=resp.content,
            request=request,
        )
        log.debug("%s %s -> %d", request.method, request.path, resp.status_code)
        if envelope.ok:
            return envelope
        return FailureEnvelope.from_response(envelope)

    @staticmethod
    def _body_kwargs(body: Any) -> dict[str, Any]:
        if body is None:
            return {}
        if isinstance(body, (bytes, str)):
            return {"content": body}
        return {"json": body}

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpxTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
