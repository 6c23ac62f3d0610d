"""In-memory transports used across the test suite.

ScriptedTransport answers from a per-(method, path) list of replies.
CsrfServer behaves like a small CSRF-protected server: it issues tokens
and answers 401 to anything carrying a token it did not issue last.
Both record every request they receive (as copies, so later mutation
by a stage does not rewrite history).
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Callable

from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    RequestSpec,
    ResponseEnvelope,
)
from csrfguard_lite.domain.errors import TransportFailure

HEADER = "X-Csrf-Token"


@dataclass
class Reply:
    status: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    error: str | None = None          # set -> transport-level failure
    gate: asyncio.Event | None = None  # set -> wait before answering


def _envelope(request: RequestSpec, reply: Reply) -> ResponseEnvelope | FailureEnvelope:
    if reply.error is not None:
        return FailureEnvelope(request=request, cause=TransportFailure(reply.error))
    resp = ResponseEnvelope(
        status_code=reply.status,
        headers=dict(reply.headers),
        body=reply.body,
        request=request,
    )
    return resp if resp.ok else FailureEnvelope.from_response(resp)


class ScriptedTransport:
    """Replies are consumed in order; the last one for a route repeats."""

    def __init__(self, default: Reply | None = None) -> None:
        self._routes: dict[tuple[str, str], list[Reply]] = {}
        self._default = default or Reply(404)
        self.sent: list[RequestSpec] = []

    def on(self, method: str, path: str, *replies: Reply) -> ScriptedTransport:
        self._routes.setdefault((method, path), []).extend(replies)
        return self

    def calls(self, method: str, path: str) -> list[RequestSpec]:
        return [r for r in self.sent if r.method == method and r.path == path]

    async def execute(self, request: RequestSpec) -> ResponseEnvelope | FailureEnvelope:
        self.sent.append(request.copy_with())
        replies = self._routes.get((request.method, request.path))
        if not replies:
            reply = self._default
        elif len(replies) > 1:
            reply = replies.pop(0)
        else:
            reply = replies[0]
        if reply.gate is not None:
            await reply.gate.wait()
        return _envelope(request, reply)


class RaisingTransport:
    """A transport that breaks its contract by raising."""

    def __init__(self, exc: Exception) -> None:
        self._exc = exc

    async def execute(self, request: RequestSpec) -> ResponseEnvelope:
        raise self._exc


class CsrfServer:
    """Issues tok-1, tok-2, ... from POST /response-headers.

    GET /revoke invalidates the current token. Any other path answers
    200 if the request carries the most recently issued token (or if
    nothing was issued yet and ``open_until_issued``) and 401 otherwise.
    """

    def __init__(
        self,
        refresh_gate: asyncio.Event | None = None,
        open_until_issued: bool = False,
    ) -> None:
        self.refresh_gate = refresh_gate
        self.open_until_issued = open_until_issued
        self.valid: str | None = None
        self.issued = 0
        self.refresh_calls = 0
        self.sent: list[RequestSpec] = []

    def paths(self) -> list[str]:
        return [r.path for r in self.sent]

    async def execute(self, request: RequestSpec) -> ResponseEnvelope | FailureEnvelope:
        self.sent.append(request.copy_with())
        await asyncio.sleep(0)  # one network hop: lets concurrent callers interleave
        if request.method == "POST" and request.path == "/response-headers":
            self.refresh_calls += 1
            if self.refresh_gate is not None:
                await self.refresh_gate.wait()
            self.issued += 1
            self.valid = f"tok-{self.issued}"
            return _envelope(request, Reply(200, {HEADER: self.valid}))

        if request.path == "/revoke":
            self.valid = None
            self.open_until_issued = False
            return _envelope(request, Reply(200))

        if self.valid is None and self.open_until_issued:
            return _envelope(request, Reply(200, body=request.path.encode()))
        if request.header(HEADER) == self.valid and self.valid is not None:
            return _envelope(request, Reply(200, body=request.path.encode()))
        return _envelope(request, Reply(401))


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Yield to the loop until predicate() is true, or fail."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.001)
