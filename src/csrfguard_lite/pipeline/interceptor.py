"""Interceptor contract.

An interceptor has up to three async hooks. Each receives one envelope
and returns a HookResult (Proceed, Resolve or Reject). The defaults
pass the envelope through unchanged, so a subclass only overrides the
hooks it cares about.

For one-off interceptors built from closures, use InterceptorsWrapper:

    wrapper = InterceptorsWrapper(on_request=add_trace_id, name="trace")
"""
from __future__ import annotations

from typing import Awaitable, Callable

from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    RequestSpec,
    ResponseEnvelope,
)
from csrfguard_lite.domain.outcomes import HookResult, Proceed

RequestHook = Callable[[RequestSpec], Awaitable[HookResult]]
ResponseHook = Callable[[ResponseEnvelope], Awaitable[HookResult]]
ErrorHook = Callable[[FailureEnvelope], Awaitable[HookResult]]


class Interceptor:
    """Base interceptor: every hook is a pass-through."""

    name: str = "interceptor"

    async def on_request(self, request: RequestSpec) -> HookResult:
        return Proceed(request)

    async def on_response(self, response: ResponseEnvelope) -> HookResult:
        return Proceed(response)

    async def on_error(self, failure: FailureEnvelope) -> HookResult:
        return Proceed(failure)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class InterceptorsWrapper(Interceptor):
    """Interceptor assembled from plain async callables.

    Any hook left as None keeps the pass-through default.
    """

    def __init__(
        self,
        on_request: RequestHook | None = None,
        on_response: ResponseHook | None = None,
        on_error: ErrorHook | None = None,
        name: str = "wrapper",
    ) -> None:
        self.name = name
        self._on_request = on_request
        self._on_response = on_response
        self._on_error = on_error

    async def on_request(self, request: RequestSpec) -> HookResult:
        if self._on_request is None:
            return Proceed(request)
        return await self._on_request(request)

    async def on_response(self, response: ResponseEnvelope) -> HookResult:
        if self._on_response is None:
            return Proceed(response)
        return await self._on_response(response)

    async def on_error(self, failure: FailureEnvelope) -> HookResult:
        if self._on_error is None:
            return Proceed(failure)
        return await self._on_error(failure)
