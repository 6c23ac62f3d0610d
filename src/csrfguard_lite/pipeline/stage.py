"""SerializedStage: one interceptor behind a FIFO admission queue.

The problem it solves: the CSRF stage makes a nested network call (the
token refresh) inside its error hook. If a second failing request got
into the same hook while the first was still waiting on that call, both
would refresh, both would write the cache, and the final token would
depend on which reply landed last. Serializing entry to the stage
removes that race without the interceptor author having to think about
concurrency at all.

Two admission scopes:

    HOOK     each hook call is one activation. A request waiting on the
             transport does not hold the stage, so requests stay
             concurrent below it. Work done *inside* a hook (the nested
             refresh) is inside the activation and therefore serialized.
    REQUEST  the slot is held for the request's whole pass: on_request,
             everything deeper in the pipeline, and the final
             on_response / on_error.

Either way, activations start in arrival order and never overlap.

A hook that raises is an implicit Reject carrying the exception. The
queue is released in a finally block, so a broken hook cannot wedge it.
"""
from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum, auto
from typing import Awaitable, Callable

from csrfguard_lite.concurrency.stage_queue import StageQueue
from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    RequestSpec,
    ResponseEnvelope,
)
from csrfguard_lite.domain.errors import HookContractError
from csrfguard_lite.domain.outcomes import (
    Envelope,
    HookKind,
    HookResult,
    Proceed,
    Reject,
    Resolve,
)
from csrfguard_lite.pipeline.interceptor import Interceptor

log = logging.getLogger(__name__)


class AdmissionScope(Enum):
    HOOK = auto()
    REQUEST = auto()


@dataclass(frozen=True, slots=True)
class Settled:
    """Where a request stands after passing (part of) the pipeline.

    ``final`` means some stage short-circuited: outer stages must hand
    the outcome straight back without running their own hooks.
    """
    outcome: ResponseEnvelope | FailureEnvelope
    final: bool = False

    @property
    def succeeded(self) -> bool:
        return isinstance(self.outcome, ResponseEnvelope)


Inner = Callable[[RequestSpec], Awaitable[Settled]]


def failure_from(envelope: Envelope, cause: BaseException) -> FailureEnvelope:
    """Build the FailureEnvelope for a hook that raised or misbehaved."""
    if isinstance(envelope, RequestSpec):
        return FailureEnvelope(request=envelope, cause=cause)
    if isinstance(envelope, ResponseEnvelope):
        return FailureEnvelope(request=envelope.request, cause=cause, response=envelope)
    return FailureEnvelope(
        request=envelope.request, cause=cause, response=envelope.response
    )


class SerializedStage:
    """Run an interceptor's hooks one activation at a time, FIFO.

    Args:
        interceptor: The interceptor whose hooks are serialized.
        scope: HOOK (default) or REQUEST, see module docstring.
        name: Label for logs; defaults to the interceptor's name.
    """

    def __init__(
        self,
        interceptor: Interceptor,
        scope: AdmissionScope = AdmissionScope.HOOK,
        name: str | None = None,
    ) -> None:
        self._interceptor = interceptor
        self._scope = scope
        self._name = name or interceptor.name
        self._queue = StageQueue(self._name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def interceptor(self) -> Interceptor:
        return self._interceptor

    @property
    def scope(self) -> AdmissionScope:
        return self._scope

    @property
    def queue(self) -> StageQueue:
        return self._queue

    async def run(self, request: RequestSpec, inner: Inner) -> Settled:
        """Drive one request through this stage.

        on_request, then ``inner`` (deeper stages + transport), then
        on_response or on_error on the way back out.
        """
        if self._scope is AdmissionScope.REQUEST:
            async with self._queue.admit():
                return await self._run(request, inner)
        return await self._run(request, inner)

    async def _run(self, request: RequestSpec, inner: Inner) -> Settled:
        result = await self.activate(HookKind.REQUEST, request)
        if isinstance(result, Resolve):
            return Settled(result.response, final=True)
        if isinstance(result, Reject):
            return Settled(result.failure, final=True)

        settled = await inner(result.envelope)
        if settled.final:
            return settled
        return await self.unwind(settled.outcome)

    async def unwind(self, outcome: ResponseEnvelope | FailureEnvelope) -> Settled:
        """Pass an outcome from deeper in the pipeline through this stage."""
        if isinstance(outcome, ResponseEnvelope):
            result = await self.activate(HookKind.RESPONSE, outcome)
            if isinstance(result, Proceed):
                return Settled(result.envelope)
            if isinstance(result, Resolve):
                return Settled(result.response, final=True)
            return Settled(result.failure, final=True)

        result = await self.activate(HookKind.ERROR, outcome)
        if isinstance(result, Proceed):
            return Settled(result.envelope)
        if isinstance(result, Resolve):
            # Outer stages see the recovered response through on_response.
            return Settled(result.response)
        return Settled(result.failure, final=True)

    async def activate(self, kind: HookKind, envelope: Envelope) -> HookResult:
        """Run one hook, under the queue when the scope is HOOK."""
        gate = self._queue.admit() if self._scope is AdmissionScope.HOOK else nullcontext()
        async with gate:
            log.debug("%s: %s hook start", self._name, kind.name)
            result = await self._call(kind, envelope)
            log.debug("%s: %s hook -> %s", self._name, kind.name, type(result).__name__)
            return result

    async def _call(self, kind: HookKind, envelope: Envelope) -> HookResult:
        if kind is HookKind.REQUEST:
            hook = self._interceptor.on_request
        elif kind is HookKind.RESPONSE:
            hook = self._interceptor.on_response
        else:
            hook = self._interceptor.on_error

        try:
            result = await hook(envelope)
        except Exception as exc:
            log.exception("%s: %s hook raised", self._name, kind.name)
            return Reject(failure_from(envelope, exc))

        if not isinstance(result, (Proceed, Resolve, Reject)):
            err = HookContractError(
                f"{self._name}.{kind.name.lower()} hook returned {result!r}, "
                "expected Proceed, Resolve or Reject"
            )
            log.error("%s", err)
            return Reject(failure_from(envelope, err))
        if isinstance(result, Proceed) and not isinstance(
            result.envelope, kind.envelope_type()
        ):
            err = HookContractError(
                f"{self._name}.{kind.name.lower()} hook proceeded with "
                f"{type(result.envelope).__name__}, expected "
                f"{kind.envelope_type().__name__}"
            )
            log.error("%s", err)
            return Reject(failure_from(envelope, err))
        return result

    def __repr__(self) -> str:
        return f"SerializedStage(name={self._name!r}, scope={self._scope.name})"
