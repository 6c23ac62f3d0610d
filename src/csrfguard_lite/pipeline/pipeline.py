"""Pipeline: ordered SerializedStages wrapped around a transport.

    send(request)
      stage[0].on_request -> stage[1].on_request -> ... -> transport
      ... <- stage[1].on_response|on_error <- stage[0].on_response|on_error

Index 0 is the outermost stage: first to see the request, last to see
the outcome. Each stage calls into the next through a continuation, so
a stage that holds its queue for the whole request (REQUEST scope)
naturally spans everything deeper in the chain.

Short-circuit rules live in SerializedStage; the pipeline only turns
the final Settled into a return value or a RequestFailed.
"""
from __future__ import annotations

import logging
from typing import Any, Iterable

from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    RequestSpec,
    ResponseEnvelope,
)
from csrfguard_lite.domain.errors import RequestFailed
from csrfguard_lite.domain.types import Body
from csrfguard_lite.pipeline.interceptor import Interceptor
from csrfguard_lite.pipeline.stage import SerializedStage, Settled
from csrfguard_lite.transport.base import Transport, dispatch

log = logging.getLogger(__name__)


class Pipeline:
    """Compose interceptors with a transport.

    Args:
        transport: Executes the final request.
        interceptors: Interceptors or ready-made SerializedStages, outermost
            first. Plain interceptors get a HOOK-scoped stage.
    """

    def __init__(
        self,
        transport: Transport,
        interceptors: Iterable[Interceptor | SerializedStage] = (),
    ) -> None:
        self._transport = transport
        self._stages: list[SerializedStage] = []
        for item in interceptors:
            self.add(item)

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def stages(self) -> tuple[SerializedStage, ...]:
        return tuple(self._stages)

    def add(self, item: Interceptor | SerializedStage) -> SerializedStage:
        """Append a stage at the innermost position (closest to transport)."""
        stage = item if isinstance(item, SerializedStage) else SerializedStage(item)
        self._stages.append(stage)
        return stage

    async def send(self, request: RequestSpec) -> ResponseEnvelope:
        """Run a request through every stage and the transport.

        Returns the final response, which may come from a retried
        request. Raises RequestFailed if the walk ends in a failure.
        """
        stages = tuple(self._stages)
        log.debug("send %s %s through %d stage(s)", request.method, request.path, len(stages))
        settled = await self._through(stages, 0, request)
        if settled.succeeded:
            return settled.outcome  # type: ignore[return-value]
        failure: FailureEnvelope = settled.outcome  # type: ignore[assignment]
        log.debug("send %s %s failed: %r", request.method, request.path, failure.cause)
        raise RequestFailed(failure) from failure.cause

    async def _through(
        self,
        stages: tuple[SerializedStage, ...],
        index: int,
        request: RequestSpec,
    ) -> Settled:
        if index == len(stages):
            return Settled(await dispatch(self._transport, request))

        async def inner(req: RequestSpec) -> Settled:
            return await self._through(stages, index + 1, req)

        return await stages[index].run(request, inner)

    async def request(
        self,
        method: str,
        path: str,
        *,
        query: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        body: Body = None,
    ) -> ResponseEnvelope:
        spec = RequestSpec(
            method=method.upper(),
            path=path,
            query=dict(query or {}),
            headers=dict(headers or {}),
            body=body,
        )
        return await self.send(spec)

    async def get(self, path: str, **kwargs: Any) -> ResponseEnvelope:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> ResponseEnvelope:
        return await self.request("POST", path, **kwargs)
