"""CSRF token stage: attach, capture and refresh the cached token.

Request:   token cached?  -> write it to the token header (and cookie)
Response:  token header?  -> store it
Error:     401 with a response -> fetch a new token, store it, and let
           the failure carry on outward to the retry stage

Everything else passes through. The refresh is a nested transport call
made from inside on_error, so while it is in flight this stage's queue
holds every other request's hooks. That is what stops two concurrent
401s from both refreshing.

A request that was sent with a token other than the one now cached
missed a refresh that finished while it was in flight. It does not
trigger another one; the retry stage resends it with the current token.
"""
from __future__ import annotations

import logging

from csrfguard_lite.concurrency.credential_cache import CredentialCache
from csrfguard_lite.config import ClientOptions
from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    RequestSpec,
    ResponseEnvelope,
)
from csrfguard_lite.domain.errors import RefreshFailure
from csrfguard_lite.domain.outcomes import HookResult, Proceed, Reject
from csrfguard_lite.domain.types import Token
from csrfguard_lite.pipeline.interceptor import Interceptor
from csrfguard_lite.transport.base import Transport, dispatch

log = logging.getLogger(__name__)


def merge_cookie(existing: str | None, name: str, value: str) -> str:
    """Add or replace one ``name=value`` pair, keeping the other cookies."""
    pairs = [
        pair.strip()
        for pair in (existing or "").split(";")
        if pair.strip() and pair.strip().split("=", 1)[0].strip() != name
    ]
    pairs.append(f"{name}={value}")
    return "; ".join(pairs)


def attach_token(request: RequestSpec, token: Token, options: ClientOptions) -> None:
    """Write the token header (and cookie, if configured) onto a request.

    The token cookie is merged into any Cookie header already present, so
    the caller's session cookie travels alongside it.
    """
    request.set_header(options.header_name, token)
    if options.cookie_name:
        cookie = merge_cookie(request.header("Cookie"), options.cookie_name, token)
        request.set_header("Cookie", cookie)


class CsrfTokenInterceptor(Interceptor):
    """Keeps the CredentialCache in sync with the server.

    Args:
        cache: Shared token slot.
        transport: Used for the nested refresh call only.
        options: Header names and the refresh request shape.
    """

    name = "csrf-token"

    def __init__(
        self,
        cache: CredentialCache,
        transport: Transport,
        options: ClientOptions | None = None,
    ) -> None:
        self._cache = cache
        self._transport = transport
        self._options = options or ClientOptions()
        self._refresh_count = 0

    @property
    def refresh_count(self) -> int:
        """Refresh calls issued so far, successful or not."""
        return self._refresh_count

    async def on_request(self, request: RequestSpec) -> HookResult:
        token = self._cache.get()
        if token is not None:
            attach_token(request, token, self._options)
        return Proceed(request)

    async def on_response(self, response: ResponseEnvelope) -> HookResult:
        token = response.header(self._options.header_name)
        if token:
            if token != self._cache.get():
                log.debug("Captured token from %s", response.request.path)
            self._cache.set(token)
        return Proceed(response)

    async def on_error(self, failure: FailureEnvelope) -> HookResult:
        if not failure.is_auth_failure:
            return Proceed(failure)

        sent = failure.request.header(self._options.header_name)
        current = self._cache.get()
        if current is not None and current != sent:
            log.info(
                "%s %s: token already refreshed while in flight, not refreshing again",
                failure.request.method, failure.request.path,
            )
            return Proceed(failure)

        try:
            token = await self._refresh()
        except RefreshFailure as exc:
            log.warning("Token refresh failed: %s", exc)
            return Reject(
                FailureEnvelope(
                    request=failure.request, cause=exc, response=failure.response
                )
            )

        self._cache.set(token)
        log.info("Token refreshed after 401 on %s", failure.request.path)
        return Proceed(failure)

    async def _refresh(self) -> Token:
        """Issue the token-acquisition request and return the new token.

        Raises:
            RefreshFailure: non-2xx, transport error, or no token header.
        """
        self._refresh_count += 1
        opts = self._options
        request = RequestSpec(
            method=opts.refresh_method,
            path=opts.refresh_path,
            query=dict(opts.refresh_query),
        )
        outcome = await dispatch(self._transport, request)
        if isinstance(outcome, FailureEnvelope):
            raise RefreshFailure(f"refresh call failed: {outcome.cause}") from outcome.cause
        if not outcome.ok:
            raise RefreshFailure(f"refresh call returned HTTP {outcome.status_code}")

        token = outcome.header(opts.header_name)
        if not token:
            raise RefreshFailure(f"refresh response carried no {opts.header_name} header")
        return token
