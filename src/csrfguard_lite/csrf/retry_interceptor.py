"""Retry stage: resend a request once after the token stage refreshed.

Sits outside the token stage, so on the way out it sees a 401 only if
the token stage let it through (refresh succeeded, or a refresh had
already happened). It copies the failed request, puts the current token
on it, and sends it straight to the transport. The retry never re-enters
the pipeline, so a second 401 is final instead of looping.
"""
from __future__ import annotations

import logging

from csrfguard_lite.concurrency.credential_cache import CredentialCache
from csrfguard_lite.config import ClientOptions
from csrfguard_lite.csrf.token_interceptor import attach_token
from csrfguard_lite.domain.envelopes import FailureEnvelope, ResponseEnvelope
from csrfguard_lite.domain.outcomes import HookResult, Proceed, Reject, Resolve
from csrfguard_lite.pipeline.interceptor import Interceptor
from csrfguard_lite.transport.base import Transport, dispatch

log = logging.getLogger(__name__)


class RetryOnAuthInterceptor(Interceptor):
    """One-shot resend of 401 failures with the current cached token."""

    name = "retry-on-auth"

    def __init__(
        self,
        cache: CredentialCache,
        transport: Transport,
        options: ClientOptions | None = None,
    ) -> None:
        self._cache = cache
        self._transport = transport
        self._options = options or ClientOptions()
        self._retry_count = 0

    @property
    def retry_count(self) -> int:
        return self._retry_count

    async def on_error(self, failure: FailureEnvelope) -> HookResult:
        if not failure.is_auth_failure:
            return Proceed(failure)

        retry = failure.request.copy_with()
        token = self._cache.get()
        if token is not None and retry.header(self._options.header_name) != token:
            attach_token(retry, token, self._options)

        self._retry_count += 1
        log.info("Retrying %s %s after 401", retry.method, retry.path)
        outcome = await dispatch(self._transport, retry)

        if isinstance(outcome, ResponseEnvelope):
            if outcome.ok:
                return Resolve(outcome)
            return Reject(FailureEnvelope.from_response(outcome))
        return Reject(outcome)
