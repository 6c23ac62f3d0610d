"""Assemble the standard CSRF pipeline.

    [ RetryOnAuthInterceptor, CsrfTokenInterceptor ] -> transport
      outer                   inner

Error hooks unwind inner to outer, so on a 401 the token stage
refreshes first and the retry stage resends second.
"""
from __future__ import annotations

from csrfguard_lite.concurrency.credential_cache import CredentialCache
from csrfguard_lite.config import ClientOptions
from csrfguard_lite.csrf.retry_interceptor import RetryOnAuthInterceptor
from csrfguard_lite.csrf.token_interceptor import CsrfTokenInterceptor
from csrfguard_lite.pipeline.pipeline import Pipeline
from csrfguard_lite.pipeline.stage import AdmissionScope, SerializedStage
from csrfguard_lite.transport.base import Transport


def build_csrf_pipeline(
    transport: Transport,
    cache: CredentialCache | None = None,
    options: ClientOptions | None = None,
    scope: AdmissionScope = AdmissionScope.HOOK,
) -> Pipeline:
    cache = cache if cache is not None else CredentialCache()
    options = options or ClientOptions()
    return Pipeline(
        transport,
        [
            SerializedStage(RetryOnAuthInterceptor(cache, transport, options), scope),
            SerializedStage(CsrfTokenInterceptor(cache, transport, options), scope),
        ],
    )
