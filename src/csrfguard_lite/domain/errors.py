"""Failure taxonomy for the interceptor pipeline.

Every FailureEnvelope carries one of these as its ``cause``:

    TransportFailure   no response at all (connection refused, timeout).
                       Never retried, propagated as-is.
    AuthFailure        a 401 response. The only class eligible for
                       refresh + retry.
    RefreshFailure     the nested token call failed or returned no token.
                       Terminal, and reported instead of the original 401.
    OtherHttpFailure   any other non-2xx status. Passed through untouched.
    HookContractError  a hook returned something other than a HookResult.

RequestFailed is what Pipeline.send() raises when the walk ends in a
failure; the envelope rides along on ``.failure``.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from csrfguard_lite.domain.envelopes import FailureEnvelope


class PipelineError(Exception):
    """Base class for everything the pipeline raises or records."""


class TransportFailure(PipelineError):
    """The transport produced no HTTP response."""


class HttpStatusFailure(PipelineError):
    """The transport produced a response outside the success range."""

    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"HTTP {status_code}")


class AuthFailure(HttpStatusFailure):
    """Server rejected the credential (401)."""


class OtherHttpFailure(HttpStatusFailure):
    """Non-2xx status this pipeline has no special handling for."""


class RefreshFailure(PipelineError):
    """The token-acquisition call failed or carried no token."""


class HookContractError(PipelineError):
    """A hook returned a value that is not a valid HookResult."""


class RequestFailed(PipelineError):
    """Terminal failure surfaced to the caller of Pipeline.send()."""

    def __init__(self, failure: FailureEnvelope) -> None:
        self.failure = failure
        req = failure.request
        super().__init__(f"{req.method} {req.path} failed: {failure.cause}")
