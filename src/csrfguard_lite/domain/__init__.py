"""Domain model for csrfguard-lite.

Re-exports all public types for convenient access:
    from csrfguard_lite.domain import RequestSpec, ResponseEnvelope, Proceed
"""
from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    FailureKind,
    RequestSpec,
    ResponseEnvelope,
)
from csrfguard_lite.domain.errors import (
    AuthFailure,
    HookContractError,
    HttpStatusFailure,
    OtherHttpFailure,
    PipelineError,
    RefreshFailure,
    RequestFailed,
    TransportFailure,
)
from csrfguard_lite.domain.outcomes import (
    Envelope,
    HookKind,
    HookResult,
    Proceed,
    Reject,
    Resolve,
)
from csrfguard_lite.domain.types import (
    DEFAULT_COOKIE_NAME,
    DEFAULT_HEADER_NAME,
    STATUS_UNAUTHORIZED,
    Body,
    HeaderMap,
    QueryMap,
    Token,
)

__all__ = [
    "FailureEnvelope",
    "FailureKind",
    "RequestSpec",
    "ResponseEnvelope",
    "AuthFailure",
    "HookContractError",
    "HttpStatusFailure",
    "OtherHttpFailure",
    "PipelineError",
    "RefreshFailure",
    "RequestFailed",
    "TransportFailure",
    "Envelope",
    "HookKind",
    "HookResult",
    "Proceed",
    "Reject",
    "Resolve",
    "DEFAULT_COOKIE_NAME",
    "DEFAULT_HEADER_NAME",
    "STATUS_UNAUTHORIZED",
    "Body",
    "HeaderMap",
    "QueryMap",
    "Token",
]
