"""csrfguard-lite: serialized interceptor pipeline with CSRF refresh + retry."""
from csrfguard_lite.concurrency import CredentialCache, StageQueue
from csrfguard_lite.config import ClientOptions
from csrfguard_lite.csrf import (
    CsrfTokenInterceptor,
    RetryOnAuthInterceptor,
    build_csrf_pipeline,
)
from csrfguard_lite.domain import (
    FailureEnvelope,
    FailureKind,
    HookKind,
    HookResult,
    Proceed,
    Reject,
    RequestFailed,
    RequestSpec,
    Resolve,
    ResponseEnvelope,
)
from csrfguard_lite.pipeline import (
    AdmissionScope,
    Interceptor,
    InterceptorsWrapper,
    Pipeline,
    SerializedStage,
)
from csrfguard_lite.transport import HttpxTransport, Transport

__all__ = [
    "CredentialCache",
    "StageQueue",
    "ClientOptions",
    "CsrfTokenInterceptor",
    "RetryOnAuthInterceptor",
    "build_csrf_pipeline",
    "FailureEnvelope",
    "FailureKind",
    "HookKind",
    "HookResult",
    "Proceed",
    "Reject",
    "RequestFailed",
    "RequestSpec",
    "Resolve",
    "ResponseEnvelope",
    "AdmissionScope",
    "Interceptor",
    "InterceptorsWrapper",
    "Pipeline",
    "SerializedStage",
    "HttpxTransport",
    "Transport",
]
