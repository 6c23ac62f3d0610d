"""Request, response and failure envelopes passed between stages.

RequestSpec is the only mutable one: stages may rewrite headers and
query parameters up to the moment the transport takes it. Once a
request has been sent, anything that wants to send it again (the retry
stage) builds a fresh instance with copy_with() instead of editing the
one that is already referenced by a response or failure.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Any

from csrfguard_lite.domain.errors import (
    AuthFailure,
    HttpStatusFailure,
    OtherHttpFailure,
    RefreshFailure,
    TransportFailure,
)
from csrfguard_lite.domain.types import (
    STATUS_UNAUTHORIZED,
    Body,
    HeaderMap,
    QueryMap,
)


def _lookup(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup (httpx hands back lower-case keys)."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


@dataclass(slots=True)
class RequestSpec:
    """An outgoing request, owned by the in-flight call."""
    method: str
    path: str
    query: QueryMap = field(default_factory=dict)
    headers: HeaderMap = field(default_factory=dict)
    body: Body = None

    def header(self, name: str) -> str | None:
        return _lookup(self.headers, name)

    def set_header(self, name: str, value: str) -> None:
        """Set a header, replacing any existing key that differs only in case."""
        lowered = name.lower()
        for key in [k for k in self.headers if k.lower() == lowered]:
            del self.headers[key]
        self.headers[name] = value

    def copy_with(self, **changes: Any) -> RequestSpec:
        """Return a fresh RequestSpec; header and query dicts are copied."""
        changes.setdefault("headers", dict(self.headers))
        changes.setdefault("query", dict(self.query))
        return replace(self, **changes)


@dataclass(frozen=True, slots=True)
class ResponseEnvelope:
    """A response from the transport plus the request that produced it."""
    status_code: int
    headers: Mapping[str, str]
    body: Body
    request: RequestSpec

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def header(self, name: str) -> str | None:
        return _lookup(self.headers, name)


class FailureKind(Enum):
    TRANSPORT = auto()
    AUTH = auto()
    REFRESH = auto()
    OTHER_HTTP = auto()
    HOOK = auto()


@dataclass(frozen=True, slots=True)
class FailureEnvelope:
    """A failed call: the request, the response if there was one, and why.

    ``response`` is None for transport-level failures. A hook that raises
    ends up here too, with the raised exception as ``cause``.
    """
    request: RequestSpec
    cause: BaseException
    response: ResponseEnvelope | None = None

    @classmethod
    def from_response(cls, response: ResponseEnvelope) -> FailureEnvelope:
        """Wrap a non-2xx response, classifying 401 as an auth failure."""
        if response.status_code == STATUS_UNAUTHORIZED:
            cause: BaseException = AuthFailure(response.status_code)
        else:
            cause = OtherHttpFailure(response.status_code)
        return cls(request=response.request, cause=cause, response=response)

    @property
    def is_auth_failure(self) -> bool:
        """A 401 the transport reported, not one some stage rejected with.

        A RefreshFailure still carries the original 401 response, but it is
        not eligible for another refresh or a retry.
        """
        return (
            isinstance(self.cause, AuthFailure)
            and self.response is not None
            and self.response.status_code == STATUS_UNAUTHORIZED
        )

    @property
    def kind(self) -> FailureKind:
        """Classify by cause. Anything a hook raised or rejected with is HOOK."""
        cause = self.cause
        if isinstance(cause, RefreshFailure):
            return FailureKind.REFRESH
        if isinstance(cause, TransportFailure):
            return FailureKind.TRANSPORT
        if isinstance(cause, HttpStatusFailure):
            return FailureKind.AUTH if self.is_auth_failure else FailureKind.OTHER_HTTP
        return FailureKind.HOOK
