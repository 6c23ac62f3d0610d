"""Credential cache: one token slot shared by several pipeline stages.

The refresh stage writes it from inside its error hook; the token stage
and the retry stage read it. Writes that matter are already serialized
by the refresh stage's own queue, so the lock here only has to make a
single get() or set() atomic. The retry stage's read is not ordered
against the refresh stage's write (different stages, different queues),
which is why the retry stage re-reads immediately before resending.

No expiry. A stale token is discovered when the server answers 401.
"""
from __future__ import annotations

import threading

from csrfguard_lite.domain.types import Token


class CredentialCache:
    """Thread-safe single-value token slot.

    Args:
        token: Optional initial token.
    """

    def __init__(self, token: Token | None = None) -> None:
        self._token = token
        self._version = 0 if token is None else 1
        self._lock = threading.Lock()

    def get(self) -> Token | None:
        with self._lock:
            return self._token

    def set(self, token: Token) -> None:
        """Store a new token. Bumps version even if the value is unchanged."""
        with self._lock:
            self._token = token
            self._version += 1

    def clear(self) -> None:
        with self._lock:
            self._token = None

    @property
    def version(self) -> int:
        """Number of set() calls so far (counting an initial token as one)."""
        with self._lock:
            return self._version

    def __repr__(self) -> str:
        return f"CredentialCache(token={self.get()!r}, version={self.version})"
