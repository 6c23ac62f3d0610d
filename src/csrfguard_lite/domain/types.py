"""Shared type aliases and constants used across the domain."""
from __future__ import annotations

from typing import Any, TypeAlias

Token: TypeAlias = str
HeaderMap: TypeAlias = dict[str, str]
QueryMap: TypeAlias = dict[str, str]
Body: TypeAlias = Any  # bytes, str, JSON-able object or None

DEFAULT_HEADER_NAME = "X-Csrf-Token"
DEFAULT_COOKIE_NAME = "XSRF_TOKEN"
STATUS_UNAUTHORIZED = 401
