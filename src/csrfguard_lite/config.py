"""Client options shared by the transport adapter and the CSRF stages.

Plain frozen dataclass, same as the rest of the codebase: defaults live
on the fields, the CLI overrides them from argparse flags, and tests
build variants with replace().
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace as _replace
from typing import Any, Mapping

from csrfguard_lite.domain.types import DEFAULT_COOKIE_NAME, DEFAULT_HEADER_NAME


@dataclass(frozen=True, slots=True)
class ClientOptions:
    """Where to send requests and how the CSRF token travels.

    Attributes:
        base_url: Every RequestSpec path is resolved against this.
        header_name: Header carrying the token in both directions.
        cookie_name: When set, outgoing requests also get
            ``Cookie: <cookie_name>=<token>``. None disables it.
        refresh_method / refresh_path / refresh_query: The nested
            token-acquisition request issued after a 401.
        timeout: Per-call timeout in seconds for the httpx adapter. This
            is what keeps a hung refresh from blocking its stage forever.
    """
    base_url: str = "https://httpbun.com/"
    header_name: str = DEFAULT_HEADER_NAME
    cookie_name: str | None = DEFAULT_COOKIE_NAME
    refresh_method: str = "POST"
    refresh_path: str = "/response-headers"
    refresh_query: Mapping[str, str] = field(default_factory=dict)
    timeout: float = 10.0

    def __post_init__(self) -> None:
        if not self.header_name:
            raise ValueError("header_name must not be empty")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")

    def replace(self, **changes: Any) -> ClientOptions:
        return _replace(self, **changes)
