"""Shared fixtures for the csrfguard-lite test suite.

Requires: pip install pytest-asyncio
"""
from __future__ import annotations

import pytest

from csrfguard_lite.concurrency.credential_cache import CredentialCache
from csrfguard_lite.config import ClientOptions
from csrfguard_lite.domain.envelopes import RequestSpec

from tests.helpers import HEADER, ScriptedTransport


@pytest.fixture()
def options() -> ClientOptions:
    return ClientOptions(base_url="https://test.local/", header_name=HEADER)


@pytest.fixture()
def cache() -> CredentialCache:
    return CredentialCache()


@pytest.fixture()
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest.fixture()
def get_x() -> RequestSpec:
    return RequestSpec(method="GET", path="/x")


@pytest.fixture()
def post_y() -> RequestSpec:
    return RequestSpec(method="POST", path="/y", body={"name": "widget"})
