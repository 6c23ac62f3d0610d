"""Tests for CsrfTokenInterceptor hooks in isolation."""
from __future__ import annotations

import pytest

from csrfguard_lite.csrf.builder import build_csrf_pipeline
from csrfguard_lite.csrf.token_interceptor import (
    CsrfTokenInterceptor,
    attach_token,
    merge_cookie,
)
from csrfguard_lite.domain.envelopes import (
    FailureEnvelope,
    FailureKind,
    RequestSpec,
    ResponseEnvelope,
)
from csrfguard_lite.domain.errors import RefreshFailure, TransportFailure
from csrfguard_lite.domain.outcomes import Proceed, Reject

from tests.helpers import HEADER, Reply


def _401(request: RequestSpec) -> FailureEnvelope:
    return FailureEnvelope.from_response(ResponseEnvelope(401, {}, b"", request))


@pytest.fixture()
def token_stage(cache, transport, options) -> CsrfTokenInterceptor:
    return CsrfTokenInterceptor(cache, transport, options)


@pytest.mark.asyncio
async def test_no_token_cached_leaves_request_alone(token_stage, get_x):
    result = await token_stage.on_request(get_x)
    assert result == Proceed(get_x)
    assert get_x.headers == {}


@pytest.mark.asyncio
async def test_cached_token_is_attached_with_cookie(token_stage, cache, get_x):
    cache.set("t1")
    await token_stage.on_request(get_x)
    assert get_x.header(HEADER) == "t1"
    assert get_x.header("Cookie") == "XSRF_TOKEN=t1"


@pytest.mark.asyncio
async def test_token_cookie_is_merged_with_session_cookie(token_stage, cache):
    cache.set("t1")
    req = RequestSpec("GET", "/x", headers={"Cookie": "session=abc"})
    await token_stage.on_request(req)
    assert req.headers == {HEADER: "t1", "Cookie": "session=abc; XSRF_TOKEN=t1"}


def test_merge_cookie_replaces_only_the_token_pair():
    merged = merge_cookie("session=abc; XSRF_TOKEN=old; theme=dark", "XSRF_TOKEN", "new")
    assert merged == "session=abc; theme=dark; XSRF_TOKEN=new"
    assert merge_cookie(None, "XSRF_TOKEN", "t1") == "XSRF_TOKEN=t1"


@pytest.mark.asyncio
async def test_retried_request_keeps_session_cookie(cache, transport, options):
    cache.set("t1")
    transport.on("POST", "/y", Reply(401), Reply(200))
    transport.on("POST", options.refresh_path, Reply(200, {HEADER: "t2"}))
    pipeline = build_csrf_pipeline(transport, cache, options)

    await pipeline.post("/y", headers={"cookie": "session=abc"})

    first, retried = transport.calls("POST", "/y")
    assert first.header("Cookie") == "session=abc; XSRF_TOKEN=t1"
    assert retried.header("Cookie") == "session=abc; XSRF_TOKEN=t2"
    assert retried.header(HEADER) == "t2"


def test_attach_token_without_cookie(options):
    req = RequestSpec("GET", "/x")
    attach_token(req, "t1", options.replace(cookie_name=None))
    assert req.headers == {HEADER: "t1"}


@pytest.mark.asyncio
async def test_response_token_is_captured(token_stage, cache, get_x):
    resp = ResponseEnvelope(200, {HEADER.lower(): "t1"}, b"", get_x)
    result = await token_stage.on_response(resp)
    assert result == Proceed(resp)
    assert cache.get() == "t1"


@pytest.mark.asyncio
async def test_response_without_token_keeps_cache(token_stage, cache, get_x):
    cache.set("t1")
    await token_stage.on_response(ResponseEnvelope(200, {}, b"", get_x))
    assert cache.get() == "t1"


@pytest.mark.asyncio
async def test_transport_failure_passes_through(token_stage, transport, get_x):
    failure = FailureEnvelope(get_x, TransportFailure("refused"))
    result = await token_stage.on_error(failure)
    assert result == Proceed(failure)
    assert transport.sent == []
    assert token_stage.refresh_count == 0


@pytest.mark.asyncio
async def test_other_status_passes_through(token_stage, transport, get_x):
    failure = FailureEnvelope.from_response(ResponseEnvelope(403, {}, b"", get_x))
    assert await token_stage.on_error(failure) == Proceed(failure)
    assert transport.sent == []


@pytest.mark.asyncio
async def test_401_refreshes_and_proceeds(token_stage, cache, transport, options, post_y):
    cache.set("t1")
    post_y.headers[HEADER] = "t1"
    transport.on("POST", options.refresh_path, Reply(200, {HEADER: "t2"}))

    failure = _401(post_y)
    result = await token_stage.on_error(failure)

    assert result == Proceed(failure)
    assert cache.get() == "t2"
    assert token_stage.refresh_count == 1
    refresh = transport.sent[0]
    assert (refresh.method, refresh.path) == ("POST", options.refresh_path)
    assert refresh.header(HEADER) is None


@pytest.mark.asyncio
async def test_refresh_sends_configured_query(cache, transport, options, post_y):
    opts = options.replace(refresh_query={HEADER: "seed"})
    transport.on("POST", opts.refresh_path, Reply(200, {HEADER: "t2"}))
    await CsrfTokenInterceptor(cache, transport, opts).on_error(_401(post_y))
    assert transport.sent[0].query == {HEADER: "seed"}


@pytest.mark.parametrize(
    "reply",
    [Reply(500), Reply(200), Reply(error="timed out")],
    ids=["non-2xx", "missing-token", "transport-error"],
)
@pytest.mark.asyncio
async def test_refresh_failure_rejects(token_stage, cache, transport, options, post_y, reply):
    cache.set("t1")
    post_y.headers[HEADER] = "t1"
    transport.on("POST", options.refresh_path, reply)

    failure = _401(post_y)
    result = await token_stage.on_error(failure)

    assert isinstance(result, Reject)
    assert isinstance(result.failure.cause, RefreshFailure)
    assert result.failure.kind is FailureKind.REFRESH
    assert result.failure.request is post_y
    assert cache.get() == "t1"


@pytest.mark.asyncio
async def test_refresh_transport_error_is_chained(token_stage, transport, options, post_y):
    transport.on("POST", options.refresh_path, Reply(error="timed out"))
    result = await token_stage.on_error(_401(post_y))
    assert isinstance(result.failure.cause.__cause__, TransportFailure)


@pytest.mark.asyncio
async def test_stale_401_after_refresh_does_not_refresh_again(token_stage, cache, transport, post_y):
    """Sent with t1, but the cache already moved on to t2."""
    post_y.headers[HEADER] = "t1"
    cache.set("t2")

    failure = _401(post_y)
    assert await token_stage.on_error(failure) == Proceed(failure)
    assert transport.sent == []
    assert token_stage.refresh_count == 0
