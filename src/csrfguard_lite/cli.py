"""csrfguard-lite CLI entry point.

Usage: uv run csrfguard-lite demo [--base-url URL] [--protected-path PATH]

The default protected path, /mix/s=401/ on httpbun, answers 401 to every
request. Against it the demo shows the full refresh + retry sequence and
then reports the retried request's second 401 as the final outcome: the
retry happens once and the failure surfaces instead of looping. Point
--protected-path at an endpoint that checks the token to see the retry
succeed.
"""
import argparse
import asyncio
import logging
import sys
import uuid
from dataclasses import dataclass

import httpx

from csrfguard_lite.concurrency.credential_cache import CredentialCache
from csrfguard_lite.config import ClientOptions
from csrfguard_lite.csrf.builder import build_csrf_pipeline
from csrfguard_lite.domain.envelopes import FailureKind
from csrfguard_lite.domain.errors import RequestFailed
from csrfguard_lite.transport.httpx_transport import HttpxTransport

_DEFAULTS = ClientOptions()
DEFAULT_PROTECTED_PATH = "/mix/s=401/"


@dataclass(slots=True)
class DemoStep:
    index: int
    label: str
    path: str
    status: int | None
    token: str | None
    error: str | None = None
    kind: FailureKind | None = None


def _add_demo_parser(subparsers: argparse._SubParsersAction) -> None:
    p = subparsers.add_parser(
        "demo",
        help="Replay the CSRF scenario: fetch a token, then hit a 401 and recover.",
    )
    p.add_argument(
        "--base-url", default=_DEFAULTS.base_url,
        help=f"Server to talk to (default: {_DEFAULTS.base_url})",
    )
    p.add_argument(
        "--header-name", default=_DEFAULTS.header_name,
        help=f"Token header (default: {_DEFAULTS.header_name})",
    )
    p.add_argument(
        "--protected-path", default=DEFAULT_PROTECTED_PATH,
        help=f"Path the POST step targets (default: {DEFAULT_PROTECTED_PATH})",
    )
    p.add_argument(
        "--timeout", type=float, default=_DEFAULTS.timeout,
        help=f"Per-call timeout in seconds (default: {_DEFAULTS.timeout})",
    )
    p.add_argument(
        "--log-level", default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )


def demo_options(base_url: str, header_name: str, timeout: float) -> ClientOptions:
    """Options for the demo server: it echoes query params as headers."""
    return ClientOptions(
        base_url=base_url,
        header_name=header_name,
        timeout=timeout,
        refresh_query={header_name: str(uuid.uuid4())},
    )


async def run_demo(
    options: ClientOptions,
    transport: httpx.AsyncBaseTransport | None = None,
    protected_path: str = DEFAULT_PROTECTED_PATH,
) -> list[DemoStep]:
    """Run the two-request scenario and report the cache after each step.

    ``transport`` lets tests swap in httpx.MockTransport.
    """
    cache = CredentialCache()
    steps = [DemoStep(0, "initial", "", None, cache.get())]
    client = httpx.AsyncClient(
        base_url=options.base_url, timeout=options.timeout, transport=transport
    )
    async with client, HttpxTransport(options, client=client) as http:
        pipeline = build_csrf_pipeline(http, cache, options)
        calls = [
            ("access", "GET", "/response-headers", {options.header_name: str(uuid.uuid4())}),
            ("create", "POST", protected_path, {}),
        ]
        for index, (label, method, path, query) in enumerate(calls, start=1):
            try:
                resp = await pipeline.request(method, path, query=query)
                steps.append(DemoStep(index, label, path, resp.status_code, cache.get()))
            except RequestFailed as exc:
                status = exc.failure.response.status_code if exc.failure.response else None
                steps.append(
                    DemoStep(
                        index, label, path, status, cache.get(),
                        error=str(exc.failure.cause), kind=exc.failure.kind,
                    )
                )
    return steps


def _format_step(step: DemoStep) -> str:
    lines = [f"#{step.index} {step.label}"]
    if step.path:
        lines.append(f"- Path: '{step.path}'")
    if step.status is not None:
        lines.append(f"- Status: {step.status}")
    lines.append(f"- CSRF Token: {step.token}")
    if step.error:
        lines.append(f"- Error: {step.error}")
    if step.kind is FailureKind.AUTH:
        lines.append("- Retried once after refresh; server still answered 401")
    return "\n".join(lines)


def exit_code(steps: list[DemoStep]) -> int:
    """0 unless a step failed for a reason other than a surfaced 401."""
    failed = [s for s in steps if s.kind not in (None, FailureKind.AUTH)]
    return 1 if failed else 0


def _run_demo(args: argparse.Namespace) -> int:
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    options = demo_options(args.base_url, args.header_name, args.timeout)
    steps = asyncio.run(run_demo(options, protected_path=args.protected_path))
    for step in steps:
        print(_format_step(step))
        print()
    return exit_code(steps)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="csrfguard-lite",
        description="Serialized interceptor pipeline with CSRF token refresh and retry.",
    )
    subparsers = parser.add_subparsers(dest="command")

    _add_demo_parser(subparsers)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "demo":
        sys.exit(_run_demo(args))
