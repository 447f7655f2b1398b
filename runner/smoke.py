#!/usr/bin/env python3
"""High-level smoke runner probing both listeners of a running server.

Steps:
- wait for /healthz on the HTTP and the HTTPS listener concurrently
- query /, /headers and an unknown path on each
- emit a compact summary and exit code (HTTP must pass, HTTPS may fail)
"""
from __future__ import annotations

import asyncio
import sys

from dualserve.logging_conf import get_logger, setup_logging
from runner.cli import parse_args
from runner.client import check_listener
from runner.utils import summarize

setup_logging()
logger = get_logger("runner")


async def run_smoke(
    *,
    http_url: str,
    https_url: str,
    verify: bool = False,
    poll_interval_s: float = 0.25,
    timeout_s: float = 20.0,
) -> int:
    names = ("http", "https")
    results = await asyncio.gather(
        check_listener(http_url, timeout_s=timeout_s, poll_interval_s=poll_interval_s),
        check_listener(
            https_url, verify=verify, timeout_s=timeout_s, poll_interval_s=poll_interval_s
        ),
        return_exceptions=True,
    )
    summary, exit_code = summarize(dict(zip(names, results)))
    logger.info("runner.summary", extra=summary)
    return exit_code


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv or sys.argv[1:])
    code = asyncio.run(
        run_smoke(
            http_url=args.http_url,
            https_url=args.https_url,
            verify=args.verify,
            poll_interval_s=args.poll_interval,
            timeout_s=args.timeout,
        )
    )
    raise SystemExit(code)


if __name__ == "__main__":
    main()
