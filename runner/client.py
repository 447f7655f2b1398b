from __future__ import annotations

import asyncio
import time

import httpx

from dualserve.domain.diagnostics import HEALTH_BODY
from dualserve.logging_conf import get_logger
from runner.types import HealthError, Probe, ProbeError

logger = get_logger("runner.client")

_UNKNOWN_PATH = "/__dualserve_smoke_unknown__"


async def wait_for_health(
    base_url: str, *, verify: bool = False, timeout_s: float = 20.0, poll_interval_s: float = 0.25
) -> None:
    """Ping /healthz until it returns ok or raise after a timeout.

    - Tries repeatedly for `timeout_s` seconds
    - Logs a concise status when health is confirmed
    """
    deadline = time.monotonic() + timeout_s
    last_err: str = "no attempt"
    async with httpx.AsyncClient(base_url=base_url, timeout=5.0, verify=verify) as client:
        while time.monotonic() < deadline:
            try:
                r = await client.get("/healthz")
                if r.status_code == 200 and r.text == HEALTH_BODY:
                    logger.info("health.ok", extra={"event": "health_ok", "base_url": base_url})
                    return
                last_err = f"status={r.status_code} body={r.text!r}"
            except httpx.HTTPError as e:
                last_err = f"{type(e).__name__}: {e}"
            await asyncio.sleep(poll_interval_s)
    raise HealthError(f"{base_url}/healthz did not pass within timeout ({last_err})")


async def probe(base_url: str, *, verify: bool = False) -> Probe:
    """Query every diagnostic endpoint once and check the status codes.

    - Expects 200 from /healthz, / and /headers
    - Expects the framework's 404 for an unregistered path
    """
    async with httpx.AsyncClient(base_url=base_url, timeout=10.0, verify=verify) as client:
        try:
            health = await client.get("/healthz")
            echo = await client.get("/", headers={"X-Forwarded-For": "198.51.100.7"})
            headers = await client.get("/headers", headers={"X-Smoke": "1"})
            missing = await client.get(_UNKNOWN_PATH)
        except httpx.HTTPError as e:
            raise ProbeError(f"{base_url}: {type(e).__name__}: {e}") from e

    for r in (health, echo, headers):
        if r.status_code != 200:
            raise ProbeError(f"{r.request.url} answered {r.status_code}")
    if missing.status_code != 404:
        raise ProbeError(f"{missing.request.url} answered {missing.status_code}, expected 404")

    result = Probe(
        base_url=base_url,
        health=health.text,
        echo=echo.text,
        headers=headers.text.splitlines(),
        not_found_status=missing.status_code,
    )
    logger.info("probe.ok", extra={"event": "probe_ok", "base_url": base_url})
    return result


async def check_listener(
    base_url: str, *, verify: bool = False, timeout_s: float = 20.0, poll_interval_s: float = 0.25
) -> Probe:
    """Wait for a listener to become healthy, then probe it."""
    await wait_for_health(
        base_url, verify=verify, timeout_s=timeout_s, poll_interval_s=poll_interval_s
    )
    return await probe(base_url, verify=verify)
