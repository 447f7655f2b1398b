from __future__ import annotations

from dualserve.domain.diagnostics import HEALTH_BODY
from runner.types import Probe


def _check_probe(p: Probe) -> list[str]:
    """Return the problems found in a probe's bodies (empty when healthy)."""
    problems: list[str] = []
    if p.health != HEALTH_BODY:
        problems.append(f"unexpected /healthz body {p.health!r}")
    if not p.echo.startswith("Got / request from Connecting from "):
        problems.append(f"unexpected / body {p.echo!r}")
    if not p.headers or not p.headers[-1].startswith("Host: ["):
        problems.append("/headers does not end with the host line")
    return problems


def summarize(results: dict[str, Probe | BaseException]) -> tuple[dict, int]:
    """Compute summary dict and an exit code from per-listener results.

    Only the plain HTTP listener decides the exit code; an HTTPS failure is
    reported but tolerated, like the server tolerates it.
    """
    listeners: dict[str, dict] = {}
    for name, res in results.items():
        if isinstance(res, BaseException):
            listeners[name] = {"ok": False, "error": f"{type(res).__name__}: {res}"}
            continue
        problems = _check_probe(res)
        listeners[name] = {
            "ok": not problems,
            "base_url": res.base_url,
            "echo": res.echo.rstrip("\n"),
            "header_lines": len(res.headers),
            "problems": problems,
        }

    summary = {
        "component": "runner",
        "event": "summary",
        "listeners": listeners,
    }
    http_ok = listeners.get("http", {}).get("ok", False)
    return summary, 0 if http_ok else 1
