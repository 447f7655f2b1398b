from __future__ import annotations

from collections.abc import Iterable

__all__ = [
    "HEALTH_BODY",
    "canonical_header_key",
    "format_peer",
    "echo_address_line",
    "header_dump_lines",
]

HEALTH_BODY = "ok\n"
_ECHO_PREFIX = "Got / request from Connecting from "


def canonical_header_key(name: str) -> str:
    """Return the canonical form of a header name.

    The first letter and any letter following a hyphen are upper case, the
    rest lower case: "x-forwarded-for" -> "X-Forwarded-For". Names holding
    spaces are returned unchanged.
    """
    if " " in name:
        return name
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def format_peer(host: str | None, port: int | None) -> str:
    """Render a peer address as host:port, bracketing IPv6 hosts."""
    if not host:
        return ""
    if ":" in host:
        host = f"[{host}]"
    if port is None:
        return host
    return f"{host}:{port}"


def echo_address_line(remote: str, forwarded: str | None) -> str:
    """Build the body of the root handler.

    A non-empty forwarded address is reported after the direct one;
    otherwise only the direct remote address is named.
    """
    if forwarded:
        return f"{_ECHO_PREFIX}{remote}, forwarded by {forwarded}!\n"
    return f"{_ECHO_PREFIX}{remote}\n"


def header_dump_lines(headers: Iterable[tuple[str, str]], host: str) -> list[str]:
    """One line per received header, sorted by name, then the host line.

    Repeated headers are grouped under their canonical name with values kept
    in arrival order. The Host header is only reported on the final line.
    """
    grouped: dict[str, list[str]] = {}
    for name, value in headers:
        key = canonical_header_key(name)
        if key == "Host":
            continue
        grouped.setdefault(key, []).append(value)

    lines = [f"{key}: [{' '.join(grouped[key])}]\n" for key in sorted(grouped)]
    lines.append(f"Host: [{host}]\n")
    return lines
