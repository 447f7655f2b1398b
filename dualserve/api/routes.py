from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from ..domain.diagnostics import (
    HEALTH_BODY,
    echo_address_line,
    format_peer,
    header_dump_lines,
)

router = APIRouter(default_response_class=PlainTextResponse)

# The diagnostics answer whatever method the caller uses.
ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"]


@router.api_route("/healthz", methods=ANY_METHOD, summary="Liveness check")
async def health() -> PlainTextResponse:
    return PlainTextResponse(HEALTH_BODY)


@router.api_route(
    "/", methods=ANY_METHOD, summary="Echo the caller's direct and forwarded address"
)
async def echo_address(request: Request) -> PlainTextResponse:
    """Report the peer address and, when present, X-Forwarded-For."""
    client = request.client
    remote = format_peer(client.host, client.port) if client else ""
    forwarded = request.headers.get("X-Forwarded-For")
    return PlainTextResponse(echo_address_line(remote, forwarded))


@router.api_route(
    "/headers", methods=ANY_METHOD, summary="Dump the received request headers"
)
async def header_dump(request: Request) -> PlainTextResponse:
    """Return every received header, one per line, then the effective host."""
    raw = [(k.decode("latin-1"), v.decode("latin-1")) for k, v in request.headers.raw]
    host = request.headers.get("host", "")
    return PlainTextResponse("".join(header_dump_lines(raw, host)))
