from __future__ import annotations

import ssl
from dataclasses import dataclass

from ..logging_conf import get_logger

__all__ = [
    "TlsCredential",
    "build_server_context",
    "load_credentials",
]

logger = get_logger("service.tls")


@dataclass(frozen=True)
class TlsCredential:
    """A loaded certificate/key pair ready to terminate TLS."""

    cert_path: str
    key_path: str
    context: ssl.SSLContext


def build_server_context(cert_path: str, key_path: str) -> ssl.SSLContext:
    """Server-side TLS context for the given pair.

    Raises OSError for unreadable files and ssl.SSLError for malformed or
    mismatched material.
    """
    ctx = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    ctx.minimum_version = ssl.TLSVersion.TLSv1_2
    ctx.load_cert_chain(certfile=cert_path, keyfile=key_path)
    return ctx


def load_credentials(cert_path: str, key_path: str) -> TlsCredential | None:
    """Load the TLS credential, or return None if it cannot be loaded.

    A failure is logged with both paths and the cause; it is left to the
    TLS listener to fault when it starts without a credential.
    """
    try:
        ctx = build_server_context(cert_path, key_path)
    except (OSError, ssl.SSLError) as e:
        logger.error(
            "tls.load_failed",
            extra={
                "event": "tls_load_failed",
                "cert": cert_path,
                "key": key_path,
                "error": f"{type(e).__name__}: {e}",
            },
        )
        return None

    logger.info(
        "tls.loaded",
        extra={"event": "tls_loaded", "cert": cert_path, "key": key_path},
    )
    return TlsCredential(cert_path=cert_path, key_path=key_path, context=ctx)
