import socket
from pathlib import Path

import pytest

from dualserve.config import Config

DATA = Path(__file__).resolve().parent / "data"
CERT = DATA / "tls.crt"
KEY = DATA / "tls.key"
# A valid RSA key that does not belong to CERT.
OTHER_KEY = DATA / "other.key"


def make_config(**overrides) -> Config:
    values = {
        "host": "127.0.0.1",
        "http_port": 0,
        "https_port": 0,
        "tls_cert": str(CERT),
        "tls_key": str(KEY),
    }
    values.update(overrides)
    return Config(**values)


@pytest.fixture
def blocked_port():
    """A port held by a listening socket for the duration of the test."""
    sock = socket.create_server(("127.0.0.1", 0))
    try:
        yield sock.getsockname()[1]
    finally:
        sock.close()


@pytest.fixture
def free_port():
    sock = socket.create_server(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return port
