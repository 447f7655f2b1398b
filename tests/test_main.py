import logging
import os
import signal
import socket
import threading
import time

import pytest

from conftest import CERT, KEY
from dualserve import main as entry


def _env(monkeypatch, **values):
    for var in ("HTTPS_PORT", "HTTP_PORT", "TLS_CERT", "TLS_KEY", "LISTEN_HOST"):
        monkeypatch.delenv(var, raising=False)
    for var, value in values.items():
        monkeypatch.setenv(var, str(value))


def _unused_port() -> int:
    with socket.create_server(("127.0.0.1", 0)) as sock:
        return sock.getsockname()[1]


def _sigterm_once_listening(*ports: int, timeout: float = 10.0) -> threading.Thread:
    """Send SIGTERM to this process once every port accepts connections."""

    def wait_then_kill() -> None:
        deadline = time.monotonic() + timeout
        pending = list(ports)
        while pending and time.monotonic() < deadline:
            try:
                socket.create_connection(("127.0.0.1", pending[0]), timeout=0.2).close()
                pending.pop(0)
            except OSError:
                time.sleep(0.05)
        os.kill(os.getpid(), signal.SIGTERM)

    thread = threading.Thread(target=wait_then_kill, daemon=True)
    thread.start()
    return thread


def test_config_error_exits_with_2(monkeypatch, caplog):
    _env(monkeypatch, HTTP_PORT="not-a-port")
    with caplog.at_level(logging.CRITICAL), pytest.raises(SystemExit) as excinfo:
        entry.main()
    assert excinfo.value.code == 2
    [record] = [r for r in caplog.records if getattr(r, "event", None) == "config_invalid"]
    assert record.code == "invalid_config"


def test_http_listener_fault_exits_with_1(monkeypatch, blocked_port, free_port):
    _env(
        monkeypatch,
        HTTP_PORT=blocked_port,
        HTTPS_PORT=free_port,
        TLS_CERT=CERT,
        TLS_KEY=KEY,
        LISTEN_HOST="127.0.0.1",
    )
    with pytest.raises(SystemExit) as excinfo:
        entry.main()
    assert excinfo.value.code == 1


def test_sigterm_exits_normally(monkeypatch, caplog):
    http_port, https_port = _unused_port(), _unused_port()
    _env(
        monkeypatch,
        HTTP_PORT=http_port,
        HTTPS_PORT=https_port,
        TLS_CERT=CERT,
        TLS_KEY=KEY,
        LISTEN_HOST="127.0.0.1",
    )
    thread = _sigterm_once_listening(http_port, https_port)

    with caplog.at_level(logging.INFO):
        assert entry.main() is None
    thread.join(timeout=5)

    [record] = [r for r in caplog.records if getattr(r, "event", None) == "shutdown"]
    assert record.outcomes == {"http": "closed", "https": "closed"}


def test_module_app_serves_health():
    from fastapi.testclient import TestClient

    assert TestClient(entry.app).get("/healthz").text == "ok\n"
