import json
import logging
import sys

from dualserve.errors import ConfigError, ListenerStartError
from dualserve.logging_conf import JsonFormatter


def _record(msg="listener.faulted", exc=None, **extra):
    exc_info = (type(exc), exc, None) if exc is not None else None
    record = logging.makeLogRecord(
        {"name": "service.listeners", "levelno": logging.ERROR, "levelname": "ERROR", "msg": msg}
    )
    record.exc_info = exc_info
    record.__dict__.update(extra)
    return record


def _format(record) -> dict:
    return json.loads(JsonFormatter().format(record))


def test_plain_record_has_core_fields_and_extras():
    payload = _format(_record(event="listener_closed", listener="http"))
    assert payload["level"] == "ERROR"
    assert payload["logger"] == "service.listeners"
    assert payload["message"] == "listener.faulted"
    assert payload["event"] == "listener_closed"
    assert payload["listener"] == "http"
    assert "exc_info" not in payload
    for attr in ("args", "levelno", "pathname", "msg", "exc_text"):
        assert attr not in payload


def test_listener_error_fields_are_lifted():
    err = ListenerStartError("cannot bind", listener="https", address="0.0.0.0:443")
    payload = _format(_record(exc=err))
    assert payload["code"] == "listener_start_failed"
    assert payload["listener"] == "https"
    assert payload["address"] == "0.0.0.0:443"
    assert "ListenerStartError: cannot bind" in payload["exc_info"]


def test_explicit_extras_win_over_lifted_fields():
    err = ListenerStartError("cannot bind", listener="https", address="0.0.0.0:443")
    payload = _format(_record(exc=err, code="custom", address="[::]:443"))
    assert payload["code"] == "custom"
    assert payload["address"] == "[::]:443"
    assert payload["listener"] == "https"


def test_non_listener_errors():
    assert _format(_record(exc=ConfigError("bad")))["code"] == "invalid_config"
    payload = _format(_record(exc=OSError("boom")))
    assert "code" not in payload
    assert "OSError: boom" in payload["exc_info"]


def test_non_json_extras_are_stringified():
    payload = _format(_record(error=OSError("boom"), stream=sys.stdout))
    assert payload["error"] == "boom"
    assert isinstance(payload["stream"], str)
