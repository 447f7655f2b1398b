"""Logging configuration for the server.

One JSON object per line on stdout, shared by our own loggers and uvicorn's.
Idempotent: calling setup_logging() multiple times won't duplicate handlers.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging import Handler, LogRecord
from typing import Any

from .errors import DualServeError, ListenerError

_DEFAULT_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Attributes every LogRecord carries, plus the ones formatters and uvicorn add;
# anything else on a record came in through `extra`.
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "color_message",
}


class JsonFormatter(logging.Formatter):
    """One JSON object per line.

    Fields: ts, level, logger, message, any `extra={...}` values, and for
    records carrying a DualServeError in exc_info its `code` plus, for
    listener errors, the `listener` name and `address`. Extras passed
    explicitly win over the lifted values.
    """

    def format(self, record: LogRecord) -> str:  # type: ignore[override]
        payload: dict[str, Any] = {
            "ts": datetime.now(UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in record.__dict__.items() if key not in _RESERVED
        )

        if record.exc_info:
            exc = record.exc_info[1]
            if isinstance(exc, DualServeError):
                payload.setdefault("code", exc.code)
            if isinstance(exc, ListenerError):
                payload.setdefault("listener", exc.listener)
                payload.setdefault("address", exc.address)
            payload["exc_info"] = self.formatException(record.exc_info)

        # Exceptions and addresses passed as extras are not JSON-native.
        return json.dumps(payload, ensure_ascii=False, default=str)


def _make_stream_handler(level: int) -> Handler:
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter())
    return handler


def setup_logging(level: str | int = _DEFAULT_LEVEL) -> None:
    """Configure root and uvicorn loggers for JSON output.

    Idempotent: only attaches handlers if none are present.
    """
    root = logging.getLogger()

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    if root.handlers:  # Prevent double configuration under tests
        return

    root.setLevel(level)
    root.addHandler(_make_stream_handler(level))

    # Both listeners run their own uvicorn.Server; route them through root.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.propagate = True
        for h in list(lg.handlers):
            lg.removeHandler(h)


def get_logger(name: str) -> logging.Logger:
    """Usage: logger = get_logger("service.tls")"""
    return logging.getLogger(name)
