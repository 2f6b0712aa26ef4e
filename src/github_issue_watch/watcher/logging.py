"""Structured logging configuration.

Uses standard library logging; every record is rendered as one JSON object per line
so scheduler and serverless log collectors can index the ``extra`` fields.

Records emitted during a watch run carry that run's ``run_id`` and ``repo``, so the
lines of one run (including client library lines) can be grouped even when the HTTP
trigger and a scheduled run overlap.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Attributes every LogRecord carries; anything else was passed via ``extra=``.
_STANDARD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_QUIET_LOGGERS = ("github", "urllib3", "redis")

_run_fields: ContextVar[dict[str, str]] = ContextVar("watch_run_fields", default={})


@contextmanager
def run_context(**fields: str) -> Iterator[None]:
    """Stamp ``fields`` on every record logged inside the block."""

    token = _run_fields.set({**_run_fields.get(), **fields})
    try:
        yield
    finally:
        _run_fields.reset(token)


class RunContextFilter(logging.Filter):
    """Copy the current run fields onto records; explicit ``extra`` values win."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _run_fields.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        run_id = getattr(record, "run_id", None)
        if run_id:
            payload["run_id"] = run_id

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and key != "run_id" and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def build_handler(stream: Any = None) -> logging.Handler:
    handler = logging.StreamHandler(stream=sys.stdout if stream is None else stream)
    handler.setFormatter(JsonFormatter())
    handler.addFilter(RunContextFilter())
    return handler


def configure_logging(level: str) -> None:
    """Send all logging to stdout as JSON at ``level``."""

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)

    root.addHandler(build_handler())
    root.setLevel(level.upper())

    # Client libraries log every request at DEBUG.
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root.level, logging.INFO))
