"""JSON-lines logging for the ``twitchclient`` logger tree.

Library modules only ever call ``logging.getLogger(__name__)`` and pass
structured fields as ``extra={"context": {...}}``. Nothing is emitted until
the host application calls ``setup_logging``, which attaches JSON handlers to
the package logger and detaches it from the root logger.

Each line carries the id of the queued request being dispatched, if any,
so the log entries of one call can be grouped across retries.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import TextIO

from twitchclient.config.settings import Settings, get_settings

ROOT_LOGGER = "twitchclient"

# Set by the queue consumer for the duration of one dispatch
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class JSONFormatter(logging.Formatter):
    """One JSON object per record. Context fields never shadow the base fields."""

    BASE_FIELDS = ("timestamp", "level", "logger", "thread", "message", "request_id")

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
            "request_id": request_id_var.get(),
        }
        for key, value in getattr(record, "context", {}).items():
            entry.setdefault(key, value)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _handlers(settings: Settings, stream: TextIO | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(stream or sys.stdout)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file))
    return handlers


def setup_logging(settings: Settings | None = None, stream: TextIO | None = None) -> logging.Logger:
    """Route the package logger to JSON handlers and return it.

    Safe to call again: previously installed handlers are closed and replaced.
    ``stream`` defaults to stdout; ``settings.log_file`` adds a file copy.
    """
    settings = settings or get_settings()
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()

    formatter = JSONFormatter()
    for handler in _handlers(settings, stream):
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def generate_request_id() -> str:
    return uuid.uuid4().hex[:12]


class DispatchTimer:
    """Wall time of one exchange in milliseconds, readable while still running."""

    def __init__(self, clock=time.perf_counter):
        self._clock = clock
        self._started: float | None = None
        self._stopped: float | None = None

    def __enter__(self) -> "DispatchTimer":
        self._started = self._clock()
        self._stopped = None
        return self

    def __exit__(self, *exc) -> None:
        self._stopped = self._clock()

    @property
    def elapsed_ms(self) -> float:
        if self._started is None:
            return 0.0
        end = self._clock() if self._stopped is None else self._stopped
        return round((end - self._started) * 1000, 2)
