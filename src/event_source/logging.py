"""Structured JSON logging helpers for event sources.

All loggers live under the ``event_source`` namespace. Only that package
logger carries a handler; module loggers returned by :func:`get_logger`
propagate to it, so applications can re-route or silence the whole library
through a single logger.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timezone
from logging import Logger
from typing import IO, Dict

_LOGGER_NAME = "event_source"
_STRUCTURED_FIELDS = ("event", "payload", "source")


class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        payload = {
            "ts": ts,
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _STRUCTURED_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=repr)


def _level_from_env() -> int:
    # EVENT_SOURCE_LOG_LEVEL wins over the generic LOG_LEVEL
    name = os.environ.get("EVENT_SOURCE_LOG_LEVEL") or os.environ.get("LOG_LEVEL", "INFO")
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: int | None = None, stream: IO[str] | None = None) -> Logger:
    """Attach the JSON handler to the package logger, replacing a previous one."""

    root = logging.getLogger(_LOGGER_NAME)
    for handler in list(root.handlers):
        if isinstance(handler.formatter, _JsonFormatter):
            root.removeHandler(handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(_JsonFormatter())
    root.addHandler(handler)
    root.setLevel(_level_from_env() if level is None else level)
    return root


def get_logger(name: str | None = None) -> Logger:
    """Return ``event_source`` or one of its module loggers."""

    root = logging.getLogger(_LOGGER_NAME)
    if not root.handlers:
        configure_logging()
    return root.getChild(name) if name else root


def log_event(
    logger: Logger,
    event: str,
    payload: Dict[str, object] | None = None,
    *,
    level: int = logging.INFO,
) -> None:
    """Log an event payload in a consistent JSON format."""

    payload = payload or {}
    extra = {"event": event, "payload": payload}
    if payload.get("source") is not None:
        extra["source"] = payload["source"]
    logger.log(level, f"event={event}", extra=extra)
