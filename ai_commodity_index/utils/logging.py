"""
Root logger setup for the ``acci`` CLI and scheduler.

``configure_logging(config.logging)`` is called once per process from the CLI
callback. Library modules only ever do ``logging.getLogger(__name__)``.

Pipeline stages pass ``extra={"stage": ..., "run_slug": ...}``. The text
format ignores those fields; with ``json_format = true`` every line is a JSON
object that carries them::

    {"ts": "2026-02-24T15:00:00Z", "level": "INFO", "logger": "ai_commodity_index.pipeline.base",
     "msg": "Stage [composite_index] starting", "stage": "composite_index", "run_slug": "..."}
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ai_commodity_index.config import LoggingConfig

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Chatty at INFO (one line per HTTP request during price ingest).
QUIET_LOGGERS = ("httpx", "httpcore")

_STANDARD_RECORD_FIELDS = frozenset(
    vars(logging.makeLogRecord({}))
) | {"message", "asctime"}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Fields attached to ``record`` through ``extra=``."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _STANDARD_RECORD_FIELDS and not key.startswith("_")
    }


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, timestamps in UTC."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": created.strftime(TIMESTAMP_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(record_context(record))
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JsonLineFormatter()
    formatter = logging.Formatter(TEXT_FORMAT, datefmt=TIMESTAMP_FORMAT)
    formatter.converter = time.gmtime
    return formatter


def configure_logging(config: "LoggingConfig") -> list[logging.Handler]:
    """Replace the root logger's handlers according to ``config``.

    Always logs to stdout. When ``config.log_file`` is non-empty, also appends
    to that file, creating its parent directory.

    Returns:
        The handlers installed on the root logger.
    """
    level = logging.getLevelName(config.level.upper())
    formatter = _formatter(config.json_format)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return handlers
