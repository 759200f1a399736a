# src/logging/logger.py — v1
"""Logger factory with JSON and text formatters.

Handlers installed by setup_logging() carry a ContextFilter that stamps
every record with the active run/group/document, so a long batch log can
be filtered per document.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fusextractor.logging.context import get_context

ROOT_LOGGER = "fusextractor"

_CONTEXT_ATTR = "log_context"


class ContextFilter(logging.Filter):
    """Attach a snapshot of the logging context to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, _CONTEXT_ATTR):
            setattr(record, _CONTEXT_ATTR, get_context().as_dict())
        return True


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    ctx = getattr(record, _CONTEXT_ATTR, None)
    return ctx if ctx is not None else get_context().as_dict()


def _timestamp(record: logging.LogRecord) -> datetime:
    return datetime.fromtimestamp(record.created, tz=timezone.utc)


class JsonFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, context, data."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": _timestamp(record).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _record_context(record)
        if context:
            entry["context"] = context

        # Structured payload passed via extra={"data": ...}
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data

        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Single-line human-readable format for interactive runs."""

    def format(self, record: logging.LogRecord) -> str:
        context = _record_context(record)
        prefix = [
            _timestamp(record).strftime("%Y-%m-%d %H:%M:%S"),
            f"[{record.levelname:8s}]",
            record.name,
        ]
        if "group" in context:
            prefix.append(f"[group {context['group']}]")
        if "document_id" in context:
            prefix.append(f"({context['document_id']})")

        line = f"{' '.join(prefix)} - {record.getMessage()}"
        if record.exc_info and record.exc_info[1] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def get_logger(name: str) -> logging.Logger:
    """Named logger under the package root; configured by setup_logging()."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def _install(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setFormatter(formatter)
    handler.addFilter(ContextFilter())
    root.addHandler(handler)


def setup_logging(
    level: str = "INFO",
    log_format: str = "text",
    log_file: str | Path | None = None,
    rotation: str = "10MB",
    retention: int = 30,
) -> logging.Logger:
    """Configure the package root logger; safe to call repeatedly.

    Args:
        level: DEBUG, INFO, WARNING or ERROR.
        log_format: "json" or "text".
        log_file: Optional rotating log file in addition to stderr.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of rotated files to keep.

    Returns:
        The configured root logger.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter: logging.Formatter = JsonFormatter() if log_format == "json" else TextFormatter()
    _install(root, logging.StreamHandler(sys.stderr), formatter)

    if log_file:
        from fusextractor.logging.handlers import create_rotating_handler

        _install(
            root,
            create_rotating_handler(log_file, rotation=rotation, retention=retention),
            formatter,
        )

    return root
