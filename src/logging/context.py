# src/logging/context.py — v1
"""Run / group / document context attached to log records.

The batch scheduler updates the context as it moves through a run;
formatters read a snapshot of it for every record.
"""

from __future__ import annotations

import contextvars
from dataclasses import asdict, dataclass, replace
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Immutable snapshot of the current logging context."""

    run_id: str | None = None
    group: str | None = None
    document_id: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Non-None fields only, for JSON log injection."""
        return {k: v for k, v in asdict(self).items() if v is not None}


_EMPTY = LogContext()
_current: contextvars.ContextVar[LogContext] = contextvars.ContextVar(
    "fusextractor_log_context", default=_EMPTY
)


def get_context() -> LogContext:
    return _current.get()


def set_run_context(run_id: str) -> None:
    """Start a new run: group and document are reset."""
    _current.set(LogContext(run_id=run_id))


def set_group_context(group: str | None) -> None:
    """Set the current group label, e.g. ``"2/5"``."""
    _current.set(replace(_current.get(), group=group))


def set_document_context(document_id: str | None) -> None:
    """Set the document currently being extracted."""
    _current.set(replace(_current.get(), document_id=document_id))


def clear_context() -> None:
    _current.set(_EMPTY)
