# src/core/errors.py — v1
"""Exception hierarchy for the extraction core.

Recoverable failures (one retry attempt, one document, one cache file)
are contained where they occur. Checkpoint failures propagate and halt
the run.
"""

from __future__ import annotations

from typing import Any


class ExtractionCoreError(Exception):
    """Base exception for all fusextractor errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# === Retry ===


class TransientOperationFailure(ExtractionCoreError):
    """A wrapped operation failed on an attempt that will be retried."""

    def __init__(
        self, attempt: int, cause: BaseException, rate_limited: bool = False
    ) -> None:
        super().__init__(
            f"Attempt {attempt} failed: {cause}",
            {"attempt": attempt, "rate_limited": rate_limited},
        )
        self.attempt = attempt
        self.cause = cause
        self.rate_limited = rate_limited


class ExhaustedRetries(ExtractionCoreError):
    """All attempts of a wrapped operation failed."""

    def __init__(self, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"Failed after {attempts} attempts. Last error: {last_error}")
        self.attempts = attempts
        self.last_error = last_error


# === Extraction ===


class DocumentExtractionFailure(ExtractionCoreError):
    """A single document could not be extracted in this run."""

    def __init__(self, document_id: str, cause: BaseException) -> None:
        super().__init__(
            f"Extraction failed for document {document_id!r}: {cause}",
            {"document_id": document_id, "error_type": type(cause).__name__},
        )
        self.document_id = document_id
        self.cause = cause


class ExtractionParseError(ExtractionCoreError):
    """Model output could not be parsed into an ExtractionResult."""


# === Storage ===


class CacheReadFailure(ExtractionCoreError):
    """An individual cache entry could not be deserialized."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"Failed to load cache entry {path}: {cause}", {"path": path})
        self.path = path
        self.cause = cause


class CheckpointError(ExtractionCoreError):
    """Base class for checkpoint persistence failures. Always fatal to a run."""

    def __init__(self, action: str, path: str, cause: BaseException) -> None:
        super().__init__(f"Failed to {action} checkpoint {path}: {cause}", {"path": path})
        self.path = path
        self.cause = cause


class CheckpointWriteFailure(CheckpointError):
    """The checkpoint file could not be written."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__("write", path, cause)


class CheckpointReadFailure(CheckpointError):
    """An existing checkpoint file is unreadable or malformed."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__("read", path, cause)
