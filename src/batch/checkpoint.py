# src/batch/checkpoint.py — v1
"""Checkpoint persistence for resumable batch runs.

A checkpoint is a single JSON file holding the union of all results
accumulated so far. It is overwritten atomically (temp file + rename);
a write failure is fatal to the run because resumability depends on it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from pydantic import ValidationError

from fusextractor.batch.models import Checkpoint
from fusextractor.core.errors import CheckpointReadFailure, CheckpointWriteFailure
from fusextractor.core.models import ExtractionResult

logger = logging.getLogger(__name__)


def merge_results(*groups: Iterable[ExtractionResult]) -> list[ExtractionResult]:
    """Union of result groups keyed by id; later groups win, first-seen order kept."""
    merged: dict[str, ExtractionResult] = {}
    for group in groups:
        for result in group:
            merged[result.id] = result
    return list(merged.values())


class CheckpointStore:
    """Load and save the checkpoint file at a fixed path."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    def load(self) -> Checkpoint | None:
        """Read the checkpoint, or None when no file exists.

        Raises:
            CheckpointReadFailure: If the file exists but is malformed.
        """
        if not self.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            checkpoint = Checkpoint.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            raise CheckpointReadFailure(str(self._path), e) from e

        logger.info(
            "Found checkpoint with %d results (updated %s)",
            len(checkpoint.results), checkpoint.updated_at.isoformat(),
        )
        return checkpoint

    def save(self, results: Iterable[ExtractionResult]) -> Checkpoint:
        """Overwrite the checkpoint with ``results``.

        Raises:
            CheckpointWriteFailure: On any filesystem error.
        """
        checkpoint = Checkpoint(results=merge_results(results))
        payload = checkpoint.model_dump_json(indent=2)
        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp",
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise CheckpointWriteFailure(str(self._path), e) from e

        logger.info("Checkpoint saved: %d total documents processed", len(checkpoint.results))
        return checkpoint

    def delete(self) -> bool:
        if self.exists():
            self._path.unlink()
            return True
        return False
