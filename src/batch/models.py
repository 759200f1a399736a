# src/batch/models.py — v1
"""Batch processing models: BatchConfig, BatchSummary, Checkpoint."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fusextractor.core.models import ExtractionResult

CHECKPOINT_VERSION = 1


class BatchConfig(BaseModel):
    """Scheduler defaults; every field can be overridden per ``run()`` call."""

    model_config = ConfigDict(frozen=True)

    id_field: str = "id"
    group_size: int = Field(default=10, ge=1)
    inter_group_delay: float = Field(default=60.0, ge=0)
    checkpoint_every: int = Field(default=50, ge=1)
    checkpoint_path: Path | None = None
    consult_cache: bool = True


class BatchSummary(BaseModel):
    """Outcome of one scheduler run."""

    run_id: str
    total: int
    skipped: int = 0
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    failed_ids: list[str] = Field(default_factory=list)
    carried_over: int = 0
    checkpoints_written: int = 0
    cancelled: bool = False
    duration_seconds: float = 0.0

    @property
    def success_rate(self) -> float:
        """Percentage of processed documents that produced a result."""
        if self.processed == 0:
            return 0.0
        return self.succeeded / self.processed * 100


class Checkpoint(BaseModel):
    """Aggregate snapshot of every result accumulated in a run lineage."""

    version: int = CHECKPOINT_VERSION
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    results: list[ExtractionResult] = Field(default_factory=list)

    @field_validator("version")
    @classmethod
    def _known_version(cls, v: int) -> int:
        if v != CHECKPOINT_VERSION:
            raise ValueError(f"unsupported checkpoint version {v}")
        return v

    @property
    def ids(self) -> set[str]:
        return {r.id for r in self.results}
