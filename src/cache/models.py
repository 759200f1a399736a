# src/cache/models.py — v1
"""Cache domain models: CacheEntry, CacheStats."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from fusextractor.core.models import LIST_FIELDS, ExtractionResult, StringSet


class CacheEntry(BaseModel):
    """Durable form of one ExtractionResult.

    List fields are stored as JSON arrays so items containing ``;`` round-trip
    intact. Entries written as flattened ``"a; b"`` strings are still accepted
    and split on read.
    """

    id: str
    fusarium_species: StringSet = Field(default_factory=list)
    crop: StringSet = Field(default_factory=list)
    abiotic_factors: StringSet = Field(default_factory=list)
    observed_effects: StringSet = Field(default_factory=list)
    agronomic_practices: StringSet = Field(default_factory=list)
    modeling: bool = False
    summary: str = ""
    cached_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_result(cls, result: ExtractionResult) -> CacheEntry:
        lists = {name: list(getattr(result, name)) for name in LIST_FIELDS}
        return cls(
            id=result.id,
            modeling=result.modeling,
            summary=result.summary,
            **lists,
        )

    def to_result(self) -> ExtractionResult:
        return ExtractionResult.model_validate(
            self.model_dump(exclude={"cached_at"})
        )


class CacheStats(BaseModel):
    """Read-only snapshot of the cache directory."""

    exists: bool
    count: int = 0
    total_size: int = 0
    files: list[str] = Field(default_factory=list)

    @property
    def size_mb(self) -> float:
        return round(self.total_size / (1024**2), 2)
