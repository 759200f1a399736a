# src/cache/base_cache_store.py — v1
"""Abstract content cache interface.

One entry per document, keyed by ``safe_key(document_id)``. Entries are
written once per successful extraction, never expire, and are only
removed by an explicit clear or delete.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any, Callable

from fusextractor.cache.models import CacheEntry, CacheStats
from fusextractor.core.models import ExtractionResult


class BaseCacheStore(ABC):
    """Unified interface for content cache backends."""

    @abstractmethod
    def put(self, document_id: str, result: ExtractionResult) -> CacheEntry:
        """Store a result durably. Last writer wins for the same id."""

    @abstractmethod
    def get(self, document_id: str) -> ExtractionResult | None:
        """Return the cached result for one id, or None."""

    @abstractmethod
    def delete(self, document_id: str) -> bool:
        """Remove one entry. Returns True if something was deleted."""

    @abstractmethod
    def keys(self) -> set[str]:
        """Safe keys of every entry currently present."""

    @abstractmethod
    def get_all(self) -> list[ExtractionResult]:
        """Load every readable entry; unreadable entries are skipped."""

    @abstractmethod
    def clear(
        self,
        require_confirmation: bool = True,
        confirm: Callable[[str], str] = input,
    ) -> bool:
        """Delete all entries, optionally after explicit confirmation."""

    @abstractmethod
    def stats(self) -> CacheStats:
        """Read-only introspection."""

    def has(self, document_id: str) -> bool:
        from fusextractor.cache.keys import safe_key

        return safe_key(document_id) in self.keys()

    def uncached(self, all_documents: Iterable[Any], id_field: str = "id") -> list[Any]:
        """Documents whose safe key has no entry in this cache."""
        from fusextractor.cache.resolver import resolve_uncached

        return resolve_uncached(all_documents, id_field, self)
