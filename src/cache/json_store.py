# src/cache/json_store.py — v1
"""JSON file-based content cache (default backend).

Stores one ``<safe_key>.json`` file per document under the cache root.
Writes go through a sibling temp file and ``os.replace`` so readers never
observe a truncated entry.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Callable

from pydantic import ValidationError

from fusextractor.cache.base_cache_store import BaseCacheStore
from fusextractor.cache.keys import safe_key
from fusextractor.cache.models import CacheEntry, CacheStats
from fusextractor.core.errors import CacheReadFailure
from fusextractor.core.models import ExtractionResult

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".json"


class JsonCacheStore(BaseCacheStore):
    """File-based content cache using JSON files."""

    def __init__(self, cache_root: Path | str) -> None:
        self._root = Path(cache_root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def put(self, document_id: str, result: ExtractionResult) -> CacheEntry:
        """Store a result for ``document_id`` (overwrites any prior entry)."""
        entry = CacheEntry.from_result(result.with_id(str(document_id)))
        path = self._entry_path(document_id)
        self._root.mkdir(parents=True, exist_ok=True)
        _atomic_write_text(path, entry.model_dump_json(indent=2))
        logger.debug("Cached %s -> %s", document_id, path.name)
        return entry

    def get(self, document_id: str) -> ExtractionResult | None:
        path = self._entry_path(document_id)
        if not path.exists():
            return None
        try:
            return self._read_entry(path).to_result()
        except CacheReadFailure as e:
            logger.warning("%s", e)
            return None

    def delete(self, document_id: str) -> bool:
        path = self._entry_path(document_id)
        if path.exists():
            path.unlink()
            return True
        return False

    def has(self, document_id: str) -> bool:
        return self._entry_path(document_id).is_file()

    def keys(self) -> set[str]:
        return {path.stem for path in self._entry_files()}

    def get_all(self) -> list[ExtractionResult]:
        """Load every entry in the cache directory.

        Entries that fail to deserialize are logged and skipped.
        """
        files = self._entry_files()
        if not files:
            logger.info("No cached results found in %s", self._root)
            return []

        logger.info("Loading %d cached results...", len(files))
        results: list[ExtractionResult] = []
        for path in files:
            try:
                results.append(self._read_entry(path).to_result())
            except CacheReadFailure as e:
                logger.warning("%s", e)
                continue

        logger.info("Loaded %d cached results", len(results))
        return results

    def clear(
        self,
        require_confirmation: bool = True,
        confirm: Callable[[str], str] = input,
    ) -> bool:
        """Delete every cache entry.

        Args:
            require_confirmation: Ask ``confirm`` before deleting anything.
            confirm: Prompt callable; only a case-insensitive "yes" proceeds.

        Returns:
            True if files were deleted.
        """
        if not self._root.is_dir():
            logger.info("No cache directory found")
            return False

        files = self._entry_files()
        if not files:
            logger.info("Cache is already empty")
            return False

        if require_confirmation:
            logger.info("About to delete %d cached files from %s", len(files), self._root)
            try:
                response = confirm("Type 'yes' to confirm: ")
            except EOFError:
                response = ""
            if (response or "").strip().lower() != "yes":
                logger.info("Cache clearing cancelled")
                return False

        deleted = 0
        for path in files:
            try:
                path.unlink()
                deleted += 1
            except FileNotFoundError:
                continue
        logger.info("Deleted %d cache files", deleted)
        return True

    def stats(self) -> CacheStats:
        if not self._root.is_dir():
            return CacheStats(exists=False)
        files = self._entry_files()
        return CacheStats(
            exists=True,
            count=len(files),
            total_size=sum(p.stat().st_size for p in files),
            files=[p.name for p in files],
        )

    def _entry_files(self) -> list[Path]:
        if not self._root.is_dir():
            return []
        return sorted(p for p in self._root.glob(f"*{ENTRY_SUFFIX}") if p.is_file())

    def _entry_path(self, document_id: str) -> Path:
        return self._root / f"{safe_key(document_id)}{ENTRY_SUFFIX}"

    @staticmethod
    def _read_entry(path: Path) -> CacheEntry:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return CacheEntry(**data)
        except (OSError, ValueError, TypeError, ValidationError) as e:
            raise CacheReadFailure(str(path), e) from e


def _atomic_write_text(path: Path, content: str) -> None:
    """Write ``content`` to ``path`` via a temp file in the same directory."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
