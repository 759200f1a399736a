# src/batch/scheduler.py — v1
"""Paced, checkpointed extraction over a document set.

Run state machine:
    1. Init: load checkpoint, drop documents already in it; when a cache
       store is attached, also drop documents already cached and carry
       their cached results into the checkpoint lineage.
    2. Group remaining documents into consecutive groups of ``group_size``.
    3. Extract each document sequentially; a failure is logged and the
       document skipped (it stays retryable on the next run).
    4. Sleep ``inter_group_delay`` between groups (not after the last).
    5. Save a checkpoint every ``checkpoint_every`` processed documents
       and unconditionally at run end.

Single-threaded and blocking. A ``threading.Event`` may be passed to
cancel cooperatively between documents and during inter-group sleeps.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from fusextractor.batch.checkpoint import CheckpointStore, merge_results
from fusextractor.batch.models import BatchConfig, BatchSummary
from fusextractor.cache.base_cache_store import BaseCacheStore
from fusextractor.cache.resolver import partition_by_cache
from fusextractor.core.errors import DocumentExtractionFailure
from fusextractor.core.models import ExtractionResult, get_document_id
from fusextractor.logging.context import (
    set_document_context,
    set_group_context,
    set_run_context,
)

logger = logging.getLogger(__name__)

ExtractFn = Callable[[Any], "ExtractionResult | Mapping[str, Any]"]


def generate_run_id(timestamp: datetime | None = None) -> str:
    """Generate a run_id: yyyymmdd_hhmm_{uuid4_short}."""
    ts = timestamp or datetime.now(timezone.utc)
    short_uuid = uuid.uuid4().hex[:5]
    return f"{ts.strftime('%Y%m%d_%H%M')}_{short_uuid}"


class BatchScheduler:
    """Drive an extraction function over many documents, resumably."""

    def __init__(
        self,
        config: BatchConfig | None = None,
        cache_store: BaseCacheStore | None = None,
        sleep: Callable[[float], Any] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or BatchConfig()
        self._cache = cache_store
        self._sleep = sleep
        self._clock = clock
        self.last_summary: BatchSummary | None = None

    @property
    def config(self) -> BatchConfig:
        return self._config

    def run(
        self,
        documents: Iterable[Any],
        extract_fn: ExtractFn,
        id_field: str | None = None,
        group_size: int | None = None,
        inter_group_delay: float | None = None,
        checkpoint_every: int | None = None,
        checkpoint_path: Path | str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> list[ExtractionResult]:
        """Process ``documents`` through ``extract_fn``.

        Arguments left as None fall back to the scheduler's BatchConfig.
        Without a checkpoint path the run is paced but not checkpointed.

        Returns:
            Results produced this run plus results carried over from the
            checkpoint (and cache), one per document id.

        Raises:
            CheckpointReadFailure: Existing checkpoint is malformed.
            CheckpointWriteFailure: Checkpoint could not be persisted.
        """
        cfg = self._config
        id_field = id_field or cfg.id_field
        group_size = cfg.group_size if group_size is None else group_size
        delay = cfg.inter_group_delay if inter_group_delay is None else inter_group_delay
        every = cfg.checkpoint_every if checkpoint_every is None else checkpoint_every
        path = cfg.checkpoint_path if checkpoint_path is None else checkpoint_path
        _validate_run_args(group_size, delay, every)

        run_id = generate_run_id()
        set_run_context(run_id)
        t0 = self._clock()

        docs = _unique_by_id(documents, id_field)
        summary = BatchSummary(run_id=run_id, total=len(docs))
        store = CheckpointStore(path) if path is not None else None

        carried, docs = self._resume(docs, id_field, store)
        summary.skipped = summary.total - len(docs)
        summary.carried_over = len(carried)

        buffer: list[ExtractionResult] = []
        groups = [docs[i : i + group_size] for i in range(0, len(docs), group_size)]
        self._log_plan(len(docs), group_size, len(groups), delay)

        try:
            for group_num, group in enumerate(groups, start=1):
                set_group_context(f"{group_num}/{len(groups)}")
                logger.info(
                    "--- Group %d/%d (docs %d-%d) ---",
                    group_num, len(groups),
                    summary.processed + 1, summary.processed + len(group),
                )

                for doc in group:
                    if _is_cancelled(cancel_event):
                        summary.cancelled = True
                        break
                    self._process_one(doc, extract_fn, id_field, buffer, summary)
                    if store is not None and summary.processed % every == 0:
                        store.save(merge_results(carried, buffer))
                        summary.checkpoints_written += 1

                set_document_context(None)
                self._log_progress(summary, len(docs), t0)
                if summary.cancelled:
                    break

                if group_num < len(groups) and delay > 0:
                    logger.info("Waiting %.0f seconds before next group...", delay)
                    if self._pause(delay, cancel_event):
                        summary.cancelled = True
                        break
        except KeyboardInterrupt:
            logger.warning("Interrupted; saving checkpoint before exiting")
            if store is not None:
                store.save(merge_results(carried, buffer))
            raise
        finally:
            set_group_context(None)
            set_document_context(None)

        if summary.cancelled:
            logger.warning("Run cancelled after %d documents", summary.processed)

        results = merge_results(carried, buffer)
        if store is not None:
            store.save(results)
            summary.checkpoints_written += 1

        summary.duration_seconds = round(self._clock() - t0, 2)
        self.last_summary = summary
        self._log_complete(summary, len(results))
        return results

    # --- Init / resume ---

    def _resume(
        self,
        docs: list[Any],
        id_field: str,
        store: CheckpointStore | None,
    ) -> tuple[list[ExtractionResult], list[Any]]:
        """Return (carried-over results, documents still to process)."""
        carried: list[ExtractionResult] = []

        if store is not None:
            checkpoint = store.load()
            if checkpoint is not None:
                carried = list(checkpoint.results)
                done = checkpoint.ids
                docs = [d for d in docs if get_document_id(d, id_field) not in done]
                logger.info(
                    "Resuming: %d documents already processed, %d remaining",
                    len(done), len(docs),
                )

        if self._cache is None or not self._config.consult_cache:
            return carried, docs

        uncached, cached = partition_by_cache(docs, id_field, self._cache)
        if not cached:
            return carried, docs

        keep = {get_document_id(d, id_field) for d in uncached}
        for doc in cached:
            doc_id = get_document_id(doc, id_field)
            result = self._cache.get(doc_id)
            if result is None:
                keep.add(doc_id)
                continue
            carried.append(result.with_id(doc_id))

        remaining = [d for d in docs if get_document_id(d, id_field) in keep]
        logger.info(
            "Content cache already holds %d documents, %d remaining",
            len(docs) - len(remaining), len(remaining),
        )
        return carried, remaining

    # --- Per-document ---

    def _process_one(
        self,
        doc: Any,
        extract_fn: ExtractFn,
        id_field: str,
        buffer: list[ExtractionResult],
        summary: BatchSummary,
    ) -> None:
        doc_id = get_document_id(doc, id_field)
        set_document_context(doc_id)
        summary.processed += 1
        logger.info(
            "[%d/%d] Processing doc: %s",
            summary.processed, summary.total - summary.skipped, doc_id,
        )

        try:
            result = _extract(extract_fn, doc, doc_id)
        except DocumentExtractionFailure as e:
            summary.failed += 1
            summary.failed_ids.append(doc_id)
            logger.error("Error: %s", e.cause, extra={"data": e.details})
            return

        buffer.append(result)
        summary.succeeded += 1
        logger.info("Success: %s", doc_id)
        self._write_through(doc_id, result)

    def _write_through(self, doc_id: str, result: ExtractionResult) -> None:
        if self._cache is None:
            return
        try:
            self._cache.put(doc_id, result)
        except OSError:
            logger.warning("Failed to cache result for %s", doc_id, exc_info=True)

    def _pause(self, delay: float, cancel_event: threading.Event | None) -> bool:
        """Sleep between groups. Returns True if cancelled during the wait."""
        if cancel_event is not None:
            return cancel_event.wait(delay)
        self._sleep(delay)
        return False

    # --- Progress ---

    def _log_plan(self, n_docs: int, group_size: int, n_groups: int, delay: float) -> None:
        logger.info("=== Batch Processing ===")
        logger.info("Total documents: %d", n_docs)
        logger.info("Group size: %d", group_size)
        logger.info("Number of groups: %d", n_groups)
        logger.info("Delay between groups: %.0f seconds", delay)
        logger.info(
            "Estimated pacing time: %.1f minutes",
            max(n_groups - 1, 0) * delay / 60,
        )

    def _log_progress(self, summary: BatchSummary, n_docs: int, t0: float) -> None:
        elapsed = (self._clock() - t0) / 60
        logger.info(
            "Progress: %d/%d docs (%.1f%% success) | %.1f mins elapsed",
            summary.processed, n_docs, summary.success_rate, elapsed,
        )

    def _log_complete(self, summary: BatchSummary, n_results: int) -> None:
        logger.info("=== Batch Processing Complete ===")
        logger.info(
            "Successful extractions: %d/%d (%.1f%%)",
            summary.succeeded, summary.processed, summary.success_rate,
        )
        if summary.failed_ids:
            logger.info("Failed (retryable next run): %s", ", ".join(summary.failed_ids))
        logger.info("Total results in lineage: %d", n_results)
        logger.info("Total time: %.1f minutes", summary.duration_seconds / 60)


def _extract(extract_fn: ExtractFn, doc: Any, doc_id: str) -> ExtractionResult:
    """Call ``extract_fn`` and coerce its output to a tagged ExtractionResult."""
    try:
        raw = extract_fn(doc)
    except Exception as e:
        raise DocumentExtractionFailure(doc_id, e) from e

    if isinstance(raw, ExtractionResult):
        return raw.with_id(doc_id)
    if isinstance(raw, Mapping):
        try:
            return ExtractionResult.model_validate({**raw, "id": doc_id})
        except ValidationError as e:
            raise DocumentExtractionFailure(doc_id, e) from e
    raise DocumentExtractionFailure(
        doc_id, TypeError(f"extract_fn returned {type(raw).__name__}")
    )


def _unique_by_id(documents: Iterable[Any], id_field: str) -> list[Any]:
    """Materialize documents, keeping the first occurrence of each id."""
    seen: set[str] = set()
    unique: list[Any] = []
    for doc in documents:
        doc_id = get_document_id(doc, id_field)
        if doc_id in seen:
            logger.warning("Duplicate document id %s ignored", doc_id)
            continue
        seen.add(doc_id)
        unique.append(doc)
    return unique


def _is_cancelled(cancel_event: threading.Event | None) -> bool:
    return cancel_event is not None and cancel_event.is_set()


def _validate_run_args(group_size: int, delay: float, every: int) -> None:
    if group_size < 1:
        raise ValueError("group_size must be >= 1")
    if delay < 0:
        raise ValueError("inter_group_delay must be >= 0")
    if every < 1:
        raise ValueError("checkpoint_every must be >= 1")
