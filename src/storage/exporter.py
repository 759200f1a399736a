# src/storage/exporter.py — v1
"""Export extraction results to JSON, CSV and a summary text."""

from __future__ import annotations

import csv
import json
import logging
from collections.abc import Iterable
from pathlib import Path

from fusextractor.batch.models import BatchSummary
from fusextractor.core.models import LIST_FIELDS, LIST_SEPARATOR, ExtractionResult

logger = logging.getLogger(__name__)

CSV_FIELDS = ["id", *LIST_FIELDS, "modeling", "summary"]


def export_results_json(results: Iterable[ExtractionResult], path: Path) -> None:
    """Write results as a formatted JSON list."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = [r.model_dump() for r in results]
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Results saved to: %s", path)


def export_results_csv(results: Iterable[ExtractionResult], path: Path) -> None:
    """Write results as CSV; list fields are flattened with ``"; "``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS)
        writer.writeheader()
        for result in results:
            row = result.model_dump()
            for name in LIST_FIELDS:
                row[name] = LIST_SEPARATOR.join(row[name])
            writer.writerow(row)
    logger.info("Results saved to: %s", path)


def export_results(results: Iterable[ExtractionResult], path: Path) -> None:
    """Dispatch on the file extension (``.json`` or ``.csv``)."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        export_results_json(results, path)
    elif suffix == ".csv":
        export_results_csv(results, path)
    else:
        raise ValueError(f"Unsupported export format: {path.suffix!r}")


def export_summary(summary: BatchSummary) -> str:
    """Human-readable summary of one scheduler run."""
    lines = [
        f"=== Batch Summary: {summary.run_id} ===",
        f"Documents  : {summary.total}",
        f"Skipped    : {summary.skipped} (already checkpointed or cached)",
        f"Processed  : {summary.processed}",
        f"Succeeded  : {summary.succeeded} ({summary.success_rate:.1f}%)",
        f"Failed     : {summary.failed}",
        f"Checkpoints: {summary.checkpoints_written}",
        f"Duration   : {summary.duration_seconds:.1f}s",
    ]
    if summary.cancelled:
        lines.append("Run was cancelled before completion")
    if summary.failed_ids:
        lines.append(f"Retry next run: {', '.join(summary.failed_ids)}")
    return "\n".join(lines)
