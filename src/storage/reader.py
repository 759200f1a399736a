# src/storage/reader.py — v1
"""Load input documents from JSON, JSON Lines or CSV files."""

from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Any

from fusextractor.core.models import Document

logger = logging.getLogger(__name__)


def load_documents(path: Path | str, id_field: str = "id") -> list[Document]:
    """Read documents from ``path``; the format is chosen by file extension.

    Args:
        path: ``.json`` (list of objects), ``.jsonl`` or ``.csv`` file.
        id_field: Column/key holding the document identifier.

    Raises:
        ValueError: Unsupported extension or malformed content.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise ValueError(f"{path} must contain a JSON list of objects")
        records: list[dict[str, Any]] = data
    elif suffix == ".jsonl":
        records = [
            json.loads(line)
            for line in path.read_text(encoding="utf-8").splitlines()
            if line.strip()
        ]
    elif suffix == ".csv":
        with path.open(newline="", encoding="utf-8") as f:
            records = list(csv.DictReader(f))
    else:
        raise ValueError(f"Unsupported document file format: {path.suffix!r}")

    documents = [_to_document(r, id_field) for r in records]
    logger.info("Loaded %d documents from %s", len(documents), path)
    return documents


def _to_document(record: dict[str, Any], id_field: str) -> Document:
    if id_field != "id":
        record = {**record, "id": record.get(id_field)}
    return Document.model_validate(record)
