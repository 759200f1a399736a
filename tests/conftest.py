# tests/conftest.py — v1
"""Shared test fixtures for unit and integration tests.

Provides sample documents, stub extraction functions, a recording sleep
and temp directories. No network access; every sleep is faked.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from fusextractor.core.models import Document, ExtractionResult
from fusextractor.logging.context import clear_context


class RecordingSleep:
    """Stand-in for time.sleep that records requested delays."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class StubExtractor:
    """Deterministic extract_fn: fixed result per id, optional failing ids."""

    def __init__(self, fail_ids: set[str] | None = None) -> None:
        self.fail_ids = fail_ids or set()
        self.calls: list[str] = []

    def __call__(self, document: Any) -> ExtractionResult:
        doc_id = document["id"] if isinstance(document, dict) else document.id
        self.calls.append(doc_id)
        if doc_id in self.fail_ids:
            raise RuntimeError(f"model refused {doc_id}")
        return ExtractionResult(
            fusarium_species=["Fusarium graminearum"],
            crop=["wheat"],
            modeling=False,
            summary=f"summary for {doc_id}",
        )


# === FIXTURES: Sample data ===


@pytest.fixture
def sample_result() -> ExtractionResult:
    """Fully populated ExtractionResult."""
    return ExtractionResult(
        id="PM_12345",
        fusarium_species=["Fusarium graminearum", "F. culmorum"],
        crop=["wheat", "barley"],
        abiotic_factors=["temperature", "humidity"],
        observed_effects=["deoxynivalenol accumulation"],
        agronomic_practices=["crop rotation"],
        modeling=True,
        summary="Warm, humid anthesis increased DON in wheat.",
    )


@pytest.fixture
def sample_documents() -> list[Document]:
    """Two small documents used by end-to-end scenarios."""
    return [
        Document(id="A", abstract="wheat fusarium study"),
        Document(id="B", abstract="barley cold tolerance"),
    ]


@pytest.fixture
def make_documents():
    """Factory: ``make_documents(n)`` -> list of dict records doc_01..doc_n."""

    def _make(n: int) -> list[dict[str, str]]:
        return [
            {"id": f"doc_{i:02d}", "title": f"Title {i}", "abstract": f"Abstract {i}"}
            for i in range(1, n + 1)
        ]

    return _make


@pytest.fixture
def stub_extractor() -> StubExtractor:
    return StubExtractor()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


# === FIXTURES: Temp dirs ===


@pytest.fixture
def tmp_cache_dir(tmp_path: Path) -> Path:
    """Temporary cache directory (not created)."""
    return tmp_path / "cache"


@pytest.fixture
def checkpoint_path(tmp_path: Path) -> Path:
    return tmp_path / "checkpoints" / "checkpoint.json"


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
