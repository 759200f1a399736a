# tests/unit/batch/test_batch_models.py — v1
"""Tests for batch/models.py."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from fusextractor.batch.models import BatchConfig, BatchSummary, Checkpoint
from fusextractor.core.models import ExtractionResult


class TestBatchConfig:
    def test_defaults(self):
        cfg = BatchConfig()
        assert cfg.id_field == "id"
        assert cfg.group_size == 10
        assert cfg.inter_group_delay == 60.0
        assert cfg.checkpoint_every == 50
        assert cfg.checkpoint_path is None
        assert cfg.consult_cache is True

    @pytest.mark.parametrize(
        "kwargs",
        [{"group_size": 0}, {"inter_group_delay": -0.5}, {"checkpoint_every": 0}],
    )
    def test_rejects_out_of_range(self, kwargs):
        with pytest.raises(ValidationError):
            BatchConfig(**kwargs)

    def test_frozen(self):
        with pytest.raises(ValidationError):
            BatchConfig().group_size = 3


class TestBatchSummary:
    def test_success_rate(self):
        assert BatchSummary(run_id="r", total=4, processed=4, succeeded=3).success_rate == 75.0

    def test_success_rate_nothing_processed(self):
        assert BatchSummary(run_id="r", total=0).success_rate == 0.0


class TestCheckpoint:
    def test_ids(self):
        cp = Checkpoint(results=[ExtractionResult(id="A"), ExtractionResult(id="B")])
        assert cp.ids == {"A", "B"}

    def test_rejects_unknown_version(self):
        with pytest.raises(ValidationError, match="unsupported checkpoint version"):
            Checkpoint(version=2)
