# tests/unit/batch/test_scheduler.py — v1
"""Tests for batch/scheduler.py — grouping, pacing, isolation, checkpoints."""

from __future__ import annotations

import logging
import threading

import pytest

from fusextractor.batch.checkpoint import CheckpointStore
from fusextractor.batch.models import BatchConfig
from fusextractor.batch.scheduler import BatchScheduler, generate_run_id
from fusextractor.cache.json_store import JsonCacheStore
from fusextractor.core.errors import CheckpointWriteFailure
from fusextractor.core.models import ExtractionResult


def _scheduler(recording_sleep, **kwargs) -> BatchScheduler:
    return BatchScheduler(sleep=recording_sleep, **kwargs)


class TestGenerateRunId:
    def test_format(self):
        run_id = generate_run_id()
        date_part, time_part, suffix = run_id.split("_")
        assert len(date_part) == 8
        assert len(time_part) == 4
        assert len(suffix) == 5


class TestGroupingAndPacing:
    def test_sleeps_between_groups_only(self, make_documents, stub_extractor, recording_sleep):
        results = _scheduler(recording_sleep).run(
            make_documents(10), stub_extractor, group_size=3, inter_group_delay=5,
        )
        assert len(results) == 10
        assert recording_sleep.calls == [5, 5, 5]

    def test_single_group_never_sleeps(self, make_documents, stub_extractor, recording_sleep):
        _scheduler(recording_sleep).run(
            make_documents(3), stub_extractor, group_size=10, inter_group_delay=60,
        )
        assert recording_sleep.calls == []

    def test_zero_delay_never_sleeps(self, make_documents, stub_extractor, recording_sleep):
        _scheduler(recording_sleep).run(
            make_documents(4), stub_extractor, group_size=1, inter_group_delay=0,
        )
        assert recording_sleep.calls == []

    def test_documents_processed_in_input_order(
        self, make_documents, stub_extractor, recording_sleep,
    ):
        docs = make_documents(5)
        _scheduler(recording_sleep).run(docs, stub_extractor, group_size=2, inter_group_delay=0)
        assert stub_extractor.calls == [d["id"] for d in docs]

    def test_empty_input(self, stub_extractor, recording_sleep, checkpoint_path):
        scheduler = _scheduler(recording_sleep)
        results = scheduler.run([], stub_extractor, checkpoint_path=checkpoint_path)
        assert results == []
        assert CheckpointStore(checkpoint_path).load().results == []
        assert scheduler.last_summary.total == 0

    def test_logs_plan_and_progress(
        self, make_documents, stub_extractor, recording_sleep, caplog,
    ):
        caplog.set_level(logging.INFO, logger="fusextractor")
        _scheduler(recording_sleep).run(
            make_documents(2), stub_extractor, group_size=1, inter_group_delay=0,
        )
        messages = [r.getMessage() for r in caplog.records]
        assert "=== Batch Processing ===" in messages
        assert "--- Group 2/2 (docs 2-2) ---" in messages
        assert "=== Batch Processing Complete ===" in messages


class TestPerDocumentIsolation:
    def test_failure_does_not_stop_run(self, make_documents, stub_extractor, recording_sleep):
        stub_extractor.fail_ids = {"doc_07"}
        scheduler = _scheduler(recording_sleep)
        results = scheduler.run(
            make_documents(10), stub_extractor, group_size=3, inter_group_delay=0,
        )
        assert len(results) == 9
        assert "doc_07" not in {r.id for r in results}
        assert len(stub_extractor.calls) == 10

        summary = scheduler.last_summary
        assert summary.processed == 10
        assert summary.succeeded == 9
        assert summary.failed_ids == ["doc_07"]
        assert summary.success_rate == pytest.approx(90.0)

    def test_mapping_result_is_validated_and_tagged(self, make_documents, recording_sleep):
        def extract(doc):
            return {"crop": "wheat; maize", "modeling": None, "id": "ignored"}

        results = _scheduler(recording_sleep).run(make_documents(1), extract)
        assert results[0].id == "doc_01"
        assert results[0].crop == ["wheat", "maize"]
        assert results[0].modeling is False

    def test_result_id_overridden_by_document_id(self, make_documents, recording_sleep):
        results = _scheduler(recording_sleep).run(
            make_documents(1), lambda doc: ExtractionResult(id="wrong"),
        )
        assert results[0].id == "doc_01"

    def test_unsupported_return_type_is_a_failure(self, make_documents, recording_sleep):
        scheduler = _scheduler(recording_sleep)
        results = scheduler.run(make_documents(2), lambda doc: "not a result")
        assert results == []
        assert scheduler.last_summary.failed == 2

    def test_custom_id_field(self, recording_sleep, stub_extractor):
        docs = [{"pmid": 101, "id": "x1"}, {"pmid": 102, "id": "x2"}]
        results = _scheduler(recording_sleep).run(docs, stub_extractor, id_field="pmid")
        assert [r.id for r in results] == ["101", "102"]

    def test_duplicate_ids_processed_once(self, recording_sleep, stub_extractor):
        docs = [{"id": "A"}, {"id": "A"}, {"id": "B"}]
        results = _scheduler(recording_sleep).run(docs, stub_extractor)
        assert stub_extractor.calls == ["A", "B"]
        assert [r.id for r in results] == ["A", "B"]


class TestCheckpointing:
    def test_checkpoint_every_counts_failures(
        self, make_documents, stub_extractor, recording_sleep, checkpoint_path,
    ):
        stub_extractor.fail_ids = {"doc_02"}
        scheduler = _scheduler(recording_sleep)
        scheduler.run(
            make_documents(5), stub_extractor,
            checkpoint_every=2, checkpoint_path=checkpoint_path,
        )
        # saves after docs 2 and 4, plus the final save
        assert scheduler.last_summary.checkpoints_written == 3
        assert CheckpointStore(checkpoint_path).load().ids == {
            "doc_01", "doc_03", "doc_04", "doc_05",
        }

    def test_resume_skips_checkpointed_documents(
        self, make_documents, stub_extractor, recording_sleep, checkpoint_path,
    ):
        CheckpointStore(checkpoint_path).save(
            [ExtractionResult(id="doc_01"), ExtractionResult(id="doc_02")]
        )
        scheduler = _scheduler(recording_sleep)
        results = scheduler.run(
            make_documents(4), stub_extractor, checkpoint_path=checkpoint_path,
        )
        assert stub_extractor.calls == ["doc_03", "doc_04"]
        assert {r.id for r in results} == {"doc_01", "doc_02", "doc_03", "doc_04"}
        assert scheduler.last_summary.skipped == 2
        assert scheduler.last_summary.carried_over == 2

    def test_checkpoint_path_from_config(
        self, make_documents, stub_extractor, recording_sleep, checkpoint_path,
    ):
        config = BatchConfig(checkpoint_path=checkpoint_path)
        _scheduler(recording_sleep, config=config).run(make_documents(2), stub_extractor)
        assert CheckpointStore(checkpoint_path).load().ids == {"doc_01", "doc_02"}

    def test_no_checkpoint_without_path(
        self, make_documents, stub_extractor, recording_sleep, tmp_path,
    ):
        scheduler = _scheduler(recording_sleep)
        scheduler.run(make_documents(2), stub_extractor)
        assert scheduler.last_summary.checkpoints_written == 0
        assert list(tmp_path.iterdir()) == []

    def test_checkpoint_write_failure_halts_run(
        self, make_documents, stub_extractor, recording_sleep, tmp_path,
    ):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x", encoding="utf-8")
        scheduler = _scheduler(recording_sleep)

        with pytest.raises(CheckpointWriteFailure):
            scheduler.run(
                make_documents(6), stub_extractor,
                checkpoint_every=2, checkpoint_path=blocker / "checkpoint.json",
            )
        assert stub_extractor.calls == ["doc_01", "doc_02"]
        assert scheduler.last_summary is None

    def test_final_checkpoint_failure_propagates(
        self, make_documents, stub_extractor, recording_sleep, checkpoint_path, monkeypatch,
    ):
        def failing_save(self, results):
            raise CheckpointWriteFailure(str(self.path), OSError("disk full"))

        monkeypatch.setattr(CheckpointStore, "save", failing_save)
        with pytest.raises(CheckpointWriteFailure, match="disk full"):
            _scheduler(recording_sleep).run(
                make_documents(3), stub_extractor, checkpoint_path=checkpoint_path,
            )
        assert stub_extractor.calls == ["doc_01", "doc_02", "doc_03"]

    def test_keyboard_interrupt_saves_then_reraises(
        self, make_documents, recording_sleep, checkpoint_path,
    ):
        def extract(doc):
            if doc["id"] == "doc_03":
                raise KeyboardInterrupt
            return ExtractionResult()

        with pytest.raises(KeyboardInterrupt):
            _scheduler(recording_sleep).run(
                make_documents(5), extract, checkpoint_path=checkpoint_path,
            )
        assert CheckpointStore(checkpoint_path).load().ids == {"doc_01", "doc_02"}


class TestCancellation:
    def test_cancel_between_documents(
        self, make_documents, stub_extractor, recording_sleep, checkpoint_path,
    ):
        cancel = threading.Event()

        def extract(doc):
            if doc["id"] == "doc_02":
                cancel.set()
            return stub_extractor(doc)

        scheduler = _scheduler(recording_sleep)
        results = scheduler.run(
            make_documents(5), extract, cancel_event=cancel, checkpoint_path=checkpoint_path,
        )
        assert stub_extractor.calls == ["doc_01", "doc_02"]
        assert len(results) == 2
        assert scheduler.last_summary.cancelled is True
        assert CheckpointStore(checkpoint_path).load().ids == {"doc_01", "doc_02"}

    def test_cancel_during_pause(self, make_documents, stub_extractor, recording_sleep):
        cancel = threading.Event()

        def extract(doc):
            if doc["id"] == "doc_02":
                cancel.set()
            return stub_extractor(doc)

        scheduler = _scheduler(recording_sleep)
        scheduler.run(
            make_documents(4), extract,
            group_size=2, inter_group_delay=30, cancel_event=cancel,
        )
        assert stub_extractor.calls == ["doc_01", "doc_02"]
        assert scheduler.last_summary.cancelled is True
        assert recording_sleep.calls == []


class TestCacheIntegration:
    def test_results_written_through(
        self, make_documents, stub_extractor, recording_sleep, tmp_cache_dir,
    ):
        cache = JsonCacheStore(tmp_cache_dir)
        _scheduler(recording_sleep, cache_store=cache).run(make_documents(3), stub_extractor)
        assert cache.keys() == {"doc_01", "doc_02", "doc_03"}

    def test_failed_documents_not_cached(
        self, make_documents, stub_extractor, recording_sleep, tmp_cache_dir,
    ):
        stub_extractor.fail_ids = {"doc_02"}
        cache = JsonCacheStore(tmp_cache_dir)
        _scheduler(recording_sleep, cache_store=cache).run(make_documents(3), stub_extractor)
        assert cache.uncached(make_documents(3)) == [make_documents(3)[1]]

    def test_cached_documents_skipped_and_carried(
        self, make_documents, stub_extractor, recording_sleep, tmp_cache_dir,
    ):
        cache = JsonCacheStore(tmp_cache_dir)
        cache.put("doc_01", ExtractionResult(summary="from cache"))
        scheduler = _scheduler(recording_sleep, cache_store=cache)
        results = scheduler.run(make_documents(3), stub_extractor)
        assert stub_extractor.calls == ["doc_02", "doc_03"]
        by_id = {r.id: r for r in results}
        assert by_id["doc_01"].summary == "from cache"
        assert scheduler.last_summary.carried_over == 1

    def test_consult_cache_disabled(
        self, make_documents, stub_extractor, recording_sleep, tmp_cache_dir,
    ):
        cache = JsonCacheStore(tmp_cache_dir)
        cache.put("doc_01", ExtractionResult(summary="from cache"))
        _scheduler(
            recording_sleep, cache_store=cache, config=BatchConfig(consult_cache=False),
        ).run(make_documents(2), stub_extractor)
        assert stub_extractor.calls == ["doc_01", "doc_02"]
        assert cache.get("doc_01").summary == "summary for doc_01"

    def test_cache_write_failure_keeps_result(
        self, make_documents, stub_extractor, recording_sleep, tmp_cache_dir,
    ):
        class ReadOnlyCache(JsonCacheStore):
            def put(self, document_id, result):
                raise OSError("disk full")

        results = _scheduler(
            recording_sleep, cache_store=ReadOnlyCache(tmp_cache_dir),
        ).run(make_documents(2), stub_extractor)
        assert [r.id for r in results] == ["doc_01", "doc_02"]


class TestValidation:
    @pytest.mark.parametrize(
        "kwargs",
        [{"group_size": 0}, {"inter_group_delay": -1}, {"checkpoint_every": 0}],
    )
    def test_invalid_arguments(self, make_documents, stub_extractor, recording_sleep, kwargs):
        with pytest.raises(ValueError):
            _scheduler(recording_sleep).run(make_documents(1), stub_extractor, **kwargs)
        assert stub_extractor.calls == []

    def test_missing_id_field(self, stub_extractor, recording_sleep):
        with pytest.raises(KeyError):
            _scheduler(recording_sleep).run([{"title": "no id"}], stub_extractor)
