"""
Tests for catalog_enricher/batch.py

Tests subset selection, progress events, failure isolation and cancellation.
"""

import threading
from unittest.mock import Mock

import pytest

from catalog_enricher.batch import (
    CANCELLED,
    COMPLETED,
    NOTHING_TO_DO,
    BatchProcessor,
    RunState,
    is_already_enriched,
    normalize_mode,
    run_batch,
    select_products,
)
from catalog_enricher.enrichment import enrich_product


def offline_enrich(product, index, cfg, profile):
    """enrich_product with remote generation disabled."""
    def no_remote(prompt, cfg):
        raise ConnectionError("offline")
    return enrich_product(product, index, cfg, profile, generate_fn=no_remote)


def make_processor(**kwargs):
    kwargs.setdefault("enrich_fn", offline_enrich)
    kwargs.setdefault("sleep_fn", Mock())
    return BatchProcessor({"ITEM_DELAY_SECONDS": 0}, **kwargs)


def events_of(progress_list):
    return [p.event for p in progress_list]


class TestModes:
    """Tests for mode handling and subset selection."""

    @pytest.mark.parametrize("mode,expected", [
        ("selective", "selective"),
        ("smart", "selective"),
        ("exhaustive", "exhaustive"),
        ("FORCE", "exhaustive"),
    ])
    def test_normalize_mode(self, mode, expected):
        assert normalize_mode(mode) == expected

    def test_unknown_mode_raises(self):
        with pytest.raises(ValueError, match="Unknown processing mode"):
            normalize_mode("sometimes")

    def test_selective_skips_brand_voice(self):
        product = {"Title": "Mat", "Body (HTML)": "Mindfully crafted for you"}
        assert is_already_enriched(product)

    def test_selective_skips_collection_tags(self):
        product = {"Title": "Mat", "Body (HTML)": "Plain", "Tags": "Mobility, gear"}
        assert is_already_enriched(product)

    def test_plain_product_is_pending(self, sample_rows):
        assert not is_already_enriched(sample_rows[0])

    def test_enriched_record_is_judged_by_new_content(self, sample_catalog, failing_generate_fn):
        enriched = enrich_product(sample_catalog[0], generate_fn=failing_generate_fn)
        assert is_already_enriched(enriched)

    def test_select_preserves_order_and_keys(self, sample_catalog):
        subset = select_products(sample_catalog, "exhaustive")
        assert [key for _, key, _ in subset] == ["yoga-mat", "lavender-oil", "memory-pillow"]

    def test_selective_subset_excludes_enriched(self, sample_catalog):
        sample_catalog[1] = dict(sample_catalog[1], Tags="sleep")
        subset = select_products(sample_catalog, "selective")
        assert [key for _, key, _ in subset] == ["yoga-mat", "memory-pillow"]

    def test_select_carries_catalog_positions(self, sample_catalog):
        sample_catalog[1] = dict(sample_catalog[1], Tags="sleep")
        subset = select_products(sample_catalog, "selective")
        assert [position for position, _, _ in subset] == [0, 2]


class TestBatchRun:
    """Tests for BatchProcessor.run()."""

    def test_completes_every_product(self, sample_catalog):
        processor = make_processor()

        progress = list(processor.run(sample_catalog, "exhaustive"))

        assert events_of(progress) == [
            "started",
            "item_started", "item_completed",
            "item_started", "item_completed",
            "item_started", "item_completed",
            "finished",
        ]
        final = progress[-1]
        assert final.status == COMPLETED
        assert final.run.enriched_count == 3
        assert final.run.failed_count == 0
        assert all(p["enriched"] for p in final.catalog)
        assert len(final.catalog) == len(sample_catalog)

    def test_input_catalog_is_not_modified(self, sample_catalog):
        before = [dict(p) for p in sample_catalog]

        list(make_processor().run(sample_catalog, "exhaustive"))

        assert sample_catalog == before

    def test_snapshots_show_partial_progress(self, sample_catalog):
        progress = list(make_processor().run(sample_catalog, "exhaustive"))

        first_done = next(p for p in progress if p.event == "item_completed")
        assert first_done.catalog[0]["enriched"] is True
        assert first_done.catalog[1]["enriched"] is False
        assert first_done.run.current == 1
        assert first_done.run.current_label == "Yoga Mat"

    def test_partial_failure_is_isolated(self, sample_catalog):
        def flaky(product, index, cfg, profile):
            if index == 1:
                raise RuntimeError("boom")
            return offline_enrich(product, index, cfg, profile)

        progress = list(make_processor(enrich_fn=flaky).run(sample_catalog, "exhaustive"))

        final = progress[-1]
        assert "item_failed" in events_of(progress)
        assert final.status == COMPLETED
        assert final.run.enriched_count == 2
        assert final.run.failed_count == 1
        assert final.catalog[1] == sample_catalog[1]
        assert final.catalog[0]["enriched"] and final.catalog[2]["enriched"]

    def test_nothing_to_do(self, sample_catalog):
        enriched = [offline_enrich(p, i, {}, make_processor().profile) for i, p in enumerate(sample_catalog)]

        progress = list(make_processor().run(enriched, "selective"))

        assert events_of(progress) == ["finished"]
        assert progress[0].status == NOTHING_TO_DO
        assert progress[0].run.already_enriched == 3

    def test_selective_rerun_is_idempotent(self, sample_catalog):
        processor = make_processor()
        first = list(processor.run(sample_catalog, "selective"))[-1]

        second = list(processor.run(first.catalog, "selective"))[-1]

        assert second.status == NOTHING_TO_DO
        assert second.catalog == first.catalog

    def test_sleeps_between_items_only(self, sample_catalog):
        sleep_fn = Mock()
        processor = make_processor(sleep_fn=sleep_fn, delay=0.5)

        list(processor.run(sample_catalog, "exhaustive"))

        assert sleep_fn.call_count == 2
        sleep_fn.assert_called_with(0.5)

    def test_enrich_fn_arguments(self, sample_catalog):
        enrich_fn = Mock(side_effect=lambda p, i, cfg, profile: dict(p, enriched=True))
        processor = make_processor(enrich_fn=enrich_fn)

        list(processor.run(sample_catalog, "exhaustive"))

        indexes = [call.args[1] for call in enrich_fn.call_args_list]
        assert indexes == [0, 1, 2]
        assert enrich_fn.call_args_list[0].args[2] is processor.cfg

    def test_state_returns_to_idle(self, sample_catalog):
        processor = make_processor()
        states = []
        for progress in processor.run(sample_catalog, "exhaustive"):
            states.append(processor.state)

        assert RunState.RUNNING in states
        assert processor.state == RunState.IDLE
        assert processor.run_state.total == 0

    def test_second_run_while_running_raises(self, sample_catalog):
        processor = make_processor()
        generator = processor.run(sample_catalog, "exhaustive")
        next(generator)

        with pytest.raises(RuntimeError, match="already in progress"):
            next(processor.run(sample_catalog, "exhaustive"))

        generator.close()
        assert processor.state == RunState.IDLE

    def test_unknown_mode_raises_and_resets(self, sample_catalog):
        processor = make_processor()
        with pytest.raises(ValueError):
            list(processor.run(sample_catalog, "sometimes"))
        assert processor.state == RunState.IDLE


class TestCancellation:
    """Tests for cooperative cancellation."""

    def test_cancel_before_first_item(self, sample_catalog):
        token = threading.Event()
        token.set()

        progress = list(make_processor().run(sample_catalog, "exhaustive", token))

        final = progress[-1]
        assert final.status == CANCELLED
        assert final.run.enriched_count == 0
        assert not any(p["enriched"] for p in final.catalog)

    def test_cancel_after_first_item_keeps_it(self, sample_catalog):
        processor = make_processor()
        progress = []
        for event in processor.run(sample_catalog, "exhaustive"):
            progress.append(event)
            if event.event == "item_completed":
                processor.cancel()

        final = progress[-1]
        assert final.status == CANCELLED
        assert final.run.enriched_count == 1
        assert final.catalog[0]["enriched"] is True
        assert final.catalog[1]["enriched"] is False
        assert final.catalog[2]["enriched"] is False
        assert processor.state == RunState.IDLE

    def test_item_in_flight_finishes(self, sample_catalog):
        processor = make_processor()

        def cancel_during_enrich(product, index, cfg, profile):
            processor.cancel()
            return offline_enrich(product, index, cfg, profile)

        processor.enrich_fn = cancel_during_enrich
        progress = list(processor.run(sample_catalog, "exhaustive"))

        assert events_of(progress)[-2] == "item_completed"
        assert progress[-1].status == CANCELLED
        assert progress[-1].run.enriched_count == 1

    def test_cancel_while_idle_is_noop(self):
        processor = make_processor()
        processor.cancel()
        assert processor.state == RunState.IDLE

    def test_cancel_racing_run_end_leaves_processor_idle(self, sample_catalog):
        processor = make_processor()

        class FinishingEvent(threading.Event):
            # The run drains to its end while the token is being set
            def set(self):
                super().set()
                list(generator)

        token = FinishingEvent()
        generator = processor.run(sample_catalog, "exhaustive", token)
        next(generator)

        processor.cancel()

        assert processor.state == RunState.IDLE
        assert not processor.is_running
        final = list(processor.run(sample_catalog, "exhaustive"))[-1]
        assert final.status == COMPLETED
        assert final.run.enriched_count == 3


class TestRunBatch:

    def test_wrapper(self, sample_catalog):
        progress = list(run_batch(sample_catalog, "exhaustive", {"ITEM_DELAY_SECONDS": 0},
                                  enrich_fn=offline_enrich, sleep_fn=Mock()))
        assert progress[-1].status == COMPLETED

    def test_rows_sharing_a_handle_are_each_enriched(self):
        rows = [
            {"Handle": "mat", "Title": "Yoga Mat", "Variant SKU": "BLUE"},
            {"Handle": "mat", "Title": "Yoga Mat", "Variant SKU": "RED"},
        ]

        progress = list(run_batch(rows, "exhaustive", {"ITEM_DELAY_SECONDS": 0},
                                  enrich_fn=offline_enrich, sleep_fn=Mock()))

        final = progress[-1]
        assert final.run.enriched_count == 2
        assert [p["Variant SKU"] for p in final.catalog] == ["BLUE", "RED"]
        assert all(p["enriched"] for p in final.catalog)
