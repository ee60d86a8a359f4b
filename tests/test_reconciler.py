"""Tests for the subscription reconciler."""

import pytest

from tradejournal.journal import SubscriptionReconciler, TradeRecord
from tradejournal.journal.reconciler import snapshot_entries
from tradejournal.store import InMemoryDocumentStore


class TestSnapshotEntries:
    """Tests for snapshot flattening."""

    def test_none(self):
        assert snapshot_entries(None) == []

    def test_mapping(self):
        assert snapshot_entries({"a": {"x": 1}, "b": {}}) == [("a", {"x": 1}), ("b", {})]

    def test_list_skips_holes(self):
        assert snapshot_entries([None, {"x": 1}, None, {"y": 2}]) == [("1", {"x": 1}), ("3", {"y": 2})]

    def test_scalar_is_empty(self):
        assert snapshot_entries("garbage") == []


class TestSubscriptionReconciler:
    """Tests for SubscriptionReconciler."""

    def test_empty_collection_gives_empty_list(self, store, reconciler):
        assert reconciler.updates == [[]]
        assert reconciler.records == ()
        assert reconciler.has_snapshot

    def test_initial_state_delivered(self, sample_document):
        store = InMemoryDocumentStore({"trades": {"t1": sample_document}})
        reconciler = SubscriptionReconciler(store)
        updates = []
        reconciler.start(updates.append)

        assert len(updates) == 1
        assert [r.id for r in updates[0]] == ["t1"]
        assert reconciler.get("t1").strategy == "breakout"

    def test_snapshot_replaces_list(self, store, reconciler, sample_document):
        store.put_raw("trades", "a", sample_document)
        store.put_raw("trades", "b", sample_document)
        assert [r.id for r in reconciler.records] == ["a", "b"]

        store.put_raw("trades", "a", {"date": "2024-01-01"})
        assert len(reconciler.records) == 2
        assert reconciler.get("a").date == "2024-01-01"
        assert reconciler.get("a").strategy == ""

    def test_malformed_record_is_sanitized(self, store, reconciler):
        store.put_raw("trades", "bad", {"date": None, "entryPrice": "abc"})
        record = reconciler.get("bad")
        assert isinstance(record, TradeRecord)
        assert record.date == ""
        assert record.entry_price == 0.0

    def test_non_mapping_record_is_kept(self, store, reconciler):
        store.put_raw("trades", "odd", "not a document")
        assert reconciler.get("odd") == TradeRecord(id="odd")

    def test_list_snapshot(self, store, reconciler):
        reconciler._handle_snapshot([None, {"date": "2024-02-02"}])
        assert [r.id for r in reconciler.records] == ["1"]

    def test_no_callbacks_after_unsubscribe(self, store, sample_document):
        reconciler = SubscriptionReconciler(store)
        updates = []
        unsubscribe = reconciler.start(updates.append)
        unsubscribe()

        store.put_raw("trades", "t1", sample_document)
        reconciler._handle_snapshot({"t2": sample_document})

        assert updates == [[]]
        assert store.listener_count("trades") == 0
        assert not reconciler.is_active

    def test_unsubscribe_is_idempotent(self, store):
        reconciler = SubscriptionReconciler(store)
        unsubscribe = reconciler.start(lambda records: None)
        unsubscribe()
        unsubscribe()
        assert store.listener_count("trades") == 0

    def test_double_start_raises(self, reconciler):
        with pytest.raises(RuntimeError):
            reconciler.start(lambda records: None)

    def test_restart_after_stop(self, store):
        reconciler = SubscriptionReconciler(store)
        reconciler.start(lambda records: None)()
        updates = []
        reconciler.start(updates.append)
        assert updates == [[]]

    def test_old_handle_does_not_stop_new_subscription(self, store, sample_document):
        reconciler = SubscriptionReconciler(store)
        first = reconciler.start(lambda records: None)
        first()
        updates = []
        second = reconciler.start(updates.append)

        first()
        store.put_raw("trades", "t1", sample_document)

        assert reconciler.is_active
        assert len(updates) == 2
        assert store.listener_count("trades") == 1
        second()
        assert not reconciler.is_active

    def test_callback_error_keeps_subscription(self, store, sample_document):
        calls = []

        def consumer(records):
            calls.append(records)
            raise ValueError("consumer failed")

        reconciler = SubscriptionReconciler(store)
        reconciler.start(consumer)
        store.put_raw("trades", "t1", sample_document)

        assert len(calls) == 2
        assert reconciler.is_active
        assert reconciler.contains("t1")

    def test_callback_list_is_a_copy(self, store, reconciler, sample_document):
        store.put_raw("trades", "t1", sample_document)
        reconciler.updates[-1].clear()
        assert len(reconciler.records) == 1

    def test_snapshot_count(self, store, reconciler, sample_document):
        store.put_raw("trades", "t1", sample_document)
        assert reconciler.snapshot_count == 2
