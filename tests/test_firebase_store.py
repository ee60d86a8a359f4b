"""Tests for the Firebase Realtime Database backend (no network)."""

from unittest.mock import MagicMock, patch

import pytest

from tradejournal.store.base import DocumentNotFound
from tradejournal.store.firebase import CollectionMirror, FirebaseDocumentStore


class TestCollectionMirror:
    """Tests for folding listen() events into a collection copy."""

    def test_initial_put(self):
        mirror = CollectionMirror()
        mirror.apply("put", "/", {"t1": {"memo": "a"}})
        assert mirror.snapshot() == {"t1": {"memo": "a"}}

    def test_empty_collection(self):
        mirror = CollectionMirror()
        mirror.apply("put", "/", None)
        assert mirror.snapshot() is None

    def test_list_root_uses_indices(self):
        mirror = CollectionMirror()
        mirror.apply("put", "/", [None, {"memo": "a"}])
        assert mirror.snapshot() == {"1": {"memo": "a"}}

    def test_child_put_and_remove(self):
        mirror = CollectionMirror()
        mirror.apply("put", "/", {"t1": {"memo": "a"}})
        mirror.apply("put", "/t2", {"memo": "b"})
        mirror.apply("put", "/t1", None)
        assert mirror.snapshot() == {"t2": {"memo": "b"}}

    def test_nested_put(self):
        mirror = CollectionMirror()
        mirror.apply("put", "/", {"t1": {"memo": "a", "fee": 1}})
        mirror.apply("put", "/t1/memo", "b")
        assert mirror.snapshot() == {"t1": {"memo": "b", "fee": 1}}

    def test_emptied_document_pruned(self):
        mirror = CollectionMirror()
        mirror.apply("put", "/", {"t1": {"memo": "a"}})
        mirror.apply("put", "/t1/memo", None)
        assert mirror.snapshot() is None

    def test_patch(self):
        mirror = CollectionMirror()
        mirror.apply("put", "/", {"t1": {"memo": "a"}})
        mirror.apply("patch", "/t1", {"memo": "b", "fee": 2})
        assert mirror.snapshot() == {"t1": {"memo": "b", "fee": 2}}

    def test_snapshot_is_a_copy(self):
        mirror = CollectionMirror()
        mirror.apply("put", "/", {"t1": {"memo": "a"}})
        mirror.snapshot()["t1"]["memo"] = "changed"
        assert mirror.docs["t1"]["memo"] == "a"


@pytest.fixture
def refs():
    """Patch db.reference with one MagicMock per path."""
    created = {}

    def reference(path, app=None):
        return created.setdefault(path, MagicMock(name=path))

    with patch("tradejournal.store.firebase.db.reference", side_effect=reference):
        yield created


@pytest.fixture
def firebase_store(refs):
    return FirebaseDocumentStore("https://example.firebaseio.com", app=MagicMock())


class TestFirebaseDocumentStore:
    """Tests for FirebaseDocumentStore against mocked references."""

    @pytest.mark.asyncio
    async def test_create_returns_push_key(self, firebase_store, refs):
        refs["trades"] = MagicMock()
        refs["trades"].push.return_value.key = "-Nabc"
        assert await firebase_store.create("trades", {"memo": "a"}) == "-Nabc"
        refs["trades"].push.assert_called_once_with({"memo": "a"})

    @pytest.mark.asyncio
    async def test_update_missing_raises(self, firebase_store, refs):
        refs["trades/t1"] = MagicMock()
        refs["trades/t1"].transaction.side_effect = lambda update: update(None)
        with pytest.raises(DocumentNotFound):
            await firebase_store.update("trades", "t1", {"memo": "x"})

    @pytest.mark.asyncio
    async def test_update_merges(self, firebase_store, refs):
        refs["trades/t1"] = MagicMock()
        refs["trades/t1"].transaction.side_effect = lambda update: update({"memo": "a", "fee": 1})
        await firebase_store.update("trades", "t1", {"memo": "b"})
        refs["trades/t1"].transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_absent_is_false(self, firebase_store, refs):
        refs["trades/t1"] = MagicMock()
        refs["trades/t1"].get.return_value = None
        assert await firebase_store.delete("trades", "t1") is False
        refs["trades/t1"].delete.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_present(self, firebase_store, refs):
        refs["trades/t1"] = MagicMock()
        refs["trades/t1"].get.return_value = {"memo": "a"}
        assert await firebase_store.delete("trades", "t1") is True
        refs["trades/t1"].delete.assert_called_once_with()

    def test_subscribe_delivers_full_snapshots(self, firebase_store, refs):
        snapshots = []
        unsubscribe = firebase_store.subscribe("trades", snapshots.append)
        on_event = refs["trades"].listen.call_args[0][0]

        on_event(MagicMock(event_type="put", path="/", data={"t1": {"memo": "a"}}))
        on_event(MagicMock(event_type="put", path="/t2", data={"memo": "b"}))
        assert snapshots[-1] == {"t1": {"memo": "a"}, "t2": {"memo": "b"}}

        unsubscribe()
        unsubscribe()
        on_event(MagicMock(event_type="put", path="/t3", data={"memo": "c"}))
        assert len(snapshots) == 2
        refs["trades"].listen.return_value.close.assert_called_once_with()
