"""
In-Memory Document Store

Dict-backed store that pushes snapshots to its listeners synchronously
after every change. Used by the test suite and the ``memory`` backend.
"""

import copy
import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from .base import DocumentNotFound, DocumentStore, Snapshot, SnapshotCallback, Unsubscribe

logger = logging.getLogger(__name__)


class InMemoryDocumentStore(DocumentStore):
    """
    Store that keeps collections in a dict.

    Listeners receive deep copies, so consumers can never write through
    a snapshot into the store.
    """

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None):
        self._collections: Dict[str, Dict[str, Any]] = copy.deepcopy(initial or {})
        self._listeners: Dict[str, List[SnapshotCallback]] = {}

    def _snapshot(self, collection: str) -> Snapshot:
        docs = self._collections.get(collection)
        if not docs:
            return None
        return copy.deepcopy(docs)

    def listener_count(self, collection: str) -> int:
        return len(self._listeners.get(collection, []))

    def emit(self, collection: str) -> None:
        """Push the current state of ``collection`` to its listeners."""
        snapshot = self._snapshot(collection)
        for callback in list(self._listeners.get(collection, [])):
            callback(copy.deepcopy(snapshot))

    def put_raw(self, collection: str, doc_id: str, value: Any) -> None:
        """Write a document verbatim, bypassing any shaping, and notify."""
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(value)
        self.emit(collection)

    async def create(self, collection: str, fields: Dict[str, Any]) -> str:
        doc_id = uuid4().hex
        self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(fields)
        logger.debug(f"Created {collection}/{doc_id}")
        self.emit(collection)
        return doc_id

    def subscribe(self, collection: str, on_snapshot: SnapshotCallback) -> Unsubscribe:
        listeners = self._listeners.setdefault(collection, [])
        listeners.append(on_snapshot)
        on_snapshot(self._snapshot(collection))

        def unsubscribe() -> None:
            if on_snapshot in listeners:
                listeners.remove(on_snapshot)

        return unsubscribe

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            raise DocumentNotFound(collection, doc_id)
        current = docs[doc_id] if isinstance(docs[doc_id], dict) else {}
        current.update(copy.deepcopy(fields))
        docs[doc_id] = current
        self.emit(collection)

    async def delete(self, collection: str, doc_id: str) -> bool:
        docs = self._collections.get(collection, {})
        if doc_id not in docs:
            return False
        del docs[doc_id]
        self.emit(collection)
        return True

    async def get_once(self, collection: str) -> Snapshot:
        return self._snapshot(collection)
