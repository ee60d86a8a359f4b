"""
Subscription Reconciler

Owns the live, read-only list of trade records. Every snapshot pushed by
the document store replaces the list wholesale after each document has
gone through the sanitizer.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..store.base import DocumentStore, Snapshot, Unsubscribe
from .models import TradeRecord
from .sanitizer import sanitize

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[List[TradeRecord]], None]


def snapshot_entries(snapshot: Snapshot) -> List[Tuple[str, Any]]:
    """
    Flatten a collection snapshot into ``(id, fields)`` pairs.

    Mappings keep their own order; lists (integer-like ids) use the
    index as id and skip holes. Anything else is an empty collection.
    """
    if snapshot is None:
        return []
    if isinstance(snapshot, dict):
        return [(str(doc_id), fields) for doc_id, fields in snapshot.items()]
    if isinstance(snapshot, (list, tuple)):
        return [(str(i), fields) for i, fields in enumerate(snapshot) if fields is not None]
    logger.warning(f"Ignoring snapshot of type {type(snapshot).__name__}")
    return []


class SubscriptionReconciler:
    """
    Live projection of one store collection.

    Consumers must treat ``records`` as read-only; all writes go through
    the mutation coordinator to the store and come back as snapshots.
    """

    def __init__(self, store: DocumentStore, collection: str = "trades"):
        self.store = store
        self.collection = collection

        self._records: Tuple[TradeRecord, ...] = ()
        self._index: Dict[str, TradeRecord] = {}
        self._snapshot_count = 0

        self._on_update: Optional[UpdateCallback] = None
        self._store_unsubscribe: Optional[Unsubscribe] = None
        self._active = False
        # bumped on every start(); stale unsubscribe handles compare against it
        self._generation = 0

    # -------------------------------------------------------------------------
    # Subscription lifecycle
    # -------------------------------------------------------------------------

    def start(self, on_update: UpdateCallback) -> Callable[[], None]:
        """
        Subscribe to the store and forward sanitized snapshots.

        Returns an idempotent function that stops the subscription; no
        ``on_update`` call happens after it returns.
        """
        if self._active:
            raise RuntimeError(f"Reconciler for {self.collection!r} is already started")

        self._on_update = on_update
        self._active = True
        self._generation += 1
        generation = self._generation
        try:
            self._store_unsubscribe = self.store.subscribe(self.collection, self._handle_snapshot)
        except Exception:
            self._active = False
            self._on_update = None
            raise

        logger.info(f"Subscribed to {self.collection}")

        def unsubscribe() -> None:
            if generation == self._generation:
                self.stop()

        return unsubscribe

    def stop(self) -> None:
        """Stop forwarding snapshots and release the store listener."""
        if not self._active:
            return
        self._active = False
        self._on_update = None
        release, self._store_unsubscribe = self._store_unsubscribe, None
        if release is not None:
            release()
        logger.info(f"Unsubscribed from {self.collection}")

    @property
    def is_active(self) -> bool:
        return self._active

    # -------------------------------------------------------------------------
    # Snapshot handling
    # -------------------------------------------------------------------------

    def _handle_snapshot(self, snapshot: Snapshot) -> None:
        if not self._active:
            return

        records = [sanitize(fields, record_id=doc_id) for doc_id, fields in snapshot_entries(snapshot)]
        self._records = tuple(records)
        self._index = {record.id: record for record in records}
        self._snapshot_count += 1
        logger.debug(
            f"Snapshot {self._snapshot_count} with {len(records)} record(s)",
            extra={"ctx_collection": self.collection},
        )

        callback = self._on_update
        if callback is None:
            return
        try:
            callback(list(records))
        except Exception:
            logger.exception("Snapshot consumer raised; subscription stays open")

    # -------------------------------------------------------------------------
    # Read-only view
    # -------------------------------------------------------------------------

    @property
    def records(self) -> Tuple[TradeRecord, ...]:
        return self._records

    @property
    def has_snapshot(self) -> bool:
        return self._snapshot_count > 0

    @property
    def snapshot_count(self) -> int:
        return self._snapshot_count

    def get(self, record_id: str) -> Optional[TradeRecord]:
        return self._index.get(record_id)

    def contains(self, record_id: str) -> bool:
        return record_id in self._index
