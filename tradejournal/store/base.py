"""
Document Store Interface

The journal talks to its backing store only through this interface: a
key-value document service that pushes the full collection state on
every change.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

# Full collection state: {document id: fields}, or None when empty.
# Some backends hand over a list when ids look like integers.
Snapshot = Any
SnapshotCallback = Callable[[Snapshot], None]
Unsubscribe = Callable[[], None]


class StoreError(Exception):
    """Base error raised by store backends."""


class DocumentNotFound(StoreError):
    """The addressed document does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(f"{collection}/{doc_id} does not exist")


class DocumentStore(ABC):
    """Abstract document store."""

    @abstractmethod
    async def create(self, collection: str, fields: Dict[str, Any]) -> str:
        """Add a document and return its generated id."""

    @abstractmethod
    def subscribe(self, collection: str, on_snapshot: SnapshotCallback) -> Unsubscribe:
        """
        Register a listener for full-collection snapshots.

        The current state is delivered once after registration and again
        after every change. Returns a function that removes the listener.
        """

    @abstractmethod
    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        """
        Merge ``fields`` into an existing document.

        Raises:
            DocumentNotFound: if the document does not exist
        """

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> bool:
        """Remove a document. Returns False if it was already gone."""

    @abstractmethod
    async def get_once(self, collection: str) -> Snapshot:
        """One-shot read of the whole collection."""

    async def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """One-shot read of a single document, None if absent."""
        snapshot = await self.get_once(collection)
        if isinstance(snapshot, dict):
            return snapshot.get(doc_id)
        return None

    def close(self) -> None:
        """Release backend resources."""
