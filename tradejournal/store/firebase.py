"""
Firebase Realtime Database Store

``DocumentStore`` backed by ``firebase_admin.db``. The Admin SDK's
``listen()`` delivers put/patch deltas on a background thread; this
backend folds them into a mirror of the collection and hands the full
mirror to subscribers on their event loop.
"""

import asyncio
import copy
import functools
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

import firebase_admin
from firebase_admin import credentials, db
from firebase_admin import exceptions as firebase_exceptions

from .base import (
    DocumentNotFound,
    DocumentStore,
    Snapshot,
    SnapshotCallback,
    StoreError,
    Unsubscribe,
)

logger = logging.getLogger(__name__)

_APP_NAME = "tradejournal"
_init_lock = threading.Lock()


def init_firebase_app(
    database_url: str,
    credentials_path: Optional[str] = None,
) -> firebase_admin.App:
    """
    Initialize the Firebase Admin app exactly once.

    Uses a service-account file when ``credentials_path`` is given and
    Application Default Credentials otherwise.
    """
    with _init_lock:
        try:
            return firebase_admin.get_app(_APP_NAME)
        except ValueError:
            pass

        try:
            if credentials_path:
                cred = credentials.Certificate(credentials_path)
            else:
                cred = credentials.ApplicationDefault()
        except Exception as e:
            raise StoreError(
                "Failed to load Firebase credentials. Set TRADEJOURNAL_CREDENTIALS "
                "to a service-account file or configure Application Default Credentials."
            ) from e

        app = firebase_admin.initialize_app(cred, {"databaseURL": database_url}, name=_APP_NAME)
        logger.info(f"Firebase app initialized for {database_url}")
        return app


def _to_mapping(value: Any) -> Dict[str, Any]:
    """Realtime Database returns lists for integer-like keys."""
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return {str(i): item for i, item in enumerate(value) if item is not None}
    return {}


class CollectionMirror:
    """Local copy of one collection, kept current from listen() events."""

    def __init__(self) -> None:
        self.docs: Dict[str, Any] = {}

    def apply(self, event_type: str, path: str, data: Any) -> None:
        segments = [s for s in path.split("/") if s]
        if event_type == "put":
            self._put(segments, data)
        elif event_type == "patch":
            for key, value in _to_mapping(data).items():
                self._put(segments + [s for s in key.split("/") if s], value)
        else:
            logger.debug(f"Ignoring listen event {event_type!r}")

    def _put(self, segments: List[str], data: Any) -> None:
        if not segments:
            self.docs = _to_mapping(data)
            return

        node: Dict[str, Any] = self.docs
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                if data is None:
                    return
                child = {}
                node[segment] = child
            node = child

        if data is None:
            node.pop(segments[-1], None)
        else:
            node[segments[-1]] = data
        self._prune(segments)

    def _prune(self, segments: List[str]) -> None:
        # Realtime Database has no empty nodes: drop emptied parents
        for depth in range(len(segments) - 1, 0, -1):
            parent = self.docs
            for segment in segments[: depth - 1]:
                parent = parent.get(segment, {})
            key = segments[depth - 1]
            if parent.get(key) == {}:
                del parent[key]

    def snapshot(self) -> Snapshot:
        return copy.deepcopy(self.docs) if self.docs else None


class FirebaseDocumentStore(DocumentStore):
    """Realtime Database backend."""

    def __init__(
        self,
        database_url: str,
        credentials_path: Optional[str] = None,
        app: Optional[firebase_admin.App] = None,
    ):
        self.app = app or init_firebase_app(database_url, credentials_path)
        self._registrations: List[Any] = []

    def _ref(self, *parts: str) -> db.Reference:
        return db.reference("/".join(parts), app=self.app)

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, functools.partial(func, *args))
        except DocumentNotFound:
            raise
        except firebase_exceptions.FirebaseError as e:
            raise StoreError(f"Realtime Database request failed: {e}") from e

    async def create(self, collection: str, fields: Dict[str, Any]) -> str:
        ref = await self._run(self._ref(collection).push, fields)
        return ref.key

    def subscribe(self, collection: str, on_snapshot: SnapshotCallback) -> Unsubscribe:
        try:
            loop: Optional[asyncio.AbstractEventLoop] = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        mirror = CollectionMirror()
        closed = threading.Event()

        def deliver(snapshot: Snapshot) -> None:
            if not closed.is_set():
                on_snapshot(snapshot)

        def on_event(event: db.Event) -> None:
            mirror.apply(event.event_type, event.path, event.data)
            snapshot = mirror.snapshot()
            if loop is not None:
                loop.call_soon_threadsafe(deliver, snapshot)
            else:
                deliver(snapshot)

        registration = self._ref(collection).listen(on_event)
        self._registrations.append(registration)
        logger.info(f"Listening to {collection}")

        def unsubscribe() -> None:
            if closed.is_set():
                return
            closed.set()
            if registration in self._registrations:
                self._registrations.remove(registration)
            registration.close()
            logger.info(f"Stopped listening to {collection}")

        return unsubscribe

    async def update(self, collection: str, doc_id: str, fields: Dict[str, Any]) -> None:
        # A plain update() would recreate a deleted record
        def merge(current: Any) -> Dict[str, Any]:
            if current is None:
                raise DocumentNotFound(collection, doc_id)
            merged = dict(current) if isinstance(current, dict) else {}
            merged.update(fields)
            return merged

        await self._run(self._ref(collection, doc_id).transaction, merge)

    async def delete(self, collection: str, doc_id: str) -> bool:
        ref = self._ref(collection, doc_id)
        if await self._run(ref.get) is None:
            return False
        await self._run(ref.delete)
        return True

    async def get_once(self, collection: str) -> Snapshot:
        value = await self._run(self._ref(collection).get)
        return _to_mapping(value) or None

    async def get_document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return await self._run(self._ref(collection, doc_id).get)

    def close(self) -> None:
        for registration in list(self._registrations):
            registration.close()
        self._registrations.clear()
