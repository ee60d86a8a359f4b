"""
Trade Journal API Dependencies
==============================

Per-application container owning the document store connection and the
journal services built on it. The container lives on ``app.state`` and
is handed to endpoints through ``get_container``.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from fastapi import Request

from ..config.logging import log_with_context
from ..config.settings import JournalSettings
from ..journal import (
    EditSession,
    FormStateAdapter,
    MutationCoordinator,
    SubscriptionReconciler,
    TradeRecord,
)
from ..store.base import DocumentStore
from ..store.memory import InMemoryDocumentStore

logger = logging.getLogger(__name__)


def build_store(settings: JournalSettings) -> DocumentStore:
    """Create the configured store backend."""
    if settings.store.backend == "firebase":
        from ..store.firebase import FirebaseDocumentStore

        return FirebaseDocumentStore(
            database_url=settings.store.database_url,
            credentials_path=settings.store.credentials_path,
        )
    return InMemoryDocumentStore()


@dataclass
class Container:
    """
    Services shared by all endpoints of one application.

    Attributes:
        settings: Loaded settings
        store: The one store connection, owned by this container
        reconciler: Live view of the trade collection
        coordinator: Write path to the store
        adapter: Draft/record conversion with the configured policy
    """

    settings: JournalSettings
    store: Optional[DocumentStore] = None
    reconciler: Optional[SubscriptionReconciler] = None
    coordinator: Optional[MutationCoordinator] = None
    adapter: Optional[FormStateAdapter] = None

    _unsubscribe: Optional[Callable[[], None]] = field(default=None, repr=False)
    _initialized: bool = field(default=False, repr=False)

    async def initialize(self) -> None:
        """Connect to the store and start the live subscription."""
        if self._initialized:
            return

        if self.store is None:
            self.store = build_store(self.settings)

        collection = self.settings.store.collection
        self.reconciler = SubscriptionReconciler(self.store, collection)
        self.coordinator = MutationCoordinator(self.store, self.reconciler)
        self.adapter = FormStateAdapter(
            policy=self.settings.forms.validation_policy,
            pnl_mode=self.settings.forms.pnl_mode,
        )
        self._unsubscribe = self.reconciler.start(self._on_snapshot)

        self._initialized = True
        log_with_context(
            logger,
            logging.INFO,
            "Journal container initialized",
            backend=self.settings.store.backend,
            collection=collection,
        )

    def _on_snapshot(self, records: List[TradeRecord]) -> None:
        logger.debug(f"Live view now holds {len(records)} trade(s)")

    async def close(self) -> None:
        """Stop the subscription and release the store."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self.store is not None:
            try:
                self.store.close()
            except Exception as e:
                logger.error(f"Error closing store: {e}")
        self._initialized = False
        logger.info("Journal container closed")

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def new_session(self) -> EditSession:
        """A fresh edit session bound to this container's coordinator."""
        return EditSession(self.coordinator, self.adapter)


def get_container(request: Request) -> Container:
    """FastAPI dependency returning the application's container."""
    return request.app.state.container
