"""
Mutation Coordinator

Sequences add/update/delete requests against the document store.
Mutations addressed to the same record run one at a time in the order
they were issued, so the last one issued decides the final state while
every call still reports its own outcome.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, Mapping, Optional, Set, TypeVar, Union

from ..core.errors import ErrorCodes, JournalError, NotFoundError, PersistenceError
from ..store.base import DocumentNotFound, DocumentStore
from .models import WIRE_FIELDS, ChecklistItems, MarketSession, TradeRecord, TradeType
from .reconciler import SubscriptionReconciler

logger = logging.getLogger(__name__)

T = TypeVar("T")

Patch = Union[TradeRecord, Mapping[str, Any]]


class MutationStatus(Enum):
    """Outcome of the most recent mutation for a record."""

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class MutationState:
    """Snapshot of a record's mutation bookkeeping."""

    record_id: str
    status: MutationStatus
    operation: Optional[str] = None
    pending: int = 0
    error: Optional[JournalError] = None


def _wire_value(value: Any) -> Any:
    if isinstance(value, (TradeType, MarketSession)):
        return value.value
    if isinstance(value, ChecklistItems):
        return value.to_dict()
    if isinstance(value, tuple):
        return list(value)
    return value


def patch_fields(patch: Patch) -> Dict[str, Any]:
    """
    Turn an update patch into wire fields.

    A ``TradeRecord`` replaces every field; a mapping must use wire names.
    """
    if isinstance(patch, TradeRecord):
        return patch.to_document()
    unknown = sorted(set(patch) - set(WIRE_FIELDS))
    if unknown:
        raise ValueError(f"Unknown trade fields: {', '.join(unknown)}")
    return {key: _wire_value(value) for key, value in patch.items()}


class MutationCoordinator:
    """
    Issues writes to the store on behalf of the UI layer.

    The coordinator never touches the reconciler's list; it only reads
    it to detect edits of records that have disappeared.
    """

    def __init__(
        self,
        store: DocumentStore,
        reconciler: Optional[SubscriptionReconciler] = None,
        collection: Optional[str] = None,
    ):
        self.store = store
        self.reconciler = reconciler
        self.collection = collection or (reconciler.collection if reconciler else "trades")

        self._locks: Dict[str, asyncio.Lock] = {}
        self._pending: Dict[str, int] = {}
        self._last: Dict[str, MutationState] = {}
        # ids returned by add() that no snapshot has shown yet
        self._created: Set[str] = set()

    # -------------------------------------------------------------------------
    # Bookkeeping
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _sequenced(self, record_id: str) -> AsyncIterator[None]:
        self._pending[record_id] = self._pending.get(record_id, 0) + 1
        lock = self._locks.setdefault(record_id, asyncio.Lock())
        try:
            async with lock:
                yield
        finally:
            self._pending[record_id] -= 1
            if not self._pending[record_id]:
                del self._pending[record_id]
                self._locks.pop(record_id, None)

    async def _run(
        self,
        record_id: str,
        operation: str,
        action: Callable[[], Awaitable[T]],
        failure_code=ErrorCodes.PERSISTENCE_WRITE_FAILED,
    ) -> T:
        async with self._sequenced(record_id):
            try:
                result = await action()
            except JournalError as e:
                self._record(record_id, operation, e)
                raise
            except DocumentNotFound as e:
                error: JournalError = NotFoundError(record_id, original_error=e)
                self._record(record_id, operation, error)
                raise error from e
            except Exception as e:
                error = PersistenceError(
                    failure_code,
                    detail=str(e) or type(e).__name__,
                    original_error=e,
                    context={"record_id": record_id, "operation": operation},
                )
                error.log()
                self._record(record_id, operation, error)
                raise error from e
            self._record(record_id, operation, None)
            return result

    def _record(self, record_id: str, operation: str, error: Optional[JournalError]) -> None:
        status = MutationStatus.FAILED if error else MutationStatus.SUCCEEDED
        self._last[record_id] = MutationState(record_id, status, operation, error=error)

    def status(self, record_id: str) -> MutationState:
        """Current mutation state of a record."""
        pending = self._pending.get(record_id, 0)
        last = self._last.get(record_id)
        if pending:
            return MutationState(
                record_id,
                MutationStatus.PENDING,
                last.operation if last else None,
                pending=pending,
                error=last.error if last else None,
            )
        return last or MutationState(record_id, MutationStatus.IDLE)

    def pending_count(self, record_id: str) -> int:
        return self._pending.get(record_id, 0)

    def is_pending(self, record_id: str) -> bool:
        return record_id in self._pending

    def is_stale(self, record_id: str) -> bool:
        """
        True when the latest snapshot no longer contains ``record_id``.

        Records this coordinator created are not stale while their first
        snapshot is still on its way.
        """
        if self.reconciler is None or not self.reconciler.has_snapshot:
            return False
        self._prune_created()
        if self.reconciler.contains(record_id):
            return False
        return record_id not in self._created

    def _prune_created(self) -> None:
        """Forget created ids that a snapshot has already shown."""
        if self.reconciler is not None and self._created:
            self._created = {i for i in self._created if not self.reconciler.contains(i)}

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def add(self, record: TradeRecord) -> str:
        """
        Create a record and return the id assigned by the store.

        ``record`` must already be in persisted form; its ``id`` is ignored.

        Raises:
            PersistenceError: if the store write fails
        """
        fields = record.to_document()
        try:
            record_id = await self.store.create(self.collection, fields)
        except Exception as e:
            error = PersistenceError(
                detail=str(e) or type(e).__name__,
                original_error=e,
                context={"operation": "add"},
            )
            error.log()
            raise error from e

        if self.reconciler is not None:
            self._prune_created()
            if not self.reconciler.contains(record_id):
                self._created.add(record_id)
        self._last[record_id] = MutationState(record_id, MutationStatus.SUCCEEDED, "add")
        logger.info(f"Added trade {record_id}", extra={"ctx_record_id": record_id, "ctx_date": record.date})
        return record_id

    async def update(self, record_id: str, patch: Patch) -> None:
        """
        Apply ``patch`` to an existing record.

        Raises:
            ValueError: if the patch names unknown fields
            NotFoundError: if the record was removed in the meantime
            PersistenceError: if the store write fails
        """
        fields = patch_fields(patch)

        async def action() -> None:
            if self.is_stale(record_id):
                raise NotFoundError(record_id)
            await self.store.update(self.collection, record_id, fields)

        await self._run(record_id, "update", action)
        logger.info(f"Updated trade {record_id}", extra={"ctx_record_id": record_id, "ctx_fields": len(fields)})

    async def delete(self, record_id: str) -> bool:
        """
        Remove a record. Deleting an absent record is a no-op.

        Returns:
            True if a record was removed, False if it was already gone

        Raises:
            PersistenceError: if the store delete fails
        """

        async def action() -> bool:
            return await self.store.delete(self.collection, record_id)

        removed = await self._run(
            record_id, "delete", action, failure_code=ErrorCodes.PERSISTENCE_DELETE_FAILED
        )
        self._created.discard(record_id)
        if removed:
            logger.info(f"Deleted trade {record_id}", extra={"ctx_record_id": record_id})
        else:
            logger.info(f"Trade {record_id} was already deleted", extra={"ctx_record_id": record_id})
        return removed
