"""
Edit Session

State machine behind the trade editor:

    CLOSED -> OPEN -> SUBMITTING -> CLOSED            (saved)
                          |
                          +------> OPEN (error)       (retry or cancel)

A failed save keeps the draft, so nothing typed is lost.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from ..core.errors import (
    InvalidTransitionError,
    JournalError,
    NotFoundError,
    ValidationError,
)
from .coordinator import MutationCoordinator
from .forms import EditableDraft, FormStateAdapter
from .models import TradeRecord

logger = logging.getLogger(__name__)


class SessionState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    SUBMITTING = "submitting"


class EditSession:
    """One create-or-edit dialog, from open to close."""

    def __init__(self, coordinator: MutationCoordinator, adapter: Optional[FormStateAdapter] = None):
        self.coordinator = coordinator
        self.adapter = adapter or FormStateAdapter()

        self.state = SessionState.CLOSED
        self.draft: Optional[EditableDraft] = None
        self.error: Optional[str] = None
        self.field_errors: Dict[str, str] = {}

    def _require(self, action: str, *states: SessionState) -> None:
        if self.state not in states:
            raise InvalidTransitionError(action, self.state.value)

    @property
    def editing_id(self) -> Optional[str]:
        """Id of the record being edited, None for a new trade."""
        return self.draft.record_id if self.draft else None

    def open(self, record: Optional[TradeRecord] = None) -> EditableDraft:
        """Open the editor for ``record``, or for a new trade."""
        self._require("open", SessionState.CLOSED)
        self.draft = self.adapter.to_editable(record)
        self.error = None
        self.field_errors = {}
        self.state = SessionState.OPEN
        return self.draft

    def update_draft(self, **values: Any) -> EditableDraft:
        self._require("edit", SessionState.OPEN)
        draft = self.draft
        for name, value in values.items():
            draft = self.adapter.with_field(draft, name, value)
        self.draft = draft
        return draft

    def toggle_rule(self, category: str, key: str, checked: bool) -> EditableDraft:
        self._require("edit", SessionState.OPEN)
        self.draft = self.adapter.with_rule(self.draft, category, key, checked)
        return self.draft

    def is_stale(self) -> bool:
        """True if the record under edit has vanished from the latest snapshot."""
        if self.state is SessionState.CLOSED or self.editing_id is None:
            return False
        return self.coordinator.is_stale(self.editing_id)

    def abort_if_stale(self) -> bool:
        """Close an open edit whose record no longer exists."""
        if self.state is SessionState.OPEN and self.is_stale():
            logger.info(f"Closing edit of removed trade {self.editing_id}")
            self._close()
            return True
        return False

    async def submit(self) -> str:
        """
        Validate and save the draft.

        Returns:
            The id of the created or updated record

        Raises:
            ValidationError: draft invalid; session stays open, nothing sent
            NotFoundError: the record was removed elsewhere
            PersistenceError: the store write failed; session stays open
        """
        self._require("submit", SessionState.OPEN)
        try:
            record = self.adapter.to_persisted(self.draft)
        except ValidationError as e:
            self.field_errors = dict(e.field_errors)
            self.error = e.user_message
            raise

        self.field_errors = {}
        self.error = None
        self.state = SessionState.SUBMITTING
        try:
            if record.id is None:
                record_id = await self.coordinator.add(record)
            else:
                await self.coordinator.update(record.id, record)
                record_id = record.id
        except JournalError as e:
            self.state = SessionState.OPEN
            self.error = e.user_message
            if isinstance(e, NotFoundError):
                logger.info(f"Edit target {record.id} is gone")
            raise
        except BaseException:
            self.state = SessionState.OPEN
            raise

        self._close()
        return record_id

    def cancel(self) -> None:
        """Discard the draft and close the editor."""
        self._require("cancel", SessionState.OPEN)
        self._close()

    def _close(self) -> None:
        self.state = SessionState.CLOSED
        self.draft = None
        self.error = None
        self.field_errors = {}
