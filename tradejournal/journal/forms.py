"""
Form State Adapter

Converts between the draft a user is typing (numbers held as text,
possibly blank) and the persisted ``TradeRecord`` (fully typed).
"""

import logging
from dataclasses import dataclass, field, fields, replace
from datetime import date
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from ..core.errors import ValidationError
from .models import (
    NUMERIC_FIELDS,
    ChecklistItems,
    MarketSession,
    TradeRecord,
    TradeType,
)
from .sanitizer import coerce_number, sanitize

logger = logging.getLogger(__name__)


class ValidationPolicy(Enum):
    """Which fields must be filled in before a draft can be saved."""

    NONE = "none"  # accept anything
    BASIC = "basic"  # valid date
    STANDARD = "standard"  # + entry price and quantity above zero
    STRICT = "strict"  # + strategy


class PnlMode(Enum):
    """How the persisted profit/loss is obtained."""

    AUTO = "auto"  # blank field is filled from entry/exit prices
    MANUAL = "manual"  # typed value only


@dataclass(frozen=True)
class EditableDraft:
    """Trade form contents while typing. Numeric fields are raw text."""

    record_id: Optional[str] = None
    date: str = ""
    type: TradeType = TradeType.LONG
    session: MarketSession = MarketSession.UNSPECIFIED

    entry_price: str = ""
    exit_price: str = ""
    quantity: str = ""
    fee: str = ""
    profit_loss: str = ""
    margin: str = ""
    risk: str = ""
    sections: str = ""
    entry_ktr: str = ""
    target_price: str = ""
    stop_loss: str = ""
    entry_start: str = ""
    entry_end: str = ""
    tp_start: str = ""
    tp_end: str = ""
    sl_start: str = ""
    sl_end: str = ""

    strategy: str = ""
    memo: str = ""
    image: str = ""
    tags: str = ""
    checklist: ChecklistItems = field(default_factory=ChecklistItems.default)

    @property
    def is_new(self) -> bool:
        return self.record_id is None


DRAFT_FIELDS = frozenset(f.name for f in fields(EditableDraft))


def format_number(value: float) -> str:
    """Render a number for an input box, without a trailing ``.0``."""
    if value.is_integer():
        return str(int(value))
    return repr(value)


def derive_profit_loss(trade_type: TradeType, entry_price: float, exit_price: float, quantity: float) -> float:
    """
    Profit/loss of a closed position.

    LONG earns ``(exit - entry) * quantity``; SHORT earns
    ``(entry - exit) * quantity``.
    """
    if trade_type is TradeType.SHORT:
        return (entry_price - exit_price) * quantity
    return (exit_price - entry_price) * quantity


def suggest_profit_loss(draft: EditableDraft) -> Optional[float]:
    """Derived profit/loss for a draft, or None if a price or the size is missing."""
    entry = coerce_number(draft.entry_price)
    exit_ = coerce_number(draft.exit_price)
    quantity = coerce_number(draft.quantity)
    if entry is None or exit_ is None or quantity is None:
        return None
    return derive_profit_loss(draft.type, entry, exit_, quantity)


class FormStateAdapter:
    """
    Bridges ``EditableDraft`` and ``TradeRecord``.

    Both conversions are pure: inputs are never modified.
    """

    def __init__(
        self,
        policy: ValidationPolicy = ValidationPolicy.BASIC,
        pnl_mode: PnlMode = PnlMode.AUTO,
    ):
        self.policy = policy
        self.pnl_mode = pnl_mode

    # -------------------------------------------------------------------------
    # Record -> draft
    # -------------------------------------------------------------------------

    def to_editable(
        self,
        record: Union[TradeRecord, Mapping[str, Any], None] = None,
        today: Optional[date] = None,
    ) -> EditableDraft:
        """
        Build a draft for the form.

        Without a record the draft is blank apart from today's date and
        the default enums. Raw documents are sanitized first, so records
        from older schemas still populate every checkbox.
        """
        if record is None:
            return EditableDraft(date=(today or date.today()).isoformat())

        if not isinstance(record, TradeRecord):
            record_id = record.get("id") if isinstance(record, Mapping) else None
            record = sanitize(record, record_id=record_id if isinstance(record_id, str) else None)

        numbers = {attr: format_number(getattr(record, attr)) for attr in NUMERIC_FIELDS}
        return EditableDraft(
            record_id=record.id,
            date=record.date,
            type=record.type,
            session=record.session,
            strategy=record.strategy,
            memo=record.memo,
            image=record.image,
            tags=", ".join(record.tags),
            checklist=record.checklist,
            **numbers,
        )

    # -------------------------------------------------------------------------
    # Draft -> record
    # -------------------------------------------------------------------------

    def validate(self, draft: EditableDraft) -> Dict[str, str]:
        """Return ``{wire field: message}`` for every invalid field."""
        errors: Dict[str, str] = {}
        if self.policy is ValidationPolicy.NONE:
            return errors

        for attr, wire in NUMERIC_FIELDS.items():
            text = getattr(draft, attr)
            if text.strip() and coerce_number(text) is None:
                errors[wire] = "Must be a number"

        date_text = draft.date.strip()
        if not date_text:
            errors["date"] = "Date is required"
        else:
            try:
                date.fromisoformat(date_text)
            except ValueError:
                errors["date"] = "Date must be YYYY-MM-DD"

        if self.policy in (ValidationPolicy.STANDARD, ValidationPolicy.STRICT):
            if (coerce_number(draft.entry_price) or 0.0) <= 0:
                errors.setdefault("entryPrice", "Entry price must be greater than 0")
            if (coerce_number(draft.quantity) or 0.0) <= 0:
                errors.setdefault("quantity", "Quantity must be greater than 0")

        if self.policy is ValidationPolicy.STRICT and not draft.strategy.strip():
            errors["strategy"] = "Strategy is required"

        return errors

    def to_persisted(self, draft: EditableDraft) -> TradeRecord:
        """
        Convert a draft into a fully typed record.

        Blank or unparsable numbers become 0. Under ``PnlMode.AUTO`` a
        blank profit/loss is derived from the prices; a typed value is
        kept as an override.

        Raises:
            ValidationError: with one message per invalid field
        """
        errors = self.validate(draft)
        if errors:
            logger.debug(f"Draft rejected: {sorted(errors)}", extra={"ctx_record_id": draft.record_id})
            raise ValidationError(errors)

        numbers = {attr: coerce_number(getattr(draft, attr)) or 0.0 for attr in NUMERIC_FIELDS}
        if self.pnl_mode is PnlMode.AUTO and not draft.profit_loss.strip():
            suggested = suggest_profit_loss(draft)
            if suggested is not None:
                numbers["profit_loss"] = suggested

        tags = tuple(tag.strip() for tag in draft.tags.split(",") if tag.strip())
        return TradeRecord(
            id=draft.record_id,
            date=draft.date.strip(),
            type=draft.type,
            session=draft.session,
            strategy=draft.strategy,
            memo=draft.memo,
            image=draft.image,
            tags=tags,
            checklist=draft.checklist,
            **numbers,
        )

    # -------------------------------------------------------------------------
    # Draft edits
    # -------------------------------------------------------------------------

    @staticmethod
    def with_field(draft: EditableDraft, name: str, value: Any) -> EditableDraft:
        """Return a copy of ``draft`` with one field changed."""
        if name not in DRAFT_FIELDS or name in ("record_id", "checklist"):
            raise KeyError(name)
        if name == "type":
            parsed = value if isinstance(value, TradeType) else TradeType.parse(value)
            if parsed is None:
                raise ValueError(f"Unknown trade type: {value!r}")
            value = parsed
        elif name == "session":
            parsed_session = value if isinstance(value, MarketSession) else MarketSession.parse(value)
            if parsed_session is None:
                raise ValueError(f"Unknown market session: {value!r}")
            value = parsed_session
        elif value is None:
            value = ""
        elif isinstance(value, float):
            value = format_number(value)
        else:
            value = str(value)
        return replace(draft, **{name: value})

    @staticmethod
    def with_rule(draft: EditableDraft, category: str, key: str, checked: bool) -> EditableDraft:
        return replace(draft, checklist=draft.checklist.with_rule(category, key, checked))
