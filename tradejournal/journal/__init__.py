"""
Journal Module

Trade records, their sanitizer, the live subscription view, the
mutation coordinator and the form/edit-session layer.

Example usage:
    from tradejournal.journal import (
        EditSession, FormStateAdapter, MutationCoordinator, SubscriptionReconciler,
    )
    from tradejournal.store import InMemoryDocumentStore

    store = InMemoryDocumentStore()
    reconciler = SubscriptionReconciler(store)
    unsubscribe = reconciler.start(lambda records: print(len(records)))

    session = EditSession(MutationCoordinator(store, reconciler))
    session.open()
    session.update_draft(entry_price="2000", exit_price="2050", quantity="2")
    trade_id = await session.submit()
"""

from .coordinator import MutationCoordinator, MutationState, MutationStatus, patch_fields
from .forms import (
    EditableDraft,
    FormStateAdapter,
    PnlMode,
    ValidationPolicy,
    derive_profit_loss,
    suggest_profit_loss,
)
from .models import (
    CHECKLIST_KEYS,
    RULE_LABELS,
    SCHEMA_VERSION,
    TIME_RULES,
    TRADING_RULES,
    ChecklistItems,
    MarketSession,
    TradeRecord,
    TradeType,
)
from .reconciler import SubscriptionReconciler
from .sanitizer import SanitizationFallback, sanitize, sanitize_with_report
from .session import EditSession, SessionState

__all__ = [
    # Models
    "SCHEMA_VERSION",
    "TradeRecord",
    "TradeType",
    "MarketSession",
    "ChecklistItems",
    "CHECKLIST_KEYS",
    "RULE_LABELS",
    "TIME_RULES",
    "TRADING_RULES",
    # Sanitizer
    "sanitize",
    "sanitize_with_report",
    "SanitizationFallback",
    # Live view and mutations
    "SubscriptionReconciler",
    "MutationCoordinator",
    "MutationState",
    "MutationStatus",
    "patch_fields",
    # Forms
    "EditableDraft",
    "FormStateAdapter",
    "ValidationPolicy",
    "PnlMode",
    "derive_profit_loss",
    "suggest_profit_loss",
    "EditSession",
    "SessionState",
]
