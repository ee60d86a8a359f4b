"""
Shared test fixtures for the trade journal test suite.
"""

import pytest

from tradejournal.journal import (
    FormStateAdapter,
    MutationCoordinator,
    SubscriptionReconciler,
)
from tradejournal.store import InMemoryDocumentStore


@pytest.fixture
def sample_document():
    """A complete current-schema trade document."""
    return {
        "date": "2024-03-15",
        "type": "매수",
        "session": "미장",
        "entryPrice": 2000,
        "exitPrice": 2050,
        "quantity": 2,
        "fee": 4.5,
        "profitLoss": 100,
        "margin": 500,
        "risk": 1.5,
        "sections": 3,
        "entryKTR": 12.5,
        "targetPrice": 2080,
        "stopLoss": 1980,
        "entryStart": 1995,
        "entryEnd": 2005,
        "tpStart": 2070,
        "tpEnd": 2090,
        "slStart": 1975,
        "slEnd": 1985,
        "strategy": "breakout",
        "memo": "clean retest",
        "image": "",
        "tags": ["gold", "us"],
        "checklist": {
            "timeRules": {"mindset1": True, "sleepAt12": True},
            "tradingRules": {"candleClose": True},
        },
        "schemaVersion": 3,
    }


@pytest.fixture
def legacy_document():
    """A v1 document: no schemaVersion, old key names, partial fields."""
    return {
        "date": "2023-11-02",
        "orderType": "매도",
        "entryPrice": "1,950.5",
        "exitPrice": "1940.5",
        "quantity": "3",
        "notes": "first journal entry",
    }


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def reconciler(store):
    """A started reconciler collecting every snapshot it forwards."""
    reconciler = SubscriptionReconciler(store, "trades")
    reconciler.updates = []
    reconciler.start(reconciler.updates.append)
    yield reconciler
    reconciler.stop()


@pytest.fixture
def coordinator(store, reconciler):
    return MutationCoordinator(store, reconciler)


@pytest.fixture
def adapter():
    return FormStateAdapter()
