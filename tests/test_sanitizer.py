"""Tests for the record sanitizer."""

import logging
from datetime import date, datetime
from decimal import Decimal

import pytest

from tradejournal.journal.models import (
    CHECKLIST_KEYS,
    NUMERIC_FIELDS,
    ChecklistItems,
    MarketSession,
    TradeRecord,
    TradeType,
)
from tradejournal.journal.sanitizer import (
    coerce_number,
    sanitize,
    sanitize_checklist,
    sanitize_with_report,
    schema_version,
    upgrade_document,
)


class TestCoerceNumber:
    """Tests for coerce_number."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (5, 5.0),
            (2.5, 2.5),
            ("42", 42.0),
            ("  -3.25 ", -3.25),
            ("1,950.5", 1950.5),
        ],
    )
    def test_numeric_values(self, value, expected):
        assert coerce_number(value) == expected

    @pytest.mark.parametrize(
        "value",
        [None, "", "   ", "abc", True, False, [], {}, float("nan"), "inf", 10**400, Decimal("1e400")],
    )
    def test_non_numeric_values(self, value):
        assert coerce_number(value) is None


class TestSchemaUpgrade:
    """Tests for schema detection and key renames."""

    def test_unversioned_is_v1(self):
        assert schema_version({}) == 1

    def test_versioned(self):
        assert schema_version({"schemaVersion": 3}) == 3

    def test_bool_version_is_ignored(self):
        assert schema_version({"schemaVersion": True}) == 1

    def test_v1_keys_renamed(self, legacy_document):
        doc = upgrade_document(legacy_document)
        assert doc["type"] == "매도"
        assert doc["memo"] == "first journal entry"
        assert "orderType" not in doc
        assert "notes" not in doc

    def test_current_key_wins_over_legacy(self):
        doc = upgrade_document({"orderType": "매도", "type": "매수"})
        assert doc["type"] == "매수"

    def test_input_not_modified(self, legacy_document):
        original = dict(legacy_document)
        upgrade_document(legacy_document)
        assert legacy_document == original


class TestSanitizeChecklist:
    """Tests for checklist deep-merge."""

    def test_none_gives_default(self):
        assert sanitize_checklist(None) == ChecklistItems.default()

    def test_partial_category_keeps_all_keys(self):
        checklist = sanitize_checklist({"timeRules": {"mindset1": True}})
        time_rules = checklist.category("timeRules")
        assert set(time_rules) == set(CHECKLIST_KEYS["timeRules"])
        assert time_rules["mindset1"] is True
        assert time_rules["mindset2"] is False
        assert set(checklist.category("tradingRules")) == set(CHECKLIST_KEYS["tradingRules"])

    def test_array_checklist_replaced(self):
        assert sanitize_checklist([True, False, True]) == ChecklistItems.default()

    def test_unknown_keys_ignored(self):
        checklist = sanitize_checklist({"timeRules": {"bogus": True}, "extra": {"x": True}})
        assert checklist == ChecklistItems.default()

    def test_non_bool_flags_are_false(self):
        checklist = sanitize_checklist({"tradingRules": {"candleClose": "yes", "noDoubleEntry": 1}})
        assert checklist.category("tradingRules")["candleClose"] is False
        assert checklist.category("tradingRules")["noDoubleEntry"] is False


class TestSanitize:
    """Tests for sanitize."""

    def test_complete_document(self, sample_document):
        record = sanitize(sample_document, record_id="t1")
        assert record.id == "t1"
        assert record.date == "2024-03-15"
        assert record.type is TradeType.LONG
        assert record.session is MarketSession.US
        assert record.entry_price == 2000.0
        assert record.profit_loss == 100.0
        assert record.entry_ktr == 12.5
        assert record.tags == ("gold", "us")
        assert record.checklist.category("timeRules")["sleepAt12"] is True
        assert record.checklist.completed("tradingRules") == 1

    @pytest.mark.parametrize("raw", [None, 42, "text", [1, 2], {"date": 20240101}, {"checklist": "x"}])
    def test_never_raises(self, raw):
        record = sanitize(raw, record_id="x")
        assert isinstance(record, TradeRecord)
        assert record.id == "x"

    def test_malformed_record_gets_defaults(self):
        record = sanitize({"date": None, "entryPrice": "abc", "type": "sideways"}, record_id="bad")
        assert record.date == ""
        assert record.entry_price == 0.0
        assert record.type is TradeType.LONG
        for attr in NUMERIC_FIELDS:
            assert isinstance(getattr(record, attr), float)

    def test_empty_document(self):
        assert sanitize({}) == TradeRecord()

    def test_legacy_document(self, legacy_document):
        record = sanitize(legacy_document, record_id="old")
        assert record.type is TradeType.SHORT
        assert record.memo == "first journal entry"
        assert record.entry_price == 1950.5
        assert record.quantity == 3.0
        assert record.checklist == ChecklistItems.default()

    def test_type_accepts_member_name(self):
        assert sanitize({"type": "SHORT"}).type is TradeType.SHORT

    def test_boolean_numbers_fall_back(self):
        record, fallbacks = sanitize_with_report({"quantity": True})
        assert record.quantity == 0.0
        assert [f.field for f in fallbacks] == ["quantity"]

    def test_datetime_date_normalized(self):
        assert sanitize({"date": "2024-03-15T09:30:00Z"}).date == "2024-03-15"
        assert sanitize({"date": datetime(2024, 3, 15, 9, 30)}).date == "2024-03-15"
        assert sanitize({"date": date(2024, 3, 15)}).date == "2024-03-15"

    def test_comma_separated_tags(self):
        assert sanitize({"tags": "gold, us ,,scalp"}).tags == ("gold", "us", "scalp")

    def test_tag_items_never_keep_commas(self):
        assert sanitize({"tags": ["gold,silver", "us"]}).tags == ("gold", "silver", "us")

    def test_oversized_number_falls_back_alone(self):
        record, fallbacks = sanitize_with_report(
            {"date": "2024-01-01", "memo": "keep", "fee": 10**400}, record_id="big"
        )
        assert record.fee == 0.0
        assert record.date == "2024-01-01"
        assert record.memo == "keep"
        assert [f.field for f in fallbacks] == ["fee"]

    def test_input_not_modified(self, sample_document):
        original = dict(sample_document)
        sanitize(sample_document)
        assert sample_document == original

    def test_idempotent(self, sample_document):
        record = sanitize(sample_document, record_id="t1")
        assert sanitize(record.to_document(), record_id="t1") == record

    def test_fallbacks_reported(self):
        _, fallbacks = sanitize_with_report({"fee": "n/a", "session": "moon"}, record_id="r")
        assert {f.field for f in fallbacks} == {"fee", "session"}
        assert all(f.record_id == "r" for f in fallbacks)

    def test_clean_document_has_no_fallbacks(self, sample_document):
        _, fallbacks = sanitize_with_report(sample_document)
        assert fallbacks == []

    def test_fallback_logged_once_per_record(self, caplog):
        with caplog.at_level(logging.WARNING, logger="tradejournal.journal.sanitizer"):
            sanitize({"fee": "n/a", "risk": "?"}, record_id="r")
        assert len(caplog.records) == 1
