"""Tests for journal summary statistics."""

import pytest

from tradejournal.analytics import records_to_frame, sort_newest_first, summarize
from tradejournal.journal import ChecklistItems, TradeRecord, TradeType


@pytest.fixture
def records():
    return [
        TradeRecord(id="a", date="2024-03-01", strategy="breakout", profit_loss=100.0, fee=5.0),
        TradeRecord(id="b", date="2024-03-03", strategy="breakout", profit_loss=-40.0, fee=5.0),
        TradeRecord(
            id="c",
            date="2024-03-02",
            type=TradeType.SHORT,
            strategy="",
            profit_loss=60.0,
            fee=2.0,
            checklist=ChecklistItems.default().with_rule("timeRules", "mindset1", True),
        ),
    ]


class TestSummarize:
    """Tests for summarize."""

    def test_empty_journal(self):
        summary = summarize([])
        assert summary.total_trades == 0
        assert summary.win_rate == 0.0
        assert summary.to_dict()["byStrategy"] == []

    def test_totals(self, records):
        summary = summarize(records)
        assert summary.total_trades == 3
        assert summary.total_profit_loss == pytest.approx(120.0)
        assert summary.total_fees == pytest.approx(12.0)
        assert summary.net_profit == pytest.approx(108.0)
        assert summary.win_rate == pytest.approx(200 / 3)
        assert summary.avg_profit_loss == pytest.approx(40.0)
        assert summary.checklist_adherence == pytest.approx(1 / 14 / 3)

    def test_breakdowns(self, records):
        data = summarize(records).to_dict()
        strategies = {row["strategy"]: row for row in data["byStrategy"]}
        assert strategies["breakout"]["trades"] == 2
        assert strategies["breakout"]["winRate"] == 50.0
        assert strategies["(none)"]["profitLoss"] == 60.0
        types = {row["type"]: row["trades"] for row in data["byType"]}
        assert types == {"LONG": 2, "SHORT": 1}

    def test_frame_columns(self, records):
        frame = records_to_frame(records)
        assert list(frame["id"]) == ["a", "b", "c"]
        assert frame["net_profit"].tolist() == [95.0, -45.0, 58.0]


class TestSortNewestFirst:
    """Tests for sort_newest_first."""

    def test_order(self, records):
        undated = TradeRecord(id="u")
        ordered = sort_newest_first(records + [undated])
        assert [r.id for r in ordered] == ["b", "c", "a", "u"]
