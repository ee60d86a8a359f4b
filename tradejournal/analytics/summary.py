"""
Journal Summary Module

Aggregate statistics over the live trade list: trade count, profit and
loss, fees, win rate and checklist adherence, with per-strategy and
per-direction breakdowns.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List

import pandas as pd

from ..journal.models import TradeRecord

logger = logging.getLogger(__name__)

FRAME_COLUMNS = [
    "id",
    "date",
    "type",
    "strategy",
    "profit_loss",
    "fee",
    "net_profit",
    "adherence",
]


@dataclass
class JournalSummary:
    """Headline statistics of the journal."""

    total_trades: int
    total_profit_loss: float
    total_fees: float
    net_profit: float
    win_rate: float  # percent of trades with profit_loss > 0
    avg_profit_loss: float
    checklist_adherence: float  # mean share of checked rules, 0-1

    by_strategy: pd.DataFrame = field(default_factory=pd.DataFrame)
    by_type: pd.DataFrame = field(default_factory=pd.DataFrame)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalTrades": self.total_trades,
            "totalProfitLoss": round(self.total_profit_loss, 2),
            "totalFees": round(self.total_fees, 2),
            "netProfit": round(self.net_profit, 2),
            "winRate": round(self.win_rate, 1),
            "avgProfitLoss": round(self.avg_profit_loss, 2),
            "checklistAdherence": round(self.checklist_adherence, 4),
            "byStrategy": _breakdown_records(self.by_strategy, "strategy"),
            "byType": _breakdown_records(self.by_type, "type"),
        }


def _breakdown_records(frame: pd.DataFrame, key: str) -> List[Dict[str, Any]]:
    if frame.empty:
        return []
    return [
        {
            key: index,
            "trades": int(row["trades"]),
            "profitLoss": round(float(row["profit_loss"]), 2),
            "winRate": round(float(row["win_rate"]), 1),
        }
        for index, row in frame.iterrows()
    ]


def records_to_frame(records: Iterable[TradeRecord]) -> pd.DataFrame:
    """One row per trade with the columns used for aggregation."""
    rows = [
        {
            "id": record.id,
            "date": record.date,
            "type": record.type.name,
            "strategy": record.strategy.strip() or "(none)",
            "profit_loss": record.profit_loss,
            "fee": record.fee,
            "net_profit": record.net_profit,
            "adherence": record.checklist.adherence,
        }
        for record in records
    ]
    return pd.DataFrame(rows, columns=FRAME_COLUMNS)


def _breakdown(frame: pd.DataFrame, key: str) -> pd.DataFrame:
    grouped = frame.groupby(key)
    result = pd.DataFrame(
        {
            "trades": grouped.size(),
            "profit_loss": grouped["profit_loss"].sum(),
            "win_rate": grouped["profit_loss"].apply(lambda s: (s > 0).mean() * 100),
        }
    )
    return result.sort_values("profit_loss", ascending=False)


def summarize(records: Iterable[TradeRecord]) -> JournalSummary:
    """Compute the journal summary. An empty journal yields zeros."""
    frame = records_to_frame(records)
    if frame.empty:
        return JournalSummary(
            total_trades=0,
            total_profit_loss=0.0,
            total_fees=0.0,
            net_profit=0.0,
            win_rate=0.0,
            avg_profit_loss=0.0,
            checklist_adherence=0.0,
        )

    total_profit_loss = float(frame["profit_loss"].sum())
    total_fees = float(frame["fee"].sum())
    summary = JournalSummary(
        total_trades=len(frame),
        total_profit_loss=total_profit_loss,
        total_fees=total_fees,
        net_profit=total_profit_loss - total_fees,
        win_rate=float((frame["profit_loss"] > 0).mean() * 100),
        avg_profit_loss=float(frame["profit_loss"].mean()),
        checklist_adherence=float(frame["adherence"].mean()),
        by_strategy=_breakdown(frame, "strategy"),
        by_type=_breakdown(frame, "type"),
    )
    logger.debug(f"Summarized {summary.total_trades} trade(s)")
    return summary


def sort_newest_first(records: Iterable[TradeRecord]) -> List[TradeRecord]:
    """Presentation order: latest date first, undated records last."""
    records = list(records)
    dated = sorted((r for r in records if r.date), key=lambda r: r.date, reverse=True)
    return dated + [r for r in records if not r.date]
