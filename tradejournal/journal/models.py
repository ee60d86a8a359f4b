"""
Trade Journal Data Models

Dataclasses for trade records and the trading-rule checklist, plus the
wire names used by the document store.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

# Documents written by this version carry ``schemaVersion: 3``.
# v1: orderType/notes/image/tags, v2: type/memo/fee/strategy/checklist,
# v3: margin/risk/sections/session/entryKTR and the price ranges.
SCHEMA_VERSION = 3


class TradeType(Enum):
    """Trade direction. Values are the labels stored in the journal."""

    LONG = "매수"
    SHORT = "매도"

    @classmethod
    def parse(cls, value: Any) -> Optional["TradeType"]:
        """Return the member for an exact label or member name, else None."""
        if not isinstance(value, str):
            return None
        for member in cls:
            if value == member.value or value == member.name:
                return member
        return None


class MarketSession(Enum):
    """Market session the trade was taken in."""

    UNSPECIFIED = ""
    ASIA = "아시아장"
    EUROPE = "유럽장"
    US = "미장"

    @classmethod
    def parse(cls, value: Any) -> Optional["MarketSession"]:
        """Return the member for an exact label or member name, else None."""
        if not isinstance(value, str):
            return None
        for member in cls:
            if value == member.value or value == member.name:
                return member
        return None


# =============================================================================
# Checklist
# =============================================================================

TIME_RULES = "timeRules"
TRADING_RULES = "tradingRules"

CHECKLIST_KEYS: Dict[str, Tuple[str, ...]] = {
    TIME_RULES: (
        "mindset1",
        "mindset2",
        "positionSize",
        "checkInterval",
        "sleepAt12",
    ),
    TRADING_RULES: (
        "checkPrevMarket",
        "checkKeyLevels",
        "asiaSession",
        "minPosition",
        "candleClose",
        "noDoubleEntry",
        "emaDistance",
        "avoidFirstZone",
        "profitTrailing",
    ),
}

CATEGORY_TITLES: Dict[str, str] = {
    TIME_RULES: "시간 제한",
    TRADING_RULES: "거래 방식",
}

RULE_LABELS: Dict[str, Dict[str, str]] = {
    TIME_RULES: {
        "mindset1": "데이트레이딩 마인드 1: 5/10분봉 골크/데크 후 첫 원비 & 장기이평 맞닿는 자리 얼러트 시 KTR 구간매매",
        "mindset2": "데이트레이딩 마인드 2: 1/2시간봉 기준 기본더블비(수축원비), 변곡더블비, 돌파더블비 와 지/추가 겹치는 자리에서 시가봉 KTR로 구간매매",
        "positionSize": "데이트레이딩 마인드 모두 비중은 $1,000 이전까지 0.01랏으로 고정",
        "checkInterval": "1-2시간 간격으로만 체크",
        "sleepAt12": "12시에는 무조건 취침",
    },
    TRADING_RULES: {
        "checkPrevMarket": "1. 전일 미장 방향성 체크 (아시아장은 전일 미장의 방향성과 일치하는 방향으로 거래)",
        "checkKeyLevels": "2. 주요 매물대 체크 (돌파 매물대, 전일 미장 되돌림 봉, 시가 세션박스, 지표봉, 미장 고/저 선, 전일 미장 50% 되돌림 구간)",
        "asiaSession": "3. 아시아장: 1,2번 원칙에 의한 손절가/목표가/추세대로만 진입",
        "minPosition": "4. 최소 비중 (1%~10%)",
        "candleClose": "5. 봉마감 기준 판단",
        "noDoubleEntry": "6. 이중 진입 금지",
        "emaDistance": "7. 장기 이평과 단기 이평 사이의 이격이 일정 간격 이상 벌어져 있을 경우에 진입 (간격이 좁다면 패스)",
        "avoidFirstZone": "8. 더블바텀, 더블 탑 시 1구간 회피",
        "profitTrailing": "9. 시간봉 기준으로 33%, 50%, 75% 이익트레일링",
    },
}


@dataclass(frozen=True)
class ChecklistItems:
    """
    Fixed-shape set of rule flags, grouped by category.

    Every key of every category is always present; use ``with_rule`` to
    get a copy with one flag changed.
    """

    time_rules: Tuple[Tuple[str, bool], ...] = tuple(
        (key, False) for key in CHECKLIST_KEYS[TIME_RULES]
    )
    trading_rules: Tuple[Tuple[str, bool], ...] = tuple(
        (key, False) for key in CHECKLIST_KEYS[TRADING_RULES]
    )

    @classmethod
    def default(cls) -> "ChecklistItems":
        """All rules unchecked."""
        return cls()

    @classmethod
    def from_flags(cls, flags: Mapping[str, Mapping[str, bool]]) -> "ChecklistItems":
        """Build from a complete-or-partial nested mapping of real booleans."""
        categories = {}
        for category, keys in CHECKLIST_KEYS.items():
            given = flags.get(category, {})
            categories[category] = tuple((key, given.get(key) is True) for key in keys)
        return cls(time_rules=categories[TIME_RULES], trading_rules=categories[TRADING_RULES])

    def category(self, name: str) -> Dict[str, bool]:
        if name == TIME_RULES:
            return dict(self.time_rules)
        if name == TRADING_RULES:
            return dict(self.trading_rules)
        raise KeyError(name)

    def with_rule(self, category: str, key: str, checked: bool) -> "ChecklistItems":
        """Return a copy with one rule set."""
        flags = self.to_dict()
        if category not in flags or key not in flags[category]:
            raise KeyError(f"{category}.{key}")
        flags[category][key] = bool(checked)
        return ChecklistItems.from_flags(flags)

    def completed(self, category: str) -> int:
        return sum(1 for checked in self.category(category).values() if checked)

    def total(self, category: str) -> int:
        return len(CHECKLIST_KEYS[category])

    @property
    def adherence(self) -> float:
        """Share of all rules that are checked (0.0 - 1.0)."""
        total = sum(len(keys) for keys in CHECKLIST_KEYS.values())
        return sum(self.completed(name) for name in CHECKLIST_KEYS) / total

    def to_dict(self) -> Dict[str, Dict[str, bool]]:
        return {
            TIME_RULES: dict(self.time_rules),
            TRADING_RULES: dict(self.trading_rules),
        }


# =============================================================================
# Trade record
# =============================================================================

# attribute name -> wire name, for every numeric field
NUMERIC_FIELDS: Dict[str, str] = {
    "entry_price": "entryPrice",
    "exit_price": "exitPrice",
    "quantity": "quantity",
    "fee": "fee",
    "margin": "margin",
    "risk": "risk",
    "sections": "sections",
    "entry_ktr": "entryKTR",
    "profit_loss": "profitLoss",
    "target_price": "targetPrice",
    "stop_loss": "stopLoss",
    "entry_start": "entryStart",
    "entry_end": "entryEnd",
    "tp_start": "tpStart",
    "tp_end": "tpEnd",
    "sl_start": "slStart",
    "sl_end": "slEnd",
}

TEXT_FIELDS: Dict[str, str] = {
    "date": "date",
    "strategy": "strategy",
    "memo": "memo",
    "image": "image",
}

WIRE_FIELDS: Tuple[str, ...] = (
    tuple(TEXT_FIELDS.values())
    + tuple(NUMERIC_FIELDS.values())
    + ("type", "session", "tags", "checklist")
)


@dataclass(frozen=True)
class TradeRecord:
    """
    One logged trading transaction.

    ``id`` is assigned by the document store and is ``None`` until the
    record has been created.
    """

    id: Optional[str] = None
    date: str = ""
    type: TradeType = TradeType.LONG
    session: MarketSession = MarketSession.UNSPECIFIED

    entry_price: float = 0.0
    exit_price: float = 0.0
    quantity: float = 0.0
    fee: float = 0.0
    profit_loss: float = 0.0

    # Position sizing
    margin: float = 0.0
    risk: float = 0.0
    sections: float = 0.0
    entry_ktr: float = 0.0

    # Plan levels
    target_price: float = 0.0
    stop_loss: float = 0.0
    entry_start: float = 0.0
    entry_end: float = 0.0
    tp_start: float = 0.0
    tp_end: float = 0.0
    sl_start: float = 0.0
    sl_end: float = 0.0

    strategy: str = ""
    memo: str = ""
    image: str = ""
    tags: Tuple[str, ...] = ()
    checklist: ChecklistItems = field(default_factory=ChecklistItems.default)

    @property
    def net_profit(self) -> float:
        """Profit/loss after fees."""
        return self.profit_loss - self.fee

    def without_id(self) -> "TradeRecord":
        return replace(self, id=None)

    def to_document(self) -> Dict[str, Any]:
        """Flat wire map of every field except ``id``."""
        doc: Dict[str, Any] = {wire: getattr(self, attr) for attr, wire in TEXT_FIELDS.items()}
        doc.update({wire: getattr(self, attr) for attr, wire in NUMERIC_FIELDS.items()})
        doc["type"] = self.type.value
        doc["session"] = self.session.value
        doc["tags"] = list(self.tags)
        doc["checklist"] = self.checklist.to_dict()
        doc["schemaVersion"] = SCHEMA_VERSION
        return doc

    def to_dict(self) -> Dict[str, Any]:
        """Wire map including ``id`` and derived figures, for API responses."""
        data = {"id": self.id}
        data.update(self.to_document())
        data["netProfit"] = self.net_profit
        return data


__all__ = [
    "SCHEMA_VERSION",
    "TradeType",
    "MarketSession",
    "TIME_RULES",
    "TRADING_RULES",
    "CHECKLIST_KEYS",
    "CATEGORY_TITLES",
    "RULE_LABELS",
    "ChecklistItems",
    "NUMERIC_FIELDS",
    "TEXT_FIELDS",
    "WIRE_FIELDS",
    "TradeRecord",
]
