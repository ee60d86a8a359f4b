"""
Record Sanitizer

Normalizes raw documents from the store into complete ``TradeRecord``
objects. Sanitization never raises: malformed values are replaced by
defaults and reported as ``SanitizationFallback`` entries.
"""

import logging
import math
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import (
    CHECKLIST_KEYS,
    NUMERIC_FIELDS,
    SCHEMA_VERSION,
    ChecklistItems,
    MarketSession,
    TradeRecord,
    TradeType,
)

logger = logging.getLogger(__name__)

# Keys renamed between schema revisions: old name -> current name
_RENAMED_KEYS: Dict[int, Dict[str, str]] = {
    1: {"orderType": "type", "notes": "memo"},
}


@dataclass(frozen=True)
class SanitizationFallback:
    """A present-but-malformed value that was replaced by a default."""

    record_id: Optional[str]
    field: str
    value: Any
    reason: str


class _Report:
    def __init__(self, record_id: Optional[str]):
        self.record_id = record_id
        self.fallbacks: List[SanitizationFallback] = []

    def add(self, field: str, value: Any, reason: str) -> None:
        self.fallbacks.append(SanitizationFallback(self.record_id, field, value, reason))


# =============================================================================
# Schema upgrade
# =============================================================================


def schema_version(raw: Mapping[str, Any]) -> int:
    """Schema revision of a raw document; unversioned documents are v1."""
    version = raw.get("schemaVersion")
    if isinstance(version, bool) or not isinstance(version, int):
        return 1
    return min(max(version, 1), SCHEMA_VERSION)


def upgrade_document(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``raw`` with keys renamed to the current schema."""
    doc = dict(raw)
    for version in range(schema_version(raw), SCHEMA_VERSION):
        for old, new in _RENAMED_KEYS.get(version, {}).items():
            if old in doc and new not in doc:
                doc[new] = doc.pop(old)
    return doc


# =============================================================================
# Coercion helpers
# =============================================================================


def coerce_number(value: Any) -> Optional[float]:
    """
    Convert numbers and numeric strings to float.

    Returns None for anything that is not a finite number, including
    booleans and blank strings.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        try:
            number = float(value)
        except (OverflowError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        try:
            number = float(text)
        except (OverflowError, ValueError):
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _text(value: Any, field: str, report: _Report) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float, Decimal)):
        return str(value)
    report.add(field, value, "not a string")
    return ""


def _date(value: Any, report: _Report) -> str:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if not isinstance(value, str):
        report.add("date", value, "not a date string")
        return ""
    text = value.strip()
    if len(text) > 10:
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
        except ValueError:
            pass
    return text


def _tags(value: Any, report: _Report) -> Tuple[str, ...]:
    # Tags never contain commas: the form edits them as one comma-separated string
    if value is None:
        return ()
    if isinstance(value, str):
        items: List[Any] = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = list(value)
    else:
        report.add("tags", value, "not a list")
        return ()
    tags = []
    for item in items:
        if isinstance(item, (str, int, float)) and not isinstance(item, bool):
            tags.extend(part.strip() for part in str(item).split(",") if part.strip())
        elif item is not None:
            report.add("tags", item, "not a tag string")
    return tuple(tags)


def sanitize_checklist(value: Any, report: Optional[_Report] = None) -> ChecklistItems:
    """
    Deep-merge a raw checklist over the all-false default.

    Non-mapping values (arrays from an older revision, null, scalars)
    are replaced wholesale. Unknown categories and keys are ignored.
    """
    report = report or _Report(None)
    if value is None:
        return ChecklistItems.default()
    if not isinstance(value, Mapping):
        report.add("checklist", value, "not an object")
        return ChecklistItems.default()

    flags: Dict[str, Dict[str, bool]] = {}
    for category, keys in CHECKLIST_KEYS.items():
        given = value.get(category)
        flags[category] = {}
        if given is None:
            continue
        if not isinstance(given, Mapping):
            report.add(f"checklist.{category}", given, "not an object")
            continue
        for key in keys:
            if key not in given:
                continue
            checked = given[key]
            if isinstance(checked, bool):
                flags[category][key] = checked
            elif checked is not None:
                report.add(f"checklist.{category}.{key}", checked, "not a boolean")
    return ChecklistItems.from_flags(flags)


# =============================================================================
# Sanitizer
# =============================================================================


def sanitize_with_report(
    raw: Any, record_id: Optional[str] = None
) -> Tuple[TradeRecord, List[SanitizationFallback]]:
    """Sanitize ``raw`` and return the record with every fallback applied."""
    report = _Report(record_id)
    if not isinstance(raw, Mapping):
        if raw is not None:
            report.add("<record>", raw, "not an object")
        return TradeRecord(id=record_id), report.fallbacks

    doc = upgrade_document(raw)

    trade_type = TradeType.parse(doc.get("type"))
    if trade_type is None:
        if doc.get("type") is not None:
            report.add("type", doc.get("type"), "unknown trade type")
        trade_type = TradeType.LONG

    session = MarketSession.parse(doc.get("session"))
    if session is None:
        if doc.get("session") is not None:
            report.add("session", doc.get("session"), "unknown market session")
        session = MarketSession.UNSPECIFIED

    numbers: Dict[str, float] = {}
    for attr, wire in NUMERIC_FIELDS.items():
        value = doc.get(wire)
        number = coerce_number(value)
        if number is None:
            if value is not None and value != "":
                report.add(wire, value, "not numeric")
            number = 0.0
        numbers[attr] = number

    record = TradeRecord(
        id=record_id,
        date=_date(doc.get("date"), report),
        type=trade_type,
        session=session,
        strategy=_text(doc.get("strategy"), "strategy", report),
        memo=_text(doc.get("memo"), "memo", report),
        image=_text(doc.get("image"), "image", report),
        tags=_tags(doc.get("tags"), report),
        checklist=sanitize_checklist(doc.get("checklist"), report),
        **numbers,
    )
    return record, report.fallbacks


def sanitize(raw: Any, record_id: Optional[str] = None) -> TradeRecord:
    """
    Normalize any raw document into a complete ``TradeRecord``.

    Never raises. Malformed fields fall back to their defaults and are
    logged once per record.
    """
    try:
        record, fallbacks = sanitize_with_report(raw, record_id)
    except Exception:
        logger.exception("Sanitizer failed, using empty record", extra={"ctx_record_id": record_id})
        return TradeRecord(id=record_id)

    if fallbacks:
        logger.warning(
            f"Sanitized record with {len(fallbacks)} fallback(s)",
            extra={
                "ctx_record_id": record_id,
                "ctx_fields": ",".join(f.field for f in fallbacks),
            },
        )
    return record


__all__ = [
    "SanitizationFallback",
    "coerce_number",
    "sanitize",
    "sanitize_checklist",
    "sanitize_with_report",
    "schema_version",
    "upgrade_document",
]
