"""
Trade Journal Trades Router

CRUD endpoints for trade records. Reads come from the live subscription
view; writes go through an edit session so validation and error
handling match the interactive editor.

Endpoints:
    GET    /api/trades               - All trades, newest first
    GET    /api/trades/{trade_id}    - One trade
    POST   /api/trades               - Create a trade from draft fields
    PUT    /api/trades/{trade_id}    - Edit a trade
    DELETE /api/trades/{trade_id}    - Delete a trade (idempotent)
    POST   /api/trades/suggest-pnl   - Derived profit/loss for draft prices
"""

import logging
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from ...analytics import sort_newest_first
from ...core.errors import NotFoundError
from ...journal import EditSession, suggest_profit_loss
from ...journal.models import NUMERIC_FIELDS
from ..dependencies import Container, get_container
from .base import ApiResponse, create_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trades", tags=["Trades"])

NumberInput = Optional[Union[float, str]]

# request field -> draft attribute
_DRAFT_ATTRS: Dict[str, str] = {wire: attr for attr, wire in NUMERIC_FIELDS.items()}
_DRAFT_ATTRS.update(
    {
        "date": "date",
        "type": "type",
        "session": "session",
        "strategy": "strategy",
        "memo": "memo",
        "image": "image",
        "tags": "tags",
    }
)


# =============================================================================
# Pydantic Models - Request Types
# =============================================================================


class TradeDraftRequest(BaseModel):
    """
    Trade form fields as typed by the user.

    Numbers may be sent as numbers or as text; omitted fields keep their
    current value when editing.
    """

    date: Optional[str] = Field(default=None, description="Trade date (YYYY-MM-DD)")
    type: Optional[str] = Field(default=None, description="매수/매도 or LONG/SHORT")
    session: Optional[str] = Field(default=None, description="Market session label")

    entryPrice: NumberInput = None
    exitPrice: NumberInput = None
    quantity: NumberInput = None
    fee: NumberInput = None
    profitLoss: NumberInput = Field(default=None, description="Leave blank to derive from prices")
    margin: NumberInput = None
    risk: NumberInput = None
    sections: NumberInput = None
    entryKTR: NumberInput = None
    targetPrice: NumberInput = None
    stopLoss: NumberInput = None
    entryStart: NumberInput = None
    entryEnd: NumberInput = None
    tpStart: NumberInput = None
    tpEnd: NumberInput = None
    slStart: NumberInput = None
    slEnd: NumberInput = None

    strategy: Optional[str] = None
    memo: Optional[str] = None
    image: Optional[str] = None
    tags: Optional[Union[List[str], str]] = None
    checklist: Optional[Dict[str, Dict[str, bool]]] = Field(
        default=None, description="Rule flags by category; omitted rules are unchanged"
    )


def _apply_request(session: EditSession, request: TradeDraftRequest) -> None:
    """Copy the provided request fields into the session draft."""
    provided = request.model_dump(exclude_unset=True)
    checklist = provided.pop("checklist", None) or {}

    values = {}
    for name, value in provided.items():
        if name == "tags" and isinstance(value, list):
            value = ", ".join(value)
        values[_DRAFT_ATTRS[name]] = value

    try:
        session.update_draft(**values)
        for category, flags in checklist.items():
            for key, checked in flags.items():
                session.toggle_rule(category, key, checked)
    except (KeyError, ValueError) as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


# =============================================================================
# Endpoints
# =============================================================================


@router.get("", response_model=ApiResponse)
async def list_trades(container: Container = Depends(get_container)):
    """All trades from the latest snapshot, newest first."""
    records = sort_newest_first(container.reconciler.records)
    return create_response(data=[record.to_dict() for record in records])


@router.post("/suggest-pnl", response_model=ApiResponse)
async def suggest_pnl(request: TradeDraftRequest, container: Container = Depends(get_container)):
    """Profit/loss implied by the draft's direction, prices and quantity."""
    session = container.new_session()
    session.open()
    try:
        _apply_request(session, request)
        suggested = suggest_profit_loss(session.draft)
    finally:
        session.cancel()
    return create_response(data={"profitLoss": suggested})


@router.get("/{trade_id}", response_model=ApiResponse)
async def get_trade(trade_id: str, container: Container = Depends(get_container)):
    record = container.reconciler.get(trade_id)
    if record is None:
        raise NotFoundError(trade_id)
    return create_response(data=record.to_dict())


@router.post("", response_model=ApiResponse, status_code=status.HTTP_201_CREATED)
async def create_trade(request: TradeDraftRequest, container: Container = Depends(get_container)):
    """Create a trade. Omitted fields start blank; the date defaults to today."""
    session = container.new_session()
    session.open()
    _apply_request(session, request)
    trade_id = await session.submit()
    return create_response(data={"id": trade_id})


@router.put("/{trade_id}", response_model=ApiResponse)
async def update_trade(
    trade_id: str,
    request: TradeDraftRequest,
    container: Container = Depends(get_container),
):
    """Edit a trade; 404 if it was removed in the meantime."""
    record = container.reconciler.get(trade_id)
    if record is None:
        raise NotFoundError(trade_id)

    session = container.new_session()
    session.open(record)
    _apply_request(session, request)
    await session.submit()
    return create_response(data={"id": trade_id})


@router.delete("/{trade_id}", response_model=ApiResponse)
async def delete_trade(trade_id: str, container: Container = Depends(get_container)):
    """Delete a trade. Deleting an already-deleted trade succeeds."""
    removed = await container.coordinator.delete(trade_id)
    return create_response(data={"id": trade_id, "deleted": removed})
