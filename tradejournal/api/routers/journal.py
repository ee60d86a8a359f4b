"""
Trade Journal Overview Router

Endpoints:
    GET /api/summary    - Headline statistics of the journal
    GET /api/checklist  - Trading-rule checklist categories and labels
"""

import logging

from fastapi import APIRouter, Depends

from ...analytics import summarize
from ...journal.models import CATEGORY_TITLES, CHECKLIST_KEYS, RULE_LABELS
from ..dependencies import Container, get_container
from .base import ApiResponse, create_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Journal"])


@router.get("/summary", response_model=ApiResponse)
async def get_summary(container: Container = Depends(get_container)):
    """Totals, fees, net profit and win rate over the live trade list."""
    summary = summarize(container.reconciler.records)
    return create_response(data=summary.to_dict())


@router.get("/checklist", response_model=ApiResponse)
async def get_checklist():
    """Rule categories in display order, with their labels."""
    categories = [
        {
            "category": category,
            "title": CATEGORY_TITLES[category],
            "rules": [{"key": key, "label": RULE_LABELS[category][key]} for key in keys],
        }
        for category, keys in CHECKLIST_KEYS.items()
    ]
    return create_response(data=categories)
