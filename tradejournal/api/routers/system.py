"""
Trade Journal System Router

Endpoints:
    GET /api/health - Health check with component status
"""

import logging
from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ... import __version__
from ..dependencies import Container, get_container
from .base import get_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status: healthy or degraded")
    version: str = Field(..., description="API version")
    components: Dict[str, bool] = Field(..., description="Component health status")
    timestamp: str = Field(..., description="ISO timestamp of the check")


@router.get("/api/health", response_model=HealthResponse)
async def health_check(container: Container = Depends(get_container)):
    """Healthy once the subscription is live and has delivered a snapshot."""
    reconciler = container.reconciler
    components = {
        "store": container.store is not None,
        "subscription": bool(reconciler and reconciler.is_active),
        "snapshot": bool(reconciler and reconciler.has_snapshot),
    }
    return HealthResponse(
        status="healthy" if all(components.values()) else "degraded",
        version=__version__,
        components=components,
        timestamp=get_timestamp(),
    )
