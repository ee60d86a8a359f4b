"""
Trade Journal API Router Base Utilities

Shared response model and helpers for all API routers.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class ApiResponse(BaseModel):
    """
    Standard API response wrapper.

    All endpoints return responses wrapped in this model for consistent
    client-side handling.
    """

    success: bool = Field(..., description="Whether the request succeeded")
    data: Optional[Any] = Field(default=None, description="Response payload")
    error: Optional[str] = Field(default=None, description="Error message if failed")
    timestamp: str = Field(..., description="ISO timestamp of response")


def get_timestamp() -> str:
    """Get current ISO timestamp."""
    return datetime.utcnow().isoformat() + "Z"


def create_response(data: Any = None, error: Optional[str] = None) -> dict:
    """Create a standardized API response."""
    return {
        "success": error is None,
        "data": data,
        "error": error,
        "timestamp": get_timestamp(),
    }
