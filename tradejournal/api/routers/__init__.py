"""
Trade Journal API Routers Package

Router Structure:
-----------------
- system.py  : /api/health - Health and subscription status
- trades.py  : /api/trades/* - Trade CRUD and profit/loss suggestion
- journal.py : /api/summary, /api/checklist - Statistics and rulebook
"""

import logging
from typing import List

from fastapi import FastAPI

from . import journal, system, trades

logger = logging.getLogger(__name__)

ROUTERS = [system.router, trades.router, journal.router]


def register_routers(app: FastAPI) -> List[str]:
    """Include every router in ``app`` and return their prefixes."""
    registered = []
    for router in ROUTERS:
        app.include_router(router)
        registered.append(router.prefix or "/")
    logger.info(f"Registered {len(registered)} routers")
    return registered
