"""
backend/app/api - API 路由
───────────────────────────────────
"""

from .health import router as health_router
from .reconcile import router as reconcile_router
from .settlement import router as settlement_router

__all__ = [
    "health_router",
    "reconcile_router",
    "settlement_router",
]
