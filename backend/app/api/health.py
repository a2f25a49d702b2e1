"""
backend/app/api/health.py - 健康检查
───────────────────────────────────────────────
服务状态检查.
"""

from fastapi import APIRouter

from backend.app.config import settings
from backend.app.models import HealthResponse

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("", response_model=HealthResponse)
@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    健康检查.

    Returns:
        服务状态和版本
    """
    return HealthResponse(status="ok", version=settings.APP_VERSION)
